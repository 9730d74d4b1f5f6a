"""Tests for credential rotation and the review client."""

from __future__ import annotations

import pytest

from georeview.client import ReviewClient
from georeview.errors import GenerationExhaustedError
from georeview.prompt import PromptPayload
from georeview.rotation import AttemptOutcome, CredentialRotator, Outcome
from tests.fakes import BROKEN, RATE_LIMITED, FakeTransport, report_text


def test_first_success_short_circuits() -> None:
    tried = []

    def attempt(credential):
        tried.append(credential)
        return AttemptOutcome.success(credential.upper())

    assert CredentialRotator(["a", "b", "c"]).run(attempt) == "A"
    assert tried == ["a"]


def test_rate_limited_and_failed_credentials_hand_over_in_order() -> None:
    script = {
        "a": AttemptOutcome.rate_limited(),
        "b": AttemptOutcome.failed(RuntimeError("boom")),
        "c": AttemptOutcome.success("report"),
    }
    tried = []

    def attempt(credential):
        tried.append(credential)
        return script[credential]

    assert CredentialRotator(["a", "b", "c"]).run(attempt) == "report"
    assert tried == ["a", "b", "c"]


def test_exhaustion_reports_every_outcome() -> None:
    with pytest.raises(GenerationExhaustedError) as exc_info:
        CredentialRotator(["key-one-1234", "key-two-5678"]).run(lambda c: AttemptOutcome.rate_limited())

    outcomes = exc_info.value.outcomes
    assert [o.kind for _, o in outcomes] == [Outcome.RATE_LIMITED, Outcome.RATE_LIMITED]
    # Credentials are only kept in masked form
    assert outcomes[0][0] == "key-...1234"


def test_empty_pool_is_exhausted_immediately() -> None:
    with pytest.raises(GenerationExhaustedError):
        CredentialRotator([]).run(lambda c: AttemptOutcome.success(c))


def test_client_rotates_past_rate_limit_to_valid_report() -> None:
    transport = FakeTransport(RATE_LIMITED, report_text(3))
    report = ReviewClient(transport).generate(["k1", "k2"], PromptPayload(), round_count=3)

    assert [r.round for r in report.rounds] == [1, 2, 3]
    assert [c for c, _ in transport.calls] == ["k1", "k2"]


def test_client_treats_invalid_answer_like_a_failed_call() -> None:
    transport = FakeTransport(report_text(2), BROKEN, report_text(3, fenced=True))
    report = ReviewClient(transport).generate(["k1", "k2", "k3"], PromptPayload(), round_count=3)

    assert len(report) == 3
    assert len(transport.calls) == 3


def test_client_exhausts_when_every_credential_fails() -> None:
    transport = FakeTransport(RATE_LIMITED, BROKEN, "not json")
    with pytest.raises(GenerationExhaustedError) as exc_info:
        ReviewClient(transport).generate(["k1", "k2", "k3"], PromptPayload(), round_count=1)

    kinds = [o.kind for _, o in exc_info.value.outcomes]
    assert kinds == [Outcome.RATE_LIMITED, Outcome.ERROR, Outcome.ERROR]


def test_client_sends_the_same_payload_to_each_credential() -> None:
    payload = PromptPayload()
    payload.add_text("hello")
    transport = FakeTransport(BROKEN, report_text(1))
    ReviewClient(transport).generate(["k1", "k2"], payload, round_count=1)

    assert all(p is payload for _, p in transport.calls)


def test_client_rotates_past_unexpected_transport_errors() -> None:
    transport = FakeTransport(ValueError("Expecting value: line 1 column 1"), report_text(1))
    payload = PromptPayload()

    report = ReviewClient(transport).generate(["k1", "k2"], payload, 1)

    assert [r.round for r in report.rounds] == [1]
    assert [c for c, _ in transport.calls] == ["k1", "k2"]
