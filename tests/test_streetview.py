"""Tests for view geometry and concurrent Street View fetching."""

from __future__ import annotations

import io

import requests
from PIL import Image

from georeview.streetview import ImageFetcher, THUMBNAIL_URL, view_specs
from tests.fakes import FakeSession, image_bytes


def test_narrow_field_views_straddle_heading() -> None:
    specs = view_specs("NmpzDuels", heading=100.0, pitch=5.0)
    assert [(s.name, s.yaw, s.pitch) for s in specs] == [
        ("LEFT", 80.0, 5.0),
        ("RIGHT", 120.0, 5.0),
    ]


def test_standard_views_cover_compass_sky_and_ground() -> None:
    specs = view_specs("StandardDuels", heading=30.0, pitch=5.0)
    assert [(s.name, s.yaw, s.pitch) for s in specs] == [
        ("FRONT", 30.0, 0),
        ("RIGHT", 120.0, 0),
        ("BACK", 210.0, 0),
        ("LEFT", 300.0, 0),
        ("SKY", 0, -90),
        ("GROUND", 0, 90),
    ]


def test_standard_yaws_wrap_at_360() -> None:
    specs = view_specs("StandardDuels", heading=300.0)
    assert [s.yaw for s in specs[:4]] == [300.0, 30.0, 120.0, 210.0]


def test_narrow_field_round_issues_two_requests() -> None:
    session = FakeSession()
    views = ImageFetcher(session).fetch_round(1, "PANO", "NmpzDuels", heading=90.0, pitch=-3.0)

    assert len(session.calls) == 2
    assert sorted(c["yaw"] for c in session.calls) == [70.0, 110.0]
    assert {c["pitch"] for c in session.calls} == {-3.0}
    assert {c["h"] for c in session.calls} == {1300}
    assert all(c["_url"] == THUMBNAIL_URL and c["panoid"] == "PANO" for c in session.calls)
    assert [v.spec.name for v in views.views] == ["LEFT", "RIGHT"]
    assert views.complete


def test_standard_round_issues_six_requests() -> None:
    session = FakeSession()
    views = ImageFetcher(session, timeout_s=7).fetch_round(2, "PANO", "StandardDuels", heading=10.0)

    assert len(session.calls) == 6
    assert sorted((c["yaw"], c["pitch"]) for c in session.calls) == sorted(
        [(10.0, 0), (100.0, 0), (190.0, 0), (280.0, 0), (0, -90), (0, 90)]
    )
    assert {c["h"] for c in session.calls} == {1600}
    assert {c["_timeout"] for c in session.calls} == {7}
    assert [v.spec.name for v in views.views] == ["FRONT", "RIGHT", "BACK", "LEFT", "SKY", "GROUND"]


def test_failed_views_are_dropped_without_affecting_siblings() -> None:
    def fail(params):
        if params["pitch"] == -90:
            return requests.ConnectionError("boom")
        if params["yaw"] == 190.0:
            return 404
        return None

    session = FakeSession(fail=fail)
    views = ImageFetcher(session).fetch_round(1, "PANO", "StandardDuels", heading=10.0)

    assert len(session.calls) == 6
    assert [v.spec.name for v in views.views] == ["FRONT", "RIGHT", "LEFT", "GROUND"]
    assert views.missing == ["BACK", "SKY"]
    assert not views.complete


def test_undecodable_body_is_dropped() -> None:
    views = ImageFetcher(FakeSession(content=b"<html>not an image</html>")).fetch_round(
        1, "PANO", "NmpzDuels"
    )
    assert views.views == []
    assert views.missing == ["LEFT", "RIGHT"]


def test_non_jpeg_images_are_reencoded() -> None:
    views = ImageFetcher(FakeSession(content=image_bytes("PNG"))).fetch_round(1, "PANO", "NmpzDuels")
    view = views.views[0]
    assert view.mime_type == "image/jpeg"
    with Image.open(io.BytesIO(view.data)) as img:
        assert img.format == "JPEG"


def test_jpeg_bytes_pass_through_and_encode_to_base64() -> None:
    jpeg = image_bytes()
    view = ImageFetcher(FakeSession(content=jpeg)).fetch_round(1, "PANO", "NmpzDuels").views[0]
    assert view.data == jpeg
    assert isinstance(view.b64, str)
    assert view.b64.isascii()


def test_oversized_image_is_dropped(monkeypatch) -> None:
    # 8x8 test image exceeds twice this limit, so Pillow refuses to open it
    monkeypatch.setattr(Image, "MAX_IMAGE_PIXELS", 10)
    views = ImageFetcher(FakeSession(content=image_bytes("PNG"))).fetch_round(1, "PANO", "NmpzDuels")
    assert views.views == []
    assert views.missing == ["LEFT", "RIGHT"]
