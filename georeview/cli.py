#!/usr/bin/env python3
"""GeoReview CLI - AI post-match reviews for GeoGuessr duels."""

import json
import sys

import click

from georeview import __version__
from georeview.cache import MatchId, ReviewCache
from georeview.config import configure_logging, load_env, load_settings
from georeview.errors import (
    ConfigurationMissingError,
    CredentialFormatError,
    DataIntegrityError,
    GenerationExhaustedError,
)
from georeview.match import load_match_page
from georeview.pipeline import ReviewService
from georeview.report import format_report, format_round_review
from georeview.store import (
    JsonFileStore,
    clear_credentials,
    load_credentials,
    mask_credential,
    save_credentials,
)


@click.group()
@click.version_option(version=__version__)
@click.option("--config", "config_path", type=click.Path(dir_okay=False), help="YAML settings file")
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging")
@click.pass_context
def cli(ctx, config_path, verbose):
    """GeoReview - Gemini-powered round reviews for GeoGuessr duels.

    Save your API keys once with `georeview keys set`, then review a saved
    duel summary page with `georeview review`.
    """
    configure_logging(verbose)
    load_env()
    ctx.obj = load_settings(config_path)


def _store(settings):
    return JsonFileStore(settings.store_path)


@cli.command()
@click.argument("match_file", type=click.Path(exists=True, dir_okay=False))
@click.option("--user-id", help="Your GeoGuessr user id (default: read from the page data)")
@click.option("--round", "round_number", type=int, help="Only print this round")
@click.option("--json", "as_json", is_flag=True, help="Print the raw report JSON")
@click.option("--dry-run", "dump_path", type=click.Path(dir_okay=False),
              help="Write the model request body to this file instead of sending it")
@click.pass_obj
def review(settings, match_file, user_id, round_number, as_json, dump_path):
    """Review a duel from a saved summary page or its __NEXT_DATA__ JSON."""
    try:
        match, page_user_id = load_match_page(match_file)
    except DataIntegrityError as e:
        raise click.ClickException(f"Could not read match data: {e}")

    user_id = user_id or page_user_id
    if not user_id:
        raise click.UsageError("No user id in the page data; pass --user-id")

    service = ReviewService.from_settings(settings)
    click.echo(f"Reviewing match {match.match_id} ({len(match.rounds)} rounds, {match.game_mode})", err=True)

    if dump_path:
        try:
            _, payload = service.prepare(match, user_id)
        except DataIntegrityError as e:
            raise click.ClickException(f"Match data is incomplete: {e}")
        with open(dump_path, "w", encoding="utf-8") as f:
            json.dump(payload.to_request_body(), f)
        click.echo(f"Wrote request with {payload.image_count} images to {dump_path}")
        return

    try:
        report = service.request_review(match, user_id)
    except ConfigurationMissingError:
        raise click.ClickException("No API keys configured. Run `georeview keys set KEY [KEY...]` first.")
    except DataIntegrityError as e:
        raise click.ClickException(f"Match data is incomplete: {e}")
    except GenerationExhaustedError:
        raise click.ClickException("Error generating review. Please check your API keys and try again.")

    if report is None:
        click.echo("A review is already being generated; try again shortly.", err=True)
        sys.exit(2)

    if as_json:
        click.echo(report.to_json())
        return

    if round_number is None:
        click.echo(format_report(report))
        return

    round_review = report.for_round(round_number)
    if round_review is None:
        raise click.ClickException(f"No review data available for round {round_number}.")
    click.echo(format_round_review(round_review))


@cli.group()
def keys():
    """Manage stored Gemini API keys."""
    pass


@keys.command("set")
@click.argument("api_keys", nargs=-1, required=True)
@click.pass_obj
def keys_set(settings, api_keys):
    """Store API keys, tried in the given order (primary first)."""
    try:
        saved = save_credentials(_store(settings), api_keys)
    except CredentialFormatError as e:
        raise click.BadParameter(str(e), param_hint="API_KEYS")
    click.echo(f"Saved {len(saved)} API key(s).")


@keys.command("show")
@click.pass_obj
def keys_show(settings):
    """List stored API keys (masked)."""
    stored = load_credentials(_store(settings))
    if not stored:
        click.echo("No API keys stored.")
        return
    for i, key in enumerate(stored, 1):
        click.echo(f"{i}. {mask_credential(key)}")


@keys.command("clear")
@click.pass_obj
def keys_clear(settings):
    """Remove all stored API keys."""
    clear_credentials(_store(settings))
    click.echo("API keys removed.")


@cli.group()
def cache():
    """Manage cached reviews."""
    pass


@cache.command("clear")
@click.option("--match-id", help="Only clear this match's review")
@click.pass_obj
def cache_clear(settings, match_id):
    """Delete cached reviews."""
    removed = ReviewCache(_store(settings)).clear(MatchId(match_id) if match_id else None)
    click.echo(f"Removed {removed} cached review(s).")


if __name__ == "__main__":
    cli()
