"""CLI for asking the backend resolver about a path."""

from __future__ import annotations

import json
from dataclasses import asdict

import click
from flask import current_app
from flask.cli import with_appcontext

from drupal_frontend.backend.resolver import ResolverClient
from drupal_frontend.errors import FrontendError
from drupal_frontend.routing.dispatch import decide_page


@click.command("resolve-path")
@click.argument("path")
@click.option("--langcode", default=None, help="Language code to resolve in")
@with_appcontext
def resolve_path(path: str, langcode: str | None) -> None:
    """Print what the backend resolver says about PATH and what the frontend would do."""

    if not path.startswith("/"):
        path = f"/{path}"

    settings = current_app.extensions["frontend_settings"]
    resolver: ResolverClient = current_app.extensions["resolver_client"]
    try:
        result = resolver.resolve(path, langcode or settings.langcode)
    except FrontendError as exc:
        raise click.ClickException(exc.message) from exc

    decision = decide_page(result, settings.backend_base_url)
    payload = {
        "path": path,
        "kind": result.kind,
        "resolved": result.resolved,
        "headless": result.headless,
        "result": asdict(result),
        "decision": asdict(decision),
    }
    click.echo(json.dumps(payload, indent=2, default=str))
