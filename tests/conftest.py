"""Shared pytest fixtures."""

from __future__ import annotations

import json
import sys
from collections.abc import Callable
from pathlib import Path

import pytest

ROOT_DIR = Path(__file__).resolve().parents[1]
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))

from drupal_frontend import create_app  # noqa: E402

BACKEND = "https://cms.example.com"


@pytest.fixture()
def make_app() -> Callable:
    """Build an app from the testing config with per-test overrides."""

    def _factory(**overrides):
        return create_app("testing", overrides=overrides)

    return _factory


@pytest.fixture()
def app(make_app):
    """Split-routing app pointed at the fake backend."""

    return make_app(DRUPAL_BASE_URL=BACKEND)


@pytest.fixture()
def client(app):
    """Provide a Flask test client."""

    with app.test_client() as client:
        yield client


@pytest.fixture(scope="session")
def fixtures_dir() -> Path:
    """Return the path to bundled JSON fixtures."""

    return ROOT_DIR / "tests" / "fixtures"


@pytest.fixture()
def load_json_fixture(fixtures_dir: Path) -> Callable[[str], dict]:
    """Load a JSON fixture by filename."""

    def _loader(filename: str) -> dict:
        path = fixtures_dir / filename
        with path.open("r", encoding="utf-8") as handle:
            return json.load(handle)

    return _loader
