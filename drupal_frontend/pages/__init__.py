"""Blueprint rendering backend content as HTML pages."""

from __future__ import annotations

from flask import Blueprint

bp = Blueprint("pages", __name__)

from . import routes  # noqa: E402,F401
