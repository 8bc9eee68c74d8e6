"""Blueprint for the cache revalidation webhook."""

from __future__ import annotations

from flask_smorest import Blueprint

blp = Blueprint("Revalidate", __name__, description="Backend-driven cache revalidation")

from . import routes  # noqa: E402,F401
