"""Schemas for API responses."""

from __future__ import annotations

from marshmallow import EXCLUDE, Schema, fields


class HealthStatusSchema(Schema):
    status = fields.String(required=True)
    app = fields.String()
    deployment_mode = fields.String()


class RevalidateRequestSchema(Schema):
    class Meta:
        unknown = EXCLUDE

    # Informational only; malformed values are ignored, never rejected.
    operation = fields.Raw(load_default=None, allow_none=True)
    paths = fields.Raw(load_default=list)
    tags = fields.Raw(load_default=list)
    entity = fields.Raw(load_default=None, allow_none=True)
    timestamp = fields.Raw(load_default=None)


class RevalidateResultSchema(Schema):
    revalidated = fields.Boolean(required=True)
    operation = fields.String(allow_none=True)
    paths = fields.List(fields.String(), required=True)
    tags = fields.List(fields.String(), required=True)
    invalidated = fields.Integer()
    timestamp = fields.Integer(required=True)


class RevalidateStatusSchema(Schema):
    status = fields.String(required=True)
    message = fields.String(required=True)


class ErrorMessageSchema(Schema):
    error = fields.String(required=True)
