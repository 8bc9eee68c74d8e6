"""Typed shapes for resolver results and JSON:API documents."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, ClassVar, Union

DEFAULT_REDIRECT_STATUS = 307
REDIRECT_STATUSES = {301, 302, 303, 307, 308}


def _optional_str(payload: Mapping[str, Any], key: str) -> str | None:
    value = payload.get(key)
    if value is None:
        return None
    if not isinstance(value, str):
        raise ValueError(f"'{key}' must be a string")
    return value or None


@dataclass(frozen=True)
class RedirectTarget:
    to: str
    status: int = DEFAULT_REDIRECT_STATUS

    def __post_init__(self) -> None:
        if not self.to or not self.to.strip():
            raise ValueError("redirect target must be a non-empty string")
        if self.status not in REDIRECT_STATUSES:
            object.__setattr__(self, "status", DEFAULT_REDIRECT_STATUS)

    @classmethod
    def from_payload(cls, payload: Any) -> RedirectTarget | None:
        if payload is None:
            return None
        if not isinstance(payload, Mapping):
            raise ValueError("'redirect' must be an object")
        to = payload.get("to")
        if not isinstance(to, str):
            raise ValueError("'redirect.to' must be a string")
        status = payload.get("status")
        if not isinstance(status, int) or isinstance(status, bool):
            status = DEFAULT_REDIRECT_STATUS
        return cls(to=to, status=status)


@dataclass(frozen=True)
class EntityRef:
    type: str
    id: str
    langcode: str | None = None

    @classmethod
    def from_payload(cls, payload: Any) -> EntityRef | None:
        if payload is None:
            return None
        if not isinstance(payload, Mapping):
            raise ValueError("'entity' must be an object")
        entity_type = payload.get("type")
        entity_id = payload.get("id")
        if not isinstance(entity_type, str) or not isinstance(entity_id, str):
            raise ValueError("'entity' requires string 'type' and 'id'")
        return cls(type=entity_type, id=entity_id, langcode=_optional_str(payload, "langcode"))


@dataclass(frozen=True)
class Unresolved:
    """The backend does not know the path."""

    resolved: ClassVar[bool] = False
    kind: ClassVar[str | None] = None
    headless: ClassVar[bool] = False
    redirect: ClassVar[RedirectTarget | None] = None
    backend_url: ClassVar[str | None] = None


@dataclass(frozen=True)
class EntityResolution:
    canonical: str | None
    entity: EntityRef | None
    resource_locator: str | None
    headless: bool
    backend_url: str | None = None
    redirect: RedirectTarget | None = None
    layout: Mapping[str, Any] | None = None

    resolved: ClassVar[bool] = True
    kind: ClassVar[str] = "entity"

    def __post_init__(self) -> None:
        if self.headless and not self.resource_locator:
            raise ValueError("headless entity results require 'jsonapi_url'")
        _require_backend_url(self)


@dataclass(frozen=True)
class ViewResolution:
    canonical: str | None
    data_locator: str | None
    headless: bool
    backend_url: str | None = None
    redirect: RedirectTarget | None = None

    resolved: ClassVar[bool] = True
    kind: ClassVar[str] = "view"

    def __post_init__(self) -> None:
        if self.headless and not self.data_locator:
            raise ValueError("headless view results require 'data_url'")
        _require_backend_url(self)


@dataclass(frozen=True)
class RouteResolution:
    """A backend route (form, login page, ...) the frontend never renders."""

    backend_url: str | None
    canonical: str | None = None
    redirect: RedirectTarget | None = None

    resolved: ClassVar[bool] = True
    kind: ClassVar[str] = "route"
    headless: ClassVar[bool] = False

    def __post_init__(self) -> None:
        _require_backend_url(self)


@dataclass(frozen=True)
class RedirectResolution:
    redirect: RedirectTarget

    resolved: ClassVar[bool] = True
    kind: ClassVar[str] = "redirect"
    headless: ClassVar[bool] = False
    backend_url: ClassVar[str | None] = None


ResolutionResult = Union[
    Unresolved, EntityResolution, ViewResolution, RouteResolution, RedirectResolution
]


def _require_backend_url(result: Any) -> None:
    if not result.headless and not result.backend_url and result.redirect is None:
        raise ValueError(f"non-headless {result.kind} results require 'drupal_url'")


def parse_resolution(payload: Any) -> ResolutionResult:
    """Build the resolution variant described by a resolver response body.

    Raises:
        ValueError: If the body does not match any known variant.
    """

    if not isinstance(payload, Mapping):
        raise ValueError("resolver response must be a JSON object")

    resolved = payload.get("resolved")
    if resolved is False:
        return Unresolved()
    if resolved is not True:
        raise ValueError("'resolved' must be a boolean")

    kind = payload.get("kind")
    redirect = RedirectTarget.from_payload(payload.get("redirect"))
    headless = payload.get("headless", False)
    if not isinstance(headless, bool):
        raise ValueError("'headless' must be a boolean")
    canonical = _optional_str(payload, "canonical")
    backend_url = _optional_str(payload, "drupal_url")

    if kind == "entity":
        layout = payload.get("layout")
        if layout is not None and not isinstance(layout, Mapping):
            raise ValueError("'layout' must be an object")
        return EntityResolution(
            canonical=canonical,
            entity=EntityRef.from_payload(payload.get("entity")),
            resource_locator=_optional_str(payload, "jsonapi_url"),
            headless=headless,
            backend_url=backend_url,
            redirect=redirect,
            layout=layout,
        )
    if kind == "view":
        return ViewResolution(
            canonical=canonical,
            data_locator=_optional_str(payload, "data_url"),
            headless=headless,
            backend_url=backend_url,
            redirect=redirect,
        )
    if kind == "route":
        return RouteResolution(backend_url=backend_url, canonical=canonical, redirect=redirect)
    if kind == "redirect":
        if redirect is None:
            raise ValueError("redirect results require 'redirect'")
        return RedirectResolution(redirect=redirect)

    raise ValueError(f"unknown resolution kind {kind!r}")


@dataclass(frozen=True)
class ResourceRef:
    type: str
    id: str
    meta: Mapping[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class Relationship:
    refs: tuple[ResourceRef, ...] = ()
    many: bool = False

    @property
    def first(self) -> ResourceRef | None:
        if self.many or not self.refs:
            return None
        return self.refs[0]

    @classmethod
    def from_payload(cls, payload: Any) -> Relationship:
        data = payload.get("data") if isinstance(payload, Mapping) else None
        if data is None:
            return cls()
        if isinstance(data, list):
            return cls(refs=tuple(_parse_ref(item) for item in data if _is_ref(item)), many=True)
        if _is_ref(data):
            return cls(refs=(_parse_ref(data),))
        return cls()


def _is_ref(value: Any) -> bool:
    return (
        isinstance(value, Mapping)
        and isinstance(value.get("type"), str)
        and isinstance(value.get("id"), str)
    )


def _parse_ref(value: Mapping[str, Any]) -> ResourceRef:
    meta = value.get("meta")
    return ResourceRef(
        type=value["type"], id=value["id"], meta=meta if isinstance(meta, Mapping) else {}
    )


@dataclass(frozen=True)
class JsonApiResource:
    type: str
    id: str
    attributes: Mapping[str, Any] = field(default_factory=dict)
    relationships: Mapping[str, Relationship] = field(default_factory=dict)
    links: Mapping[str, Any] = field(default_factory=dict)

    def attr(self, name: str, default: Any = None) -> Any:
        return self.attributes.get(name, default)

    @classmethod
    def from_payload(cls, payload: Any) -> JsonApiResource:
        if not _is_ref(payload):
            raise ValueError("resources require string 'type' and 'id'")
        attributes = payload.get("attributes")
        relationships = payload.get("relationships")
        links = payload.get("links")
        return cls(
            type=payload["type"],
            id=payload["id"],
            attributes=attributes if isinstance(attributes, Mapping) else {},
            relationships={
                str(name): Relationship.from_payload(value)
                for name, value in (relationships or {}).items()
            }
            if isinstance(relationships, Mapping)
            else {},
            links=links if isinstance(links, Mapping) else {},
        )


@dataclass(frozen=True)
class JsonApiDocument:
    data: JsonApiResource | tuple[JsonApiResource, ...] | None
    included: tuple[JsonApiResource, ...] = ()
    links: Mapping[str, Any] = field(default_factory=dict)
    meta: Mapping[str, Any] = field(default_factory=dict)

    @property
    def primary(self) -> JsonApiResource | None:
        return self.data if isinstance(self.data, JsonApiResource) else None

    @property
    def items(self) -> tuple[JsonApiResource, ...]:
        if self.data is None:
            return ()
        if isinstance(self.data, JsonApiResource):
            return (self.data,)
        return self.data

    def link(self, name: str) -> str | None:
        """Link href whether given as a string or as ``{"href": ...}``."""

        value = self.links.get(name)
        if isinstance(value, Mapping):
            value = value.get("href")
        return value if isinstance(value, str) and value else None

    @classmethod
    def from_payload(cls, payload: Any) -> JsonApiDocument:
        if not isinstance(payload, Mapping) or "data" not in payload:
            raise ValueError("JSON:API documents require a 'data' member")
        raw_data = payload["data"]
        data: JsonApiResource | tuple[JsonApiResource, ...] | None
        if raw_data is None:
            data = None
        elif isinstance(raw_data, list):
            data = tuple(JsonApiResource.from_payload(item) for item in raw_data)
        else:
            data = JsonApiResource.from_payload(raw_data)

        included = payload.get("included") or []
        links = payload.get("links")
        meta = payload.get("meta")
        return cls(
            data=data,
            included=tuple(
                JsonApiResource.from_payload(item) for item in included if _is_ref(item)
            ),
            links=links if isinstance(links, Mapping) else {},
            meta=meta if isinstance(meta, Mapping) else {},
        )
