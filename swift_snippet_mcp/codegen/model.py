from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class BodyMode(str, Enum):
    RAW = "raw"
    URLENCODED = "urlencoded"
    FORMDATA = "formdata"
    FILE = "file"
    GRAPHQL = "graphql"
    NONE = "none"
    UNSUPPORTED = "unsupported"


@dataclass(frozen=True)
class KeyValue:
    key: str
    value: Any
    disabled: bool = False


@dataclass(frozen=True)
class FormParam:
    key: str
    type: str
    value: Any = None
    src: Any = None
    content_type: str | None = None
    disabled: bool = False


@dataclass(frozen=True)
class Body:
    mode: BodyMode
    raw: Any = None
    params: tuple[KeyValue, ...] = ()
    form: tuple[FormParam, ...] = ()
    src: Any = None
    graphql: dict[str, Any] | None = None
    declared_mode: str | None = None


@dataclass(frozen=True)
class Auth:
    type: str
    params: dict[str, Any] = field(default_factory=dict)

    def get(self, name: str) -> Any:
        return self.params.get(name)


@dataclass(frozen=True)
class Request:
    method: str
    url: str
    headers: tuple[KeyValue, ...] = ()
    body: Body | None = None
    auth: Auth | None = None

    def enabled_headers(self) -> list[KeyValue]:
        return [header for header in self.headers if not header.disabled]

    def has_header(self, name: str) -> bool:
        lowered = name.lower()
        return any(header.key.lower() == lowered for header in self.enabled_headers())
