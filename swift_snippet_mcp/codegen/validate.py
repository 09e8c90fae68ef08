from __future__ import annotations

import base64
import logging
import re
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any
from urllib.parse import quote

import httpx
from openapi_schema_validator import OAS31Validator

from .model import Auth, Body, BodyMode, FormParam, KeyValue, Request
from .sanitize import sanitize

logger = logging.getLogger(__name__)

_ENTRIES: dict[str, Any] = {"type": ["array", "object", "string", "null"]}

REQUEST_SCHEMA: dict[str, Any] = {
    "type": "object",
    "required": ["url"],
    "properties": {
        "method": {"type": "string"},
        "url": {
            "anyOf": [
                {"type": "string", "minLength": 1},
                {
                    "type": "object",
                    "anyOf": [{"required": ["raw"]}, {"required": ["host"]}],
                    "properties": {
                        "raw": {"type": "string"},
                        "protocol": {"type": "string"},
                        "host": {"type": ["array", "string"]},
                        "path": {"type": ["array", "string"]},
                        "query": {"type": ["array", "null"]},
                    },
                },
            ]
        },
        "header": _ENTRIES,
        "headers": _ENTRIES,
        "body": {"type": ["object", "null"], "properties": {"mode": {"type": "string"}}},
        "auth": {"type": ["object", "null"], "properties": {"type": {"type": "string"}}},
    },
}

_SCHEME = re.compile(r"^[A-Za-z][A-Za-z0-9+.-]*://")
_AUTHORITY = re.compile(r"^[^/?#]*")
_LONE_PERCENT = re.compile(r"%(?![0-9A-Fa-f]{2})")
_URL_SAFE = "%:/?#[]@!$&'()*+,;=~"


class MalformedRequestError(ValueError):
    def __init__(self, errors: list[dict[str, str]]) -> None:
        self.errors = errors
        detail = errors[0]["message"] if errors else "request is not a request object"
        super().__init__(f"Malformed request: {detail}")


@dataclass(frozen=True)
class RequestCheck:
    request: Request | None
    errors: list[dict[str, str]] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.request is not None


def validate_request(request: Any) -> RequestCheck:
    """Check the top-level request shape and build a ``Request`` from it."""
    if isinstance(request, Request):
        return RequestCheck(request=request)

    candidate = _unwrap(request)
    validator = OAS31Validator(REQUEST_SCHEMA)
    errors = [
        {"path": _format_error_path(error.path), "message": error.message}
        for error in validator.iter_errors(candidate)
    ]
    if errors:
        errors.sort(key=lambda item: (item["path"], item["message"]))
        return RequestCheck(request=None, errors=errors)
    base, _, _ = _split_url(candidate["url"])
    if not _SCHEME.sub("", base).strip():
        return RequestCheck(request=None, errors=[{"path": "/url", "message": "url is empty"}])
    return RequestCheck(request=normalize_request(candidate))


def require_request(request: Any) -> Request:
    check = validate_request(request)
    if check.request is None:
        logger.warning("rejected malformed request: %s", check.errors)
        raise MalformedRequestError(check.errors)
    return check.request


def normalize_request(raw: Mapping[str, Any]) -> Request:
    method = raw.get("method")
    header_source = raw.get("header")
    if header_source is None:
        header_source = raw.get("headers")
    headers = list(_headers(header_source))
    auth = _auth(raw.get("auth"))
    base, query, fragment = _split_url(raw["url"])

    if auth is not None:
        auth_header, auth_query = _auth_entries(auth)
        if auth_header is not None and not _has_header(headers, auth_header.key):
            headers.append(auth_header)
        if auth_query is not None:
            query = f"{query}&{auth_query}" if query else auth_query

    url = base
    if query:
        url += "?" + query
    if fragment:
        url += "#" + fragment

    return Request(
        method=method.strip().upper() if isinstance(method, str) and method.strip() else "GET",
        url=_normalize_url(url),
        headers=tuple(headers),
        body=_body(raw.get("body")),
        auth=auth,
    )


def _unwrap(request: Any) -> Any:
    if isinstance(request, Mapping) and "url" not in request and isinstance(request.get("request"), Mapping):
        return request["request"]
    return request


def _format_error_path(path: Any) -> str:
    if not path:
        return ""
    return "/" + "/".join(str(item) for item in path)


def _text(value: Any) -> Any:
    if isinstance(value, bool):
        return str(value).lower()
    if isinstance(value, (int, float)):
        return str(value)
    return value


def _has_header(headers: list[KeyValue], name: str) -> bool:
    lowered = name.lower()
    return any(not header.disabled and header.key.lower() == lowered for header in headers)


def _headers(raw: Any) -> list[KeyValue]:
    if isinstance(raw, str):
        items: list[Any] = []
        for line in raw.splitlines():
            key, sep, value = line.partition(":")
            if sep:
                items.append({"key": key.strip(), "value": value.strip()})
    elif isinstance(raw, Mapping):
        items = [{"key": key, "value": value} for key, value in raw.items()]
    elif isinstance(raw, list):
        items = raw
    else:
        return []

    headers: list[KeyValue] = []
    for item in items:
        pair = _key_value(item)
        if pair is not None:
            headers.append(pair)
    return headers


def _key_value(item: Any) -> KeyValue | None:
    if not isinstance(item, Mapping):
        return None
    key = item.get("key")
    if not isinstance(key, str) or not key.strip():
        return None
    return KeyValue(key=key, value=_text(item.get("value")), disabled=item.get("disabled") is True)


def _split_url(url: Any) -> tuple[str, str, str]:
    if isinstance(url, str):
        raw = url.strip()
        query_entries = None
    else:
        raw_value = url.get("raw")
        raw = raw_value.strip() if isinstance(raw_value, str) and raw_value.strip() else _join_url_parts(url)
        query_entries = url.get("query") if isinstance(url.get("query"), list) else None

    raw, _, fragment = raw.partition("#")
    base, _, query = raw.partition("?")
    if query_entries is not None:
        query = _query_string(query_entries)
    return base, query, fragment


def _join_url_parts(url: Mapping[str, Any]) -> str:
    host = url.get("host")
    host_text = ".".join(str(part) for part in host) if isinstance(host, list) else str(host or "")
    path = url.get("path")
    if isinstance(path, list):
        path_text = "/".join(str(part) for part in path)
    else:
        path_text = str(path or "")
    protocol = url.get("protocol")
    prefix = f"{protocol}://" if isinstance(protocol, str) and protocol else ""
    port = url.get("port")
    port_text = f":{port}" if port not in (None, "") else ""
    if path_text and not path_text.startswith("/"):
        path_text = "/" + path_text
    return f"{prefix}{host_text}{port_text}{path_text}"


def _query_string(entries: list[Any]) -> str:
    parts: list[str] = []
    for entry in entries:
        if not isinstance(entry, Mapping) or entry.get("disabled") is True:
            continue
        key = _text(entry.get("key"))
        value = _text(entry.get("value"))
        key_text = key if isinstance(key, str) else ""
        if value is None:
            parts.append(key_text)
        else:
            parts.append(f"{key_text}={value if isinstance(value, str) else ''}")
    return "&".join(parts)


def _normalize_url(url: str) -> str:
    """Add a missing scheme and percent-encode everything after the authority.

    Scheme and host are kept exactly as written, so ``{{baseUrl}}`` style
    variables and mixed-case hosts survive.
    """
    match = _SCHEME.match(url)
    scheme = match.group(0) if match else "http://"
    remainder = url[match.end():] if match else url
    authority = _AUTHORITY.match(remainder).group(0)
    return scheme + authority + _encode_tail(remainder[len(authority):])


def _encode_tail(tail: str) -> str:
    if not tail:
        return ""
    if not tail.startswith("//"):
        try:
            return str(httpx.URL(tail))
        except httpx.InvalidURL:
            logger.debug("httpx rejected url tail %r, percent-encoding it directly", tail)
    return quote(_LONE_PERCENT.sub("%25", tail), safe=_URL_SAFE)


def _body(raw: Any) -> Body | None:
    if not isinstance(raw, Mapping) or raw.get("disabled") is True:
        return None
    mode_name = raw.get("mode")
    if mode_name is None:
        return Body(mode=BodyMode.NONE)
    try:
        mode = BodyMode(mode_name)
    except ValueError:
        return Body(mode=BodyMode.UNSUPPORTED, declared_mode=mode_name)

    if mode is BodyMode.RAW:
        return Body(mode=mode, raw=_text(raw.get("raw")))
    if mode is BodyMode.URLENCODED:
        entries = raw.get("urlencoded")
        params = [_key_value(item) for item in entries] if isinstance(entries, list) else []
        return Body(mode=mode, params=tuple(param for param in params if param is not None))
    if mode is BodyMode.FORMDATA:
        entries = raw.get("formdata")
        return Body(mode=mode, form=tuple(_form_params(entries if isinstance(entries, list) else [])))
    if mode is BodyMode.FILE:
        file_ref = raw.get("file")
        return Body(mode=mode, src=file_ref.get("src") if isinstance(file_ref, Mapping) else None)
    if mode is BodyMode.GRAPHQL:
        graphql = raw.get("graphql")
        return Body(mode=mode, graphql=dict(graphql) if isinstance(graphql, Mapping) else {})
    return Body(mode=mode, declared_mode=mode_name)


def _form_params(entries: list[Any]) -> list[FormParam]:
    params: list[FormParam] = []
    for item in entries:
        if not isinstance(item, Mapping):
            continue
        key = item.get("key")
        if not isinstance(key, str):
            continue
        content_type = item.get("contentType")
        common = {
            "key": key,
            "content_type": content_type if isinstance(content_type, str) and content_type else None,
            "disabled": item.get("disabled") is True,
        }
        if item.get("type") == "file":
            sources = item.get("src")
            for src in sources if isinstance(sources, list) else [sources]:
                params.append(FormParam(type="file", src=src, **common))
        else:
            params.append(FormParam(type="text", value=_text(item.get("value")), **common))
    return params


def _auth(raw: Any) -> Auth | None:
    if not isinstance(raw, Mapping):
        return None
    kind = raw.get("type")
    if not isinstance(kind, str) or kind.lower() == "noauth":
        return None
    kind = kind.lower()
    params_raw = raw.get(kind)
    params: dict[str, Any] = {}
    if isinstance(params_raw, list):
        for item in params_raw:
            if isinstance(item, Mapping) and isinstance(item.get("key"), str):
                params[item["key"]] = item.get("value")
    elif isinstance(params_raw, Mapping):
        params = dict(params_raw)
    return Auth(type=kind, params=params)


def _auth_entries(auth: Auth) -> tuple[KeyValue | None, str | None]:
    if auth.type == "basic":
        username = _text(auth.get("username"))
        password = _text(auth.get("password"))
        pair = f"{username if isinstance(username, str) else ''}:{password if isinstance(password, str) else ''}"
        token = base64.b64encode(pair.encode("utf-8")).decode("ascii")
        return KeyValue(key="Authorization", value=f"Basic {token}"), None
    if auth.type == "bearer":
        token = _text(auth.get("token"))
        if not isinstance(token, str):
            return None, None
        return KeyValue(key="Authorization", value=f"Bearer {token}"), None
    if auth.type == "oauth2":
        token = _text(auth.get("accessToken"))
        if not isinstance(token, str):
            return None, None
        prefix = auth.get("headerPrefix")
        prefix = prefix if isinstance(prefix, str) and prefix else "Bearer"
        return KeyValue(key="Authorization", value=f"{prefix} {token}"), None
    if auth.type == "apikey":
        key = auth.get("key")
        if not isinstance(key, str) or not key:
            return None, None
        value = _text(auth.get("value"))
        if auth.get("in") == "query":
            return None, f"{sanitize(key, 'urlencoded')}={sanitize(value, 'urlencoded')}"
        return KeyValue(key=key, value=value), None
    logger.debug("auth type %r is not rendered", auth.type)
    return None, None
