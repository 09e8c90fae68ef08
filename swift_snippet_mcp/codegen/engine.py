from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from typing import Any

import yaml

from .ingest import collection_name, iter_collection_requests, load_raw_document
from .options import get_options, resolve_options
from .render import render_swift
from .validate import validate_request

logger = logging.getLogger(__name__)


class SnippetEngine:
    def __init__(self, default_options: Mapping[str, Any] | None = None) -> None:
        self._default_options: dict[str, Any] = dict(default_options or {})

    @property
    def default_options(self) -> dict[str, Any]:
        return dict(self._default_options)

    def get_options(self) -> dict[str, Any]:
        return {"options": get_options()}

    def snippet_generate(self, request: Any, options: Mapping[str, Any] | None = None) -> dict[str, Any]:
        check = validate_request(request)
        if check.request is None:
            logger.warning("snippet request rejected: %s", check.errors)
            return {"ok": False, "snippet": None, "errors": check.errors}
        resolved = resolve_options(self._merge_options(options))
        return {"ok": True, "snippet": render_swift(check.request, resolved), "errors": []}

    def collection_generate(self, path: str, options: Mapping[str, Any] | None = None) -> dict[str, Any]:
        source = os.path.abspath(path)
        try:
            raw = load_raw_document(source)
        except (OSError, ValueError, yaml.YAMLError) as exc:
            logger.warning("could not read collection %s: %s", source, exc)
            return {
                "ok": False,
                "source": source,
                "name": None,
                "snippets": [],
                "errors": [{"path": "", "message": _error_message(exc)}],
            }

        snippets: list[dict[str, Any]] = []
        for entry in iter_collection_requests(raw):
            result = self.snippet_generate(entry.request, options)
            snippets.append({"name": entry.name, "path": entry.path, **result})

        return {
            "ok": all(item["ok"] for item in snippets),
            "source": source,
            "name": collection_name(raw, source),
            "snippets": snippets,
            "errors": [],
        }

    def _merge_options(self, options: Mapping[str, Any] | None) -> dict[str, Any]:
        merged = dict(self._default_options)
        if isinstance(options, Mapping):
            merged.update(options)
        return merged


def _error_message(error: Exception) -> str:
    message = str(error).strip()
    return message if message else error.__class__.__name__
