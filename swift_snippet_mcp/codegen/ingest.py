from __future__ import annotations

import json
import os
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Iterator

import yaml


@dataclass(frozen=True)
class CollectionRequest:
    name: str
    path: str
    request: Any


def load_raw_document(path: str) -> Any:
    with open(path, "r", encoding="utf-8") as handle:
        if path.lower().endswith(".json"):
            return json.load(handle)
        return yaml.safe_load(handle)


def collection_name(raw: Any, path: str) -> str:
    info = raw.get("info") if isinstance(raw, Mapping) else None
    if isinstance(info, Mapping):
        name = info.get("name")
        if isinstance(name, str) and name.strip():
            return name.strip()
    base = os.path.basename(path)
    name, _ = os.path.splitext(base)
    return name


def iter_collection_requests(raw: Any) -> Iterator[CollectionRequest]:
    """Yield every request of a collection document in document order.

    Folders (items holding their own ``item`` list) are walked depth-first and
    contribute their names to ``path``. A document that is a single request,
    or a single ``{"request": ...}`` item, yields one entry.
    """
    if isinstance(raw, Mapping) and isinstance(raw.get("item"), list):
        yield from _walk(raw["item"], ())
        return
    if isinstance(raw, Mapping) and ("url" in raw or "request" in raw):
        name = raw.get("name")
        label = name if isinstance(name, str) and name else "request"
        yield CollectionRequest(name=label, path=label, request=_item_request(raw))


def _walk(items: list[Any], parents: tuple[str, ...]) -> Iterator[CollectionRequest]:
    for index, item in enumerate(items):
        if not isinstance(item, Mapping):
            continue
        name = item.get("name")
        label = name if isinstance(name, str) and name else f"item-{index + 1}"
        if isinstance(item.get("item"), list):
            yield from _walk(item["item"], parents + (label,))
            continue
        yield CollectionRequest(name=label, path="/".join(parents + (label,)), request=_item_request(item))


def _item_request(item: Mapping[str, Any]) -> Any:
    if "url" in item:
        return item
    request = item.get("request")
    if isinstance(request, str):
        return {"method": "GET", "url": request}
    return request
