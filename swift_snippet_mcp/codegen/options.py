from __future__ import annotations

import copy
import logging
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

logger = logging.getLogger(__name__)

OPTIONS: list[dict[str, Any]] = [
    {
        "name": "Set indentation count",
        "id": "indentCount",
        "type": "positiveInteger",
        "default": 2,
        "description": "Set the number of indentation characters to add per code level",
    },
    {
        "name": "Set indentation type",
        "id": "indentType",
        "type": "enum",
        "availableOptions": ["Tab", "Space"],
        "default": "Space",
        "description": "Select the character used to indent lines of code",
    },
    {
        "name": "Set request timeout",
        "id": "requestTimeout",
        "type": "positiveInteger",
        "default": 0,
        "description": "Set number of milliseconds the request should wait for a response"
        " before timing out (use 0 for infinity)",
    },
    {
        "name": "Trim request body fields",
        "id": "trimRequestBody",
        "type": "boolean",
        "default": False,
        "description": "Remove white space and additional lines that may affect the server's response",
    },
]

# Resolved like the catalog entries but not advertised by get_options().
EXTRA_OPTIONS: list[dict[str, Any]] = [
    {
        "name": "Follow redirects",
        "id": "followRedirect",
        "type": "boolean",
        "default": True,
        "description": "Automatically follow HTTP redirects",
    },
]

_MINIMUMS = {"indentCount": 1, "requestTimeout": 0}


@dataclass(frozen=True)
class SnippetOptions:
    indent_type: str = "Space"
    indent_count: int = 2
    request_timeout: int = 0
    follow_redirect: bool = True
    trim_request_body: bool = False

    @property
    def indent_unit(self) -> str:
        char = "\t" if self.indent_type == "Tab" else " "
        return char * self.indent_count


def get_options() -> list[dict[str, Any]]:
    return copy.deepcopy(OPTIONS)


def resolve_options(partial: Mapping[str, Any] | SnippetOptions | None = None) -> SnippetOptions:
    if isinstance(partial, SnippetOptions):
        return partial
    supplied: Mapping[str, Any] = partial if isinstance(partial, Mapping) else {}

    values: dict[str, Any] = {}
    for declaration in OPTIONS + EXTRA_OPTIONS:
        option_id = declaration["id"]
        default = declaration["default"]
        if option_id not in supplied:
            values[option_id] = default
            continue
        coerced = _coerce(declaration, supplied[option_id])
        if coerced is None:
            logger.debug("option %s=%r is invalid, using default %r", option_id, supplied[option_id], default)
            coerced = default
        values[option_id] = coerced

    return SnippetOptions(
        indent_type=values["indentType"],
        indent_count=values["indentCount"],
        request_timeout=values["requestTimeout"],
        follow_redirect=values["followRedirect"],
        trim_request_body=values["trimRequestBody"],
    )


def _coerce(declaration: dict[str, Any], value: Any) -> Any:
    kind = declaration["type"]
    if kind == "boolean":
        return value if isinstance(value, bool) else None
    if kind == "positiveInteger":
        if isinstance(value, bool):
            return None
        if isinstance(value, float) and value.is_integer():
            value = int(value)
        if not isinstance(value, int):
            return None
        return value if value >= _MINIMUMS.get(declaration["id"], 0) else None
    if kind == "enum":
        if not isinstance(value, str):
            return None
        for option in declaration["availableOptions"]:
            if option.lower() == value.strip().lower():
                return option
        return None
    return None
