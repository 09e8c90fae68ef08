from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Callable

from .options import SnippetOptions, resolve_options
from .render import render_swift
from .validate import MalformedRequestError, require_request


Callback = Callable[[Exception | None, str | None], Any]


def render_snippet(request: Any, options: Mapping[str, Any] | SnippetOptions | None = None) -> str:
    """Render ``request`` as a Swift URLSession snippet.

    Raises ``MalformedRequestError`` when the request does not have a usable
    top-level shape. Every other irregularity is absorbed by defaults.
    """
    resolved = resolve_options(options)
    parsed = require_request(request)
    return render_swift(parsed, resolved)


def convert(
    request: Any,
    options: Mapping[str, Any] | SnippetOptions | Callback | None = None,
    callback: Callback | None = None,
) -> str | None:
    """Callback-style entry point shared with the other snippet generators.

    ``convert(request, callback)`` is accepted as shorthand for
    ``convert(request, None, callback)``. With a callback it is called exactly
    once as ``callback(error, snippet)``; without one the snippet is returned
    and malformed input raises.
    """
    if callable(options) and callback is None:
        options, callback = None, options
    resolved_input = options if isinstance(options, (Mapping, SnippetOptions)) else None

    try:
        snippet = render_snippet(request, resolved_input)
    except MalformedRequestError as exc:
        if callback is None:
            raise
        callback(exc, None)
        return None

    if callback is None:
        return snippet
    callback(None, snippet)
    return None
