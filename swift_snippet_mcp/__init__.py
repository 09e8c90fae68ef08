"""Swift URLSession snippet generation for HTTP request descriptions."""

from .codegen import (
    MalformedRequestError,
    SnippetEngine,
    convert,
    get_options,
    render_snippet,
    sanitize,
    validate_request,
)

__all__ = [
    "MalformedRequestError",
    "SnippetEngine",
    "convert",
    "get_options",
    "render_snippet",
    "sanitize",
    "validate_request",
]
