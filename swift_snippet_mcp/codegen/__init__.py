from .engine import SnippetEngine
from .options import SnippetOptions, get_options, resolve_options
from .sanitize import sanitize
from .snippets import convert, render_snippet
from .validate import MalformedRequestError, RequestCheck, validate_request

__all__ = [
    "MalformedRequestError",
    "RequestCheck",
    "SnippetEngine",
    "SnippetOptions",
    "convert",
    "get_options",
    "render_snippet",
    "resolve_options",
    "sanitize",
    "validate_request",
]
