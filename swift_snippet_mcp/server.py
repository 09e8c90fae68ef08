from __future__ import annotations

import json
import logging
import os
import sys
from typing import Any

from fastmcp import FastMCP

from .codegen import SnippetEngine

logger = logging.getLogger(__name__)


def _load_default_options(raw: str | None) -> dict[str, Any]:
    if not raw:
        return {}
    try:
        parsed = json.loads(raw)
    except ValueError:
        logger.warning("SNIPPET_DEFAULT_OPTIONS is not valid JSON, ignoring it")
        return {}
    if not isinstance(parsed, dict):
        logger.warning("SNIPPET_DEFAULT_OPTIONS must be a JSON object, ignoring it")
        return {}
    return parsed


mcp = FastMCP("swift-snippet-mcp")
engine = SnippetEngine(default_options=_load_default_options(os.getenv("SNIPPET_DEFAULT_OPTIONS")))


@mcp.tool(name="swift_generate_snippet")
def swift_generate_snippet(request: dict[str, Any], options: dict[str, Any] | None = None) -> dict[str, Any]:
    """Render a request description as a Swift URLSession snippet."""
    return engine.snippet_generate(request, options)


@mcp.tool(name="swift_get_options")
def swift_get_options() -> dict[str, Any]:
    """List the snippet options (id, type, default) in their stable order."""
    return engine.get_options()


@mcp.tool(name="swift_convert_collection")
def swift_convert_collection(path: str, options: dict[str, Any] | None = None) -> dict[str, Any]:
    """Render every request of a JSON or YAML collection file."""
    return engine.collection_generate(path, options)


app = mcp.http_app()


def _configure_logging() -> None:
    level = os.getenv("SNIPPET_LOG_LEVEL", "WARNING").upper()
    logging.basicConfig(
        level=getattr(logging, level, logging.WARNING),
        stream=sys.stderr,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def _print_banner() -> None:
    sys.stderr.write("swift-snippet-mcp ready. Tools: swift_generate_snippet, swift_get_options, ")
    sys.stderr.write("swift_convert_collection\n")
    if engine.default_options:
        sys.stderr.write(f"Default options: {json.dumps(engine.default_options, sort_keys=True)}\n")
    sys.stderr.flush()


if __name__ == "__main__":
    _configure_logging()
    _print_banner()
    mode = os.getenv("MCP_TRANSPORT", "stdio")
    if mode == "http":
        mcp.run(
            transport="http",
            host=os.getenv("MCP_HOST", "0.0.0.0"),  # nosec B104
            port=int(os.getenv("PORT", "8000")),
        )
    else:
        mcp.run()
