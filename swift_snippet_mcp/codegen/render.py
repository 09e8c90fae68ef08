from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from typing import Any, Callable

from .model import Body, BodyMode, Request
from .options import SnippetOptions
from .sanitize import sanitize

logger = logging.getLogger(__name__)

# (nesting depth, text); depth is turned into indentation only when joining.
Line = tuple[int, str]

_BLANK: Line = (0, "")

_PREAMBLE: list[Line] = [
    (0, "import Foundation"),
    (0, "#if canImport(FoundationNetworking)"),
    (0, "import FoundationNetworking"),
    (0, "#endif"),
    _BLANK,
    (0, "let semaphore = DispatchSemaphore(value: 0)"),
    _BLANK,
]

_REDIRECT_BLOCKER: list[Line] = [
    (0, "class RedirectBlocker: NSObject, URLSessionTaskDelegate {"),
    (
        1,
        "func urlSession(_ session: URLSession, task: URLSessionTask,"
        " willPerformHTTPRedirection response: HTTPURLResponse, newRequest request: URLRequest,"
        " completionHandler: @escaping (URLRequest?) -> Void) {",
    ),
    (2, "completionHandler(nil)"),
    (1, "}"),
    (0, "}"),
    _BLANK,
    (0, "let session = URLSession(configuration: .default, delegate: RedirectBlocker(), delegateQueue: nil)"),
    _BLANK,
]

_MULTIPART_ASSEMBLY: list[Line] = [
    _BLANK,
    (0, 'let boundary = "Boundary-\\(UUID().uuidString)"'),
    (0, "var body = Data()"),
    (0, "for param in parameters {"),
    (1, 'let paramName = param["key"] ?? ""'),
    (1, 'body += Data("--\\(boundary)\\r\\n".utf8)'),
    (1, 'if param["type"] == "file" {'),
    (2, 'let fileURL = URL(fileURLWithPath: param["src"] ?? "")'),
    (2, "let fileData = (try? Data(contentsOf: fileURL)) ?? Data()"),
    (2, "let fileName = fileURL.lastPathComponent"),
    (
        2,
        'body += Data("Content-Disposition: form-data; name=\\"\\(paramName)\\";'
        ' filename=\\"\\(fileName)\\"\\r\\n".utf8)',
    ),
    (2, 'let contentType = param["contentType"] ?? "application/octet-stream"'),
    (2, 'body += Data("Content-Type: \\(contentType)\\r\\n\\r\\n".utf8)'),
    (2, "body += fileData"),
    (1, "} else {"),
    (2, 'body += Data("Content-Disposition: form-data; name=\\"\\(paramName)\\"\\r\\n".utf8)'),
    (2, 'if let contentType = param["contentType"] {'),
    (3, 'body += Data("Content-Type: \\(contentType)\\r\\n".utf8)'),
    (2, "}"),
    (2, 'let paramValue = param["value"] ?? ""'),
    (2, 'body += Data("\\r\\n\\(paramValue)".utf8)'),
    (1, "}"),
    (1, 'body += Data("\\r\\n".utf8)'),
    (0, "}"),
    (0, 'body += Data("--\\(boundary)--\\r\\n".utf8)'),
    (0, "let postData = body"),
]

_MULTIPART_CONTENT_TYPE = "multipart/form-data; boundary=\\(boundary)"
_URLENCODED_CONTENT_TYPE = "application/x-www-form-urlencoded"
_FILE_PLACEHOLDER = "<file contents here>"


@dataclass
class BodySegment:
    lines: list[Line] = field(default_factory=list)
    # (escaped value, escaped name) pairs added after the request's own headers.
    headers: list[tuple[str, str]] = field(default_factory=list)
    replaces_content_type: bool = False
    sends_payload: bool = False


def render_swift(request: Request, options: SnippetOptions) -> str:
    body = request.body
    segment = _BODY_EMITTERS[body.mode](request, body, options) if body is not None else BodySegment()
    logger.debug(
        "rendering %s %s (body mode %s)",
        request.method,
        request.url,
        body.mode.value if body is not None else "absent",
    )

    lines: list[Line] = list(_PREAMBLE)
    if segment.lines:
        lines.extend(segment.lines)
        lines.append(_BLANK)

    lines.append(
        (
            0,
            f'var request = URLRequest(url: URL(string: "{sanitize(request.url)}")!,'
            f" timeoutInterval: {_timeout_literal(options)})",
        )
    )
    lines.extend(_header_lines(request, segment))
    lines.append((0, f'request.httpMethod = "{sanitize(request.method)}"'))
    if segment.sends_payload:
        lines.append((0, "request.httpBody = postData"))
    lines.append(_BLANK)

    session = "URLSession.shared"
    if not options.follow_redirect:
        lines.extend(_REDIRECT_BLOCKER)
        session = "session"

    lines.extend(_task_lines(session))
    lines.append(_BLANK)
    lines.append((0, "task.resume()"))
    lines.append((0, "semaphore.wait()"))
    return join_lines(lines, options.indent_unit)


def join_lines(lines: list[Line], indent_unit: str) -> str:
    rendered = [indent_unit * depth + text if text else "" for depth, text in lines]
    while rendered and not rendered[-1]:
        rendered.pop()
    return "\n".join(rendered)


def _timeout_literal(options: SnippetOptions) -> str:
    if options.request_timeout == 0:
        return "Double.infinity"
    return repr(options.request_timeout / 1000)


def _header_lines(request: Request, segment: BodySegment) -> list[Line]:
    pairs: list[tuple[str, str]] = []
    for header in request.enabled_headers():
        if segment.replaces_content_type and header.key.lower() == "content-type":
            continue
        pairs.append((sanitize(header.value, "header"), sanitize(header.key, "header")))
    pairs.extend(segment.headers)
    return [(0, f'request.addValue("{value}", forHTTPHeaderField: "{name}")') for value, name in pairs]


def _task_lines(session: str) -> list[Line]:
    return [
        (0, f"let task = {session}.dataTask(with: request) {{ data, response, error in"),
        (1, "guard let data = data else {"),
        (2, "print(String(describing: error))"),
        (2, "semaphore.signal()"),
        (2, "return"),
        (1, "}"),
        (1, "print(String(data: data, encoding: .utf8)!)"),
        (1, "semaphore.signal()"),
        (0, "}"),
    ]


def _string_payload(literal_lines: list[Line]) -> list[Line]:
    return literal_lines + [(0, "let postData = parameters.data(using: .utf8)")]


def _emit_raw(request: Request, body: Body, options: SnippetOptions) -> BodySegment:
    text = body.raw if isinstance(body.raw, str) else ""
    if options.trim_request_body:
        text = text.strip()
    if not text:
        return BodySegment()

    if not options.trim_request_body and "\n" in text:
        content = sanitize(text, "multiline")
        literal = [(0, 'let parameters = """')]
        literal.extend((0, line) for line in content.split("\n"))
        literal.append((0, '"""'))
    else:
        literal = [(0, f'let parameters = "{sanitize(text, "raw")}"')]
    return BodySegment(lines=_string_payload(literal), sends_payload=True)


def _emit_urlencoded(request: Request, body: Body, options: SnippetOptions) -> BodySegment:
    trim = options.trim_request_body
    pairs = [
        f"{sanitize(param.key, 'urlencoded', trim)}={sanitize(param.value, 'urlencoded', trim)}"
        for param in body.params
        if not param.disabled
    ]
    if not pairs:
        return BodySegment()
    headers = []
    if not request.has_header("Content-Type"):
        headers.append((_URLENCODED_CONTENT_TYPE, "Content-Type"))
    return BodySegment(
        lines=_string_payload([(0, f'let parameters = "{"&".join(pairs)}"')]),
        headers=headers,
        sends_payload=True,
    )


def _emit_formdata(request: Request, body: Body, options: SnippetOptions) -> BodySegment:
    trim = options.trim_request_body
    params = [param for param in body.form if not param.disabled]
    if not params:
        return BodySegment()

    lines: list[Line] = [(0, "let parameters: [[String: String]] = [")]
    for index, param in enumerate(params):
        fields = [("key", sanitize(param.key, "formdata", trim))]
        if param.type == "file":
            fields.append(("src", sanitize(param.src, "formdata")))
        else:
            fields.append(("value", sanitize(param.value, "formdata", trim)))
        fields.append(("type", param.type))
        if param.content_type:
            fields.append(("contentType", sanitize(param.content_type, "formdata")))

        lines.append((1, "["))
        for position, (name, value) in enumerate(fields):
            separator = "," if position < len(fields) - 1 else ""
            lines.append((2, f'"{name}": "{value}"{separator}'))
        lines.append((1, "]," if index < len(params) - 1 else "]"))
    lines.append((0, "]"))
    lines.extend(_MULTIPART_ASSEMBLY)

    return BodySegment(
        lines=lines,
        headers=[(_MULTIPART_CONTENT_TYPE, "Content-Type")],
        replaces_content_type=True,
        sends_payload=True,
    )


def _emit_graphql(request: Request, body: Body, options: SnippetOptions) -> BodySegment:
    graphql = body.graphql or {}
    query = graphql.get("query")
    query = query if isinstance(query, str) else ""
    if options.trim_request_body:
        query = query.strip()
    try:
        payload = _graphql_payload(query, _graphql_variables(graphql.get("variables")))
    except ValueError:
        logger.debug("graphql variables hold non-finite numbers, sending an empty object")
        payload = _graphql_payload(query, {})
    literal = [(0, f'let parameters = "{sanitize(payload, "raw")}"')]
    return BodySegment(lines=_string_payload(literal), sends_payload=True)


def _graphql_payload(query: str, variables: Any) -> str:
    return json.dumps(
        {"query": query, "variables": variables},
        ensure_ascii=False,
        separators=(",", ":"),
        allow_nan=False,
        default=str,
    )


def _graphql_variables(variables: Any) -> Any:
    if isinstance(variables, str):
        if not variables.strip():
            return {}
        try:
            return json.loads(variables)
        except ValueError:
            logger.debug("graphql variables are not valid JSON, sending an empty object")
            return {}
    if isinstance(variables, (dict, list)):
        return variables
    return {}


def _emit_file(request: Request, body: Body, options: SnippetOptions) -> BodySegment:
    src = sanitize(body.src) or "unknown"
    lines: list[Line] = [
        (0, f'// File content is not inlined, read "{src}" into postData instead'),
        (0, f'let parameters = "{_FILE_PLACEHOLDER}"'),
    ]
    return BodySegment(lines=_string_payload(lines), sends_payload=True)


def _emit_unsupported(request: Request, body: Body, options: SnippetOptions) -> BodySegment:
    mode = sanitize(body.declared_mode) or "unknown"
    logger.debug("body mode %r has no Swift rendering", body.declared_mode)
    return BodySegment(lines=[(0, f'// Body mode "{mode}" is not supported, the request is sent without a body')])


def _emit_none(request: Request, body: Body, options: SnippetOptions) -> BodySegment:
    return BodySegment()


_BODY_EMITTERS: dict[BodyMode, Callable[[Request, Body, SnippetOptions], BodySegment]] = {
    BodyMode.RAW: _emit_raw,
    BodyMode.URLENCODED: _emit_urlencoded,
    BodyMode.FORMDATA: _emit_formdata,
    BodyMode.FILE: _emit_file,
    BodyMode.GRAPHQL: _emit_graphql,
    BodyMode.NONE: _emit_none,
    BodyMode.UNSUPPORTED: _emit_unsupported,
}
