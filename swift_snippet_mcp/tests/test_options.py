from __future__ import annotations

from swift_snippet_mcp.codegen.options import SnippetOptions, get_options, resolve_options


def test_get_options_returns_catalog_in_stable_order():
    options = get_options()
    assert isinstance(options, list)
    assert [option["id"] for option in options] == [
        "indentCount",
        "indentType",
        "requestTimeout",
        "trimRequestBody",
    ]
    for option in options:
        assert {"name", "id", "type", "default", "description"} <= set(option)


def test_get_options_returns_a_fresh_copy():
    first = get_options()
    first[0]["default"] = 99
    first.append({"id": "extra"})
    assert get_options()[0]["default"] == 2
    assert len(get_options()) == 4


def test_resolve_defaults():
    assert resolve_options() == SnippetOptions(
        indent_type="Space",
        indent_count=2,
        request_timeout=0,
        follow_redirect=True,
        trim_request_body=False,
    )
    assert resolve_options(None).indent_unit == "  "


def test_resolve_overrides_and_ignores_unknown_ids():
    resolved = resolve_options(
        {
            "indentType": "Tab",
            "indentCount": 1,
            "requestTimeout": 2000,
            "followRedirect": False,
            "trimRequestBody": True,
            "somethingElse": "ignored",
        }
    )
    assert resolved.indent_unit == "\t"
    assert resolved.request_timeout == 2000
    assert resolved.follow_redirect is False
    assert resolved.trim_request_body is True


def test_invalid_values_fall_back_to_defaults():
    resolved = resolve_options(
        {
            "indentType": "Emoji",
            "indentCount": 0,
            "requestTimeout": -5,
            "followRedirect": "no",
            "trimRequestBody": 1,
        }
    )
    assert resolved == SnippetOptions()


def test_booleans_are_not_counts():
    assert resolve_options({"indentCount": True}).indent_count == 2
    assert resolve_options({"requestTimeout": False}).request_timeout == 0


def test_enum_match_is_case_insensitive_and_floats_must_be_whole():
    assert resolve_options({"indentType": "tab"}).indent_type == "Tab"
    assert resolve_options({"indentCount": 4.0}).indent_count == 4
    assert resolve_options({"indentCount": 2.5}).indent_count == 2


def test_non_mapping_options_resolve_to_defaults():
    assert resolve_options(["indentType", "Tab"]) == SnippetOptions()
    existing = SnippetOptions(indent_count=3)
    assert resolve_options(existing) is existing
