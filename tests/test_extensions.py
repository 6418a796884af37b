"""Tests for the interactive playground markup."""

from __future__ import annotations

from bs4 import BeautifulSoup

from spec_pages.generator.extensions import render_interactive_block


def _soup(html: str) -> BeautifulSoup:
    return BeautifulSoup(html, "html.parser")


def test_playground_escapes_title_and_inputs() -> None:
    html = render_interactive_block(
        '{"tag": "<b>x</b>"}\n---JMESPATH---\ntag | [?a < `2`]',
        title="<script>alert(1)</script> Demo",
        suffix="3",
    )
    soup = _soup(html)

    assert soup.select_one("script") is None, "title must be escaped"
    assert "&lt;script&gt;" in html
    button = soup.select_one("button.playground-toggle-button")
    assert button is not None
    assert button.get_text(strip=True) == "<script>alert(1)</script> Demo"
    json_input = soup.select_one("textarea#json-input-3")
    assert json_input is not None
    assert json_input.get_text() == '{"tag": "<b>x</b>"}'
    assert soup.select_one("textarea#json-input-3 b") is None
    query_input = soup.select_one("textarea#query-input-3")
    assert query_input is not None
    assert query_input.get_text() == "tag | [?a < `2`]"


def test_collapsed_playground_hides_content() -> None:
    soup = _soup(render_interactive_block('{"a": 1}\n---JMESPATH---\na'))
    button = soup.select_one("button")
    content = soup.select_one("#playground-content-1")
    assert button is not None
    assert content is not None
    assert button["aria-expanded"] == "false"
    assert button["aria-controls"] == "playground-content-1"
    assert content.has_attr("hidden")
    assert button.get_text(strip=True) == "Interactive Example"


def test_expanded_playground_shows_content() -> None:
    soup = _soup(render_interactive_block('{"a": 1}', expanded=True, title="Try it"))
    button = soup.select_one("button")
    content = soup.select_one("div.playground-content")
    assert button is not None
    assert content is not None
    assert button["aria-expanded"] == "true"
    assert not content.has_attr("hidden")
    assert soup.select_one("p.playground-error-inline") is None


def test_invalid_json_is_flagged() -> None:
    soup = _soup(render_interactive_block("{not json\n---JMESPATH---\nfoo"))
    json_input = soup.select_one("textarea.json-input")
    assert json_input is not None
    assert "invalid-json" in json_input["class"]
    warning = soup.select_one("p.playground-error-inline")
    assert warning is not None
    assert warning.get_text(strip=True) == "Initial JSON appears invalid."


def test_empty_json_is_not_flagged() -> None:
    soup = _soup(render_interactive_block("---JMESPATH---\nfoo"))
    json_input = soup.select_one("textarea.json-input")
    assert json_input is not None
    assert "invalid-json" not in json_input["class"]
    assert soup.select_one("p.playground-error-inline") is None
