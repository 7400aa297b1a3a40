"""Tests for artifact extraction from upstream text."""

from __future__ import annotations

import pytest

from sitesmith.generation.extractor import (
    NoRecognizableOutputError,
    default_path,
    extract_artifacts,
    recognize_loose_code,
)
from sitesmith.models.artifact import ArtifactCategory
from tests.conftest import LANDING_PAGE_TEXT


class TestDefaultPath:
    @pytest.mark.parametrize(
        "language, path",
        [
            ("html", "index.html"),
            ("HTML", "index.html"),
            ("css", "style.css"),
            ("javascript", "script.js"),
            ("js", "script.js"),
            ("python", "file.python"),
            ("json", "file.json"),
        ],
    )
    def test_defaults(self, language: str, path: str) -> None:
        assert default_path(language) == path


class TestFencedExtraction:
    def test_landing_page(self) -> None:
        artifacts = extract_artifacts(LANDING_PAGE_TEXT)
        assert [(a.path, a.kind) for a in artifacts] == [
            ("index.html", "html"),
            ("style.css", "css"),
            ("script.js", "javascript"),
        ]
        assert artifacts[0].content.startswith("<!DOCTYPE html>")
        assert "<!-- index.html -->" not in artifacts[0].content
        assert artifacts[1].content.startswith("body { margin: 0;")

    def test_n_blocks_with_distinct_paths(self) -> None:
        names = ["a.html", "b.css", "c.js", "d.json"]
        languages = ["html", "css", "js", "json"]
        text = "\n".join(
            f"```{lang}\n// {name}\ncontent of {name}\n```"
            for lang, name in zip(languages, names, strict=True)
        )
        artifacts = extract_artifacts(text)
        assert [a.path for a in artifacts] == names
        assert [a.kind for a in artifacts] == languages
        assert [a.content for a in artifacts] == [f"content of {n}" for n in names]

    def test_empty_blocks_are_dropped(self) -> None:
        text = "```html\n<p>x</p>\n```\n```css\n/* style.css */\n   \n```\n```js\n```"
        artifacts = extract_artifacts(text)
        assert [a.path for a in artifacts] == ["index.html"]

    def test_default_paths_without_comment(self) -> None:
        text = "```HTML\n<p>x</p>\n```\n```js\nrun();\n```\n```python\nprint(1)\n```"
        artifacts = extract_artifacts(text)
        assert [(a.path, a.kind) for a in artifacts] == [
            ("index.html", "html"),
            ("script.js", "js"),
            ("file.python", "python"),
        ]

    def test_blank_comment_is_content(self) -> None:
        artifacts = extract_artifacts("```css\n/*  */\nbody {}\n```")
        assert artifacts[0].path == "style.css"
        assert artifacts[0].content == "/*  */\nbody {}"

    def test_multiline_banner_comment_kept(self) -> None:
        text = "```css\n/*\n * Main styles\n */\nbody { margin: 0; }\n```"
        artifacts = extract_artifacts(text)
        assert artifacts[0].path == "style.css"
        assert artifacts[0].content == "/*\n * Main styles\n */\nbody { margin: 0; }"

    def test_multiline_html_comment_kept(self) -> None:
        text = "```html\n<!--\n  Landing page\n-->\n<div>Hi</div>\n```"
        artifacts = extract_artifacts(text)
        assert artifacts[0].path == "index.html"
        assert artifacts[0].content.startswith("<!--\n  Landing page\n-->")

    def test_duplicate_paths_are_kept(self) -> None:
        text = "```html\n<p>first</p>\n```\n```html\n<p>second</p>\n```"
        artifacts = extract_artifacts(text)
        assert [a.path for a in artifacts] == ["index.html", "index.html"]
        assert [a.content for a in artifacts] == ["<p>first</p>", "<p>second</p>"]

    def test_only_empty_blocks_fail_without_fallback(self) -> None:
        text = "```html\n\n```\n<!DOCTYPE html><html><body></body></html>"
        with pytest.raises(NoRecognizableOutputError):
            extract_artifacts(text)

    def test_categories(self) -> None:
        categories = [a.category for a in extract_artifacts(LANDING_PAGE_TEXT)]
        assert categories == [
            ArtifactCategory.MARKUP,
            ArtifactCategory.STYLE,
            ArtifactCategory.SCRIPT,
        ]


class TestLooseRecognition:
    def test_document_only_yields_one_markup_artifact(self) -> None:
        text = (
            "Sure! Here is the page:\n"
            "<!DOCTYPE html>\n<html><head><style>body { margin: 0; }</style></head>"
            "<body><script>const x = 1; console.log(x);</script></body></html>\n"
            "Let me know if you need changes."
        )
        artifacts = extract_artifacts(text)
        assert len(artifacts) == 1
        assert artifacts[0].path == "index.html"
        assert artifacts[0].kind == "html"
        assert artifacts[0].content.startswith("<!DOCTYPE html>")
        assert artifacts[0].content.endswith("</html>")

    def test_doctype_is_case_insensitive(self) -> None:
        artifacts = recognize_loose_code("<!doctype html><HTML><body>x</body></HTML>")
        assert [a.kind for a in artifacts] == ["html"]

    def test_style_and_script_spans(self) -> None:
        text = (
            "body { margin: 0; }\n.hero { padding: 2rem; }\n"
            "const button = document.querySelector('.cta');\n"
            "button.addEventListener('click', () => alert('hi'));\n"
        )
        artifacts = recognize_loose_code(text)
        assert [(a.path, a.kind) for a in artifacts] == [
            ("style.css", "css"),
            ("script.js", "javascript"),
        ]
        assert artifacts[0].content == "body { margin: 0; }\n.hero { padding: 2rem; }"
        assert artifacts[1].content.startswith("const button")
        assert artifacts[1].content.endswith("alert('hi'));")

    def test_script_before_style(self) -> None:
        text = "function init() { return 1; }\n#main { color: red; }"
        artifacts = recognize_loose_code(text)
        by_kind = {a.kind: a.content for a in artifacts}
        assert by_kind["javascript"] == "function init() { return 1; }"
        assert by_kind["css"] == "#main { color: red; }"

    def test_document_plus_outside_style(self) -> None:
        text = "<!DOCTYPE html><html><body></body></html>\n.card { border: 1px solid; }"
        artifacts = recognize_loose_code(text)
        assert [a.kind for a in artifacts] == ["html", "css"]

    def test_unclosed_document_is_not_markup(self) -> None:
        assert recognize_loose_code("<!DOCTYPE html><html><body>") == []

    def test_prose_mentioning_code_words(self) -> None:
        text = "I will write a function for you and let the page load. Consider the body of work."
        assert recognize_loose_code(text) == []


class TestNoOutput:
    @pytest.mark.parametrize(
        "text",
        [
            "",
            "I'm sorry, I can't help with that.",
            "Here is a description of a website with a header and a footer.",
        ],
    )
    def test_unrecognizable(self, text: str) -> None:
        with pytest.raises(NoRecognizableOutputError):
            extract_artifacts(text)
