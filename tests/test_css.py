import pytest

from tabnav.css import sanitize_css


@pytest.mark.parametrize("css", [
    "body { color: red; }",
    "ul > li + li { margin: 0 }",
    "html { scroll-behavior: smooth; }",
    ".hero { background: url(https://img.example/a.png) no-repeat; }",
    "@media (max-width: 600px) { .grid { display: block; } }",
])
def test_ordinary_rules_pass_unchanged(css):
    assert sanitize_css(css) == css


def test_empty():
    assert sanitize_css("") == ""
    assert sanitize_css(None) == ""


def test_import_removed():
    out = sanitize_css('@import "https://evil.example/x.css";\nbody { color: red; }')
    assert "@import" not in out
    assert out == "body { color: red; }"


def test_closing_style_tag_and_markup_removed():
    out = sanitize_css("body { color: red; }</style><script>alert(1)</script>")
    assert out == "body { color: red; }"


def test_closing_tag_with_other_markup():
    out = sanitize_css("p { margin: 0 }</STYLE><img src=x onerror=alert(1)>")
    assert "<" not in out and "onerror" not in out
    assert out.startswith("p { margin: 0 }")


def test_expression_and_bindings_removed():
    out = sanitize_css("div { width: expression(alert(document.cookie)); behavior: url(x.htc); -moz-binding: url(x.xml#y); color: blue; }")
    assert "expression" not in out
    assert "behavior" not in out
    assert "binding" not in out
    assert "color: blue;" in out


def test_script_urls_neutralized():
    out = sanitize_css("a { background: url('javascript:alert(1)'); }")
    assert "javascript" not in out
    assert out == "a { background: none; }"


def test_escaped_import_removed():
    out = sanitize_css("@\\69mport url(https://evil.example/x.css);\nbody { color: red; }")
    assert out == "body { color: red; }"


def test_escaped_expression_removed():
    out = sanitize_css("div { width: e\\78pression(alert(1)); color: blue; }")
    assert "alert" not in out
    assert "color: blue;" in out


def test_harmless_escapes_kept_as_written():
    css = 'q::before { content: "\\201C"; }'
    assert sanitize_css(css) == css


def test_surrounding_whitespace_kept_when_nothing_removed():
    css = "\n  body { color: red; }\n"
    assert sanitize_css(css) == css
    assert sanitize_css("\n@import url(x.css);\nbody { color: red; }\n") == "\nbody { color: red; }\n"
