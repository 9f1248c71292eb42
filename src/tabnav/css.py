"""Sanitizer for admin-supplied custom CSS.

The value is injected into a ``<style>`` element of every rendered page, and
may come from an import of unknown provenance, so it is always cleaned here
first. Ordinary rules pass through untouched; only constructs that can leave
the style context or run script are removed.
"""
import logging
import re

logger = logging.getLogger(__name__)

# Whole script/style-like blocks smuggled in after a closing tag.
MARKUP_BLOCK_RE = re.compile(r"<\s*(script|iframe|object|embed|svg|style)\b[^>]*>.*?<\s*/\s*\1\s*>", re.I | re.S)
TAG_RE = re.compile(r"<\s*/?\s*[a-zA-Z!][^>]*>?", re.S)
COMMENT_MARKERS_RE = re.compile(r"<!--|-->|<!\[CDATA\[|\]\]>")
IMPORT_RE = re.compile(r"@import\b[^;{}]*(;|$)\s*", re.I | re.M)
CHARSET_RE = re.compile(r"@charset\b[^;{}]*(;|$)\s*", re.I | re.M)
EXPRESSION_RE = re.compile(r"expression\s*\(", re.I)
BINDING_DECL_RE = re.compile(r"(?<![\w-])(-moz-binding|behavior)\s*:[^;}]*;?\s*", re.I)
SCRIPT_URL_RE = re.compile(r"url\s*\(\s*['\"]?\s*(?:javascript|vbscript|data\s*:\s*text/html)(?:[^()]|\([^()]*\))*\)", re.I)
ESCAPE_RE = re.compile(r"\\(?:([0-9a-fA-F]{1,6})(?:\r\n|[ \t\r\n\f])?|(.))", re.S)


def _strip_expressions(css: str) -> str:
    # expression( ... ) may nest parentheses; drop through the matching close
    out = []
    pos = 0
    for m in EXPRESSION_RE.finditer(css):
        if m.start() < pos:
            continue
        out.append(css[pos:m.start()])
        depth = 1
        i = m.end()
        while i < len(css) and depth:
            if css[i] == "(":
                depth += 1
            elif css[i] == ")":
                depth -= 1
            i += 1
        pos = i
    out.append(css[pos:])
    return "".join(out)


def _unescape(css: str) -> str:
    """Decode CSS escapes so escaped keywords (``@\\69mport``) match the patterns."""
    def decode(m):
        if m.group(1) is None:
            return "" if m.group(2) == "\n" else m.group(2)
        cp = int(m.group(1), 16)
        return chr(cp) if 0 < cp <= 0x10FFFF and not 0xD800 <= cp <= 0xDFFF else "\ufffd"
    return ESCAPE_RE.sub(decode, css)


def _clean(text: str) -> str:
    text = MARKUP_BLOCK_RE.sub("", text)
    text = TAG_RE.sub("", text)
    text = COMMENT_MARKERS_RE.sub("", text)
    text = text.replace("<", "")
    text = IMPORT_RE.sub("", text)
    text = CHARSET_RE.sub("", text)
    text = _strip_expressions(text)
    text = BINDING_DECL_RE.sub("", text)
    return SCRIPT_URL_RE.sub("none", text)


def sanitize_css(css: str | None) -> str:
    if not css:
        return ""
    text = _clean(css.replace("\x00", ""))
    if "\\" in text:
        # escapes stay as written unless decoding them exposes a construct
        decoded = _unescape(text)
        cleaned = _clean(decoded)
        if cleaned != decoded:
            text = cleaned
    if text != css:
        logger.info("Custom CSS was sanitized (%d -> %d chars)", len(css), len(text))
    return text
