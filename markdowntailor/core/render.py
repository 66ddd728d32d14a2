import logging
import re
from typing import Dict, Optional

import bleach
from bs4 import BeautifulSoup
from markdown_it import MarkdownIt
from pydantic import ValidationError as StylesError

from .errors import ValidationError
from .models.resume import MAX_LENGTHS
from .templates import ResumeStyles

logger = logging.getLogger(__name__)

# Raw HTML stays enabled so templates can use <span class="right"> for dates;
# bleach strips everything outside the allow lists afterwards.
_md = MarkdownIt("commonmark", {"html": True}).enable("table").enable("strikethrough")
_ALLOWED_TAGS = [
    "p", "br", "hr", "pre", "code", "blockquote",
    "ul", "ol", "li",
    "h1", "h2", "h3", "h4", "h5", "h6",
    "em", "strong", "del", "s", "a", "img", "span", "div",
    "table", "thead", "tbody", "tr", "th", "td",
]
_ALLOWED_ATTRS = {
    "a": ["href", "title", "target", "rel"],
    "img": ["src", "alt", "title"],
    "span": ["class"],
    "div": ["class"],
}

# Declarations outside this list are dropped from custom CSS
_SAFE_CSS_PROPERTIES = frozenset({
    "color", "background-color", "background",
    "font-family", "font-size", "font-weight", "font-style",
    "text-align", "text-decoration", "text-transform", "text-indent",
    "line-height", "letter-spacing", "word-spacing", "white-space", "word-wrap", "word-break",
    "margin", "margin-top", "margin-right", "margin-bottom", "margin-left",
    "padding", "padding-top", "padding-right", "padding-bottom", "padding-left",
    "border", "border-top", "border-right", "border-bottom", "border-left",
    "border-color", "border-width", "border-style", "border-radius",
    "width", "height", "max-width", "max-height", "min-width", "min-height",
    "display", "position", "top", "right", "bottom", "left", "float", "clear",
    "overflow", "visibility", "opacity", "z-index", "vertical-align",
    "list-style", "list-style-type", "list-style-position",
    "table-layout", "border-collapse", "border-spacing",
    "page-break-before", "page-break-after", "page-break-inside",
})
_DANGEROUS_CSS_VALUES = (
    "javascript:", "vbscript:", "data:", "expression(", "eval(",
    "behavior:", "-moz-binding", "binding:", "@import",
)
_CSS_COMMENT = re.compile(r"/\*.*?\*/", re.DOTALL)
_CSS_RULE = re.compile(r"([^{}]*)\{([^{}]*)\}")
_UNSAFE_SELECTOR_CHARS = re.compile(r"[<@\\;]")
_UNSAFE_VALUE_CHARS = re.compile(r"[<>\\{}]")

_UNSAFE_FONT_CHARS = re.compile(r"[<>\"'{};\\]")
SYSTEM_FONTS = {"Georgia", "Times New Roman", "Arial"}
GOOGLE_FONT_URL = "https://fonts.googleapis.com/css2?family={family}:wght@300;400;500;600;700&display=swap"


def _force_links_new_tab(html: str) -> str:
    soup = BeautifulSoup(html, "html.parser")
    for a in soup.find_all("a"):
        if not (a.get("href") or "").strip():
            continue
        a["target"] = "_blank"
        a["rel"] = "noopener nofollow"
    return str(soup)


def render_markdown(text: str) -> str:
    html = _md.render(text or "")
    html = _force_links_new_tab(html)
    return bleach.clean(
        html,
        tags=_ALLOWED_TAGS,
        attributes=_ALLOWED_ATTRS,
        strip=True,
        protocols=["http", "https", "mailto", "tel"],
    )


def _safe_declaration(declaration: str) -> Optional[str]:
    name, sep, value = declaration.partition(":")
    name, value = name.strip().lower(), value.strip()
    if not sep or not value or name not in _SAFE_CSS_PROPERTIES:
        return None
    if _UNSAFE_VALUE_CHARS.search(value):
        return None
    compact = re.sub(r"\s+", "", value).lower()
    if any(bad in compact for bad in _DANGEROUS_CSS_VALUES):
        return None
    return f"{name}: {value}"


def sanitize_css(css: str) -> str:
    """Rebuild ``css`` from allowlisted declarations in plain style rules.

    Only ``selector { property: value; }`` rules survive. At-rules, comments
    and anything outside a rule are dropped, and no ``<`` is ever emitted, so
    the result can be placed inside a ``<style>`` element.
    """
    css = css or ""
    limit = MAX_LENGTHS["css"]
    if len(css) > limit:
        raise ValidationError(f"Css too large: {len(css)} characters, limit {limit}")
    rules = []
    for selector, body in _CSS_RULE.findall(_CSS_COMMENT.sub("", css)):
        selector = " ".join(selector.split())
        if not selector or _UNSAFE_SELECTOR_CHARS.search(selector):
            continue
        declarations = [d for d in map(_safe_declaration, body.split(";")) if d]
        if declarations:
            rules.append(f"{selector} {{ {'; '.join(declarations)}; }}")
    return "\n".join(rules)


def custom_properties(styles: ResumeStyles) -> Dict[str, str]:
    family = _UNSAFE_FONT_CHARS.sub("", styles.font_family.replace("+", " "))
    return {
        "--resume-font-family": f'"{family}", -apple-system, BlinkMacSystemFont, sans-serif',
        "--resume-font-size": f"{styles.font_size:g}px",
        "--resume-line-height": f"{styles.line_height:g}",
        "--resume-margin-v": f"{styles.margin_v:g}px",
        "--resume-margin-h": f"{styles.margin_h:g}px",
        "--resume-text-color": "#333333",
        "--resume-link-color": "#0066cc",
    }


def font_url(styles: ResumeStyles) -> Optional[str]:
    family = styles.font_family.replace("+", " ")
    if family in SYSTEM_FONTS:
        return None
    return GOOGLE_FONT_URL.format(family=family.replace(" ", "+"))


def preview_context(markdown: str, css: str, styles: str) -> dict:
    """Template variables for rendering a resume as a standalone page."""
    try:
        parsed = ResumeStyles.parse(styles)
    except StylesError:
        logger.warning("Ignoring malformed resume styles: %.80s", styles)
        parsed = ResumeStyles()
    return {
        "body_html": render_markdown(markdown),
        "custom_css": sanitize_css(css),
        "properties": custom_properties(parsed),
        "font_url": font_url(parsed),
        "paper_size": parsed.paper_size,
    }
