"""HTML entity escaping for user-supplied text rendered as markup."""

import re
from datetime import datetime

# Order matters: '&' first so the entities produced below are not re-escaped.
_ESCAPES = (
    ("&", "&amp;"),
    ("<", "&lt;"),
    (">", "&gt;"),
    ('"', "&quot;"),
    ("'", "&#x27;"),
    ("/", "&#x2F;"),
)

_ENTITY_RE = re.compile(r"&(amp|lt|gt|quot|#x27|#x2F);")
_UNESCAPES = {entity[1:-1]: char for char, entity in _ESCAPES}


def sanitize_for_display(text: str | None) -> str:
    """Escape ``& < > " ' /`` as HTML entities.

    Apply exactly once per render, to quote text and author name alike, and
    never store the result: escaping already escaped text double-encodes it
    (``&amp;`` becomes ``&amp;amp;``).

    Args:
        text: Raw user-supplied text.

    Returns:
        str: Escaped text, or an empty string for empty input.
    """
    if not text:
        return ""
    for char, entity in _ESCAPES:
        text = text.replace(char, entity)
    return text


def unescape_display_text(text: str) -> str:
    """Reverse :func:`sanitize_for_display`."""
    return _ENTITY_RE.sub(lambda match: _UNESCAPES[match.group(1)], text)


def render_quote_card(quote_text: str, author_name: str | None, created_at: datetime) -> str:
    """Render a quote as an HTML fragment for embedding.

    Both user-supplied fields go through :func:`sanitize_for_display` here and
    nowhere else; callers pass the stored (raw) values.
    """
    author = sanitize_for_display(author_name or "Unknown")
    return (
        '<figure class="quote-card">'
        f"<blockquote>&quot;{sanitize_for_display(quote_text)}&quot;</blockquote>"
        f"<figcaption>&mdash; {author}</figcaption>"
        f'<time datetime="{created_at.isoformat()}">{created_at.strftime("%b %d, %Y")}</time>'
        "</figure>"
    )
