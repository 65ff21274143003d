"""Rich-text HTML sanitizing shared by notes and proposals."""

import nh3

# Allowed HTML tags for the rich text editor
ALLOWED_TAGS = {
    "p", "br", "strong", "em", "u", "s", "ul", "ol", "li", "a",
    "blockquote", "h1", "h2", "h3", "code", "pre",
}
ALLOWED_ATTRIBUTES = {"a": {"href", "target"}}


def sanitize_html(html: str | None) -> str | None:
    """Sanitize HTML to prevent XSS, allowing only safe rich text tags."""
    if html is None:
        return None
    return nh3.clean(html, tags=ALLOWED_TAGS, attributes=ALLOWED_ATTRIBUTES)
