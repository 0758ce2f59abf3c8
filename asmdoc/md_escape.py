"""Utility for escaping text embedded in Markdown."""

import html


def md_escape(s: str) -> str:
    """Escape `&`, `<`, `>` and `"` as HTML entities."""
    return html.escape(s, quote=False).replace('"', "&quot;")
