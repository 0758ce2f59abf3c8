"""Utility for generating in-document Markdown links."""


def md_link(display: str, anchor: str) -> str:
    """Generate a link to a heading anchor, with code-formatted text."""
    return f"[ `{display}` ](#{anchor})"
