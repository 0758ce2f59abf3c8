"""Utility for generating heading anchors the way Pandoc does."""

import re

WHITESPACE_RE = re.compile(r"\s+")
DISALLOWED_RE = re.compile(r"[^a-z0-9.\-]")


def anchor_slug(title: str) -> str:
    """Generate a heading identifier: whitespace runs to `-`, lower, keep [a-z0-9.-]."""
    s = WHITESPACE_RE.sub("-", title).lower()
    s = DISALLOWED_RE.sub("", s)
    return s or "section"
