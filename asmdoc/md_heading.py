"""Utility for generating Markdown headings."""


def md_heading(level: int, text: str) -> str:
    return f"{'#' * level} {text}"
