"""Utility for generating Markdown code blocks."""

CODE_LANGUAGE = "csharp"


def md_codeblock(code: str, lang: str = CODE_LANGUAGE) -> str:
    """Generate a fenced Markdown code block."""
    return f"""```{lang}
{code.rstrip()}
```"""
