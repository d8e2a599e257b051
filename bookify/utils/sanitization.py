import html
import re
from typing import Optional

_CONTROL_CHARS = re.compile(r"[\x00-\x08\x0B\x0C\x0E-\x1F\x7F]")


def sanitize_string(value: Optional[str]) -> Optional[str]:
    """
    Sanitize a string by escaping HTML special characters to prevent XSS.
    Returns None if input is None.
    """
    if value is None:
        return None
    if not isinstance(value, str):
        return value
    return html.escape(_CONTROL_CHARS.sub("", value).strip(), quote=True)


def sanitize_updates(updates: dict, fields: tuple) -> dict:
    """Escape the listed text fields of an update payload, leaving the rest untouched"""
    return {
        key: sanitize_string(value) if key in fields and isinstance(value, str) else value
        for key, value in updates.items()
    }


def like_pattern(term: str) -> str:
    """Lower-cased '%term%' with LIKE wildcards escaped; pair with escape="\\\\" """
    escaped = term.lower().replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"
