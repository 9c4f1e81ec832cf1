"""Helpers for reading the noisy stdout and stderr of the ledger client tools."""

import math
from typing import Any
from typing import Optional


def first_non_blank_line(text: Optional[str], fallback: str) -> str:
    """Return the first non-blank line of text (trimmed), or fallback."""
    if not text:
        return fallback
    for line in text.splitlines():
        if line.strip():
            return line.strip()
    return fallback


def extract_json_array(stdout: Optional[str]) -> str:
    """
    Cut the JSON array out of tool output.

    The tools print connection banners around their payload, so the array is
    taken from the first '[' to the last ']'. Missing or inverted brackets
    yield an empty array.
    """
    if not stdout or not stdout.strip():
        return "[]"
    start = stdout.find("[")
    end = stdout.rfind("]")
    if start < 0 or end <= start:
        return "[]"
    return stdout[start : end + 1].strip()


def extract_json_object(stdout: Optional[str]) -> Optional[str]:
    """Cut the JSON object (first '{' to last '}') out of tool output, or None if there is none."""
    if not stdout or not stdout.strip():
        return None
    start = stdout.find("{")
    end = stdout.rfind("}")
    if start < 0 or end <= start:
        return None
    return stdout[start : end + 1].strip()


def as_text(value: Any) -> str:
    """Render a JSON scalar as text ('' for null)."""
    if value is None:
        return ""
    return str(value)


def as_optional_int(value: Any) -> Optional[int]:
    """
    Read an integer that may arrive as a JSON number or a numeric string.

    Anything else (booleans, blank or non-numeric text, NaN, infinities, objects) is None.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if math.isfinite(value) else None
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        try:
            return int(text)
        except ValueError:
            try:
                number = float(text)
            except ValueError:
                return None
            return int(number) if math.isfinite(number) else None
    return None


def cli_arg(value: Any) -> str:
    """Render a positional tool argument. Blank values become '-' so positions are kept."""
    text = as_text(value).strip()
    return text if text else "-"
