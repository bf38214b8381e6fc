"""Placeholder substitution for field and filename templates."""

import math
import re

from autodraw.types import CellValue, Row, SubstitutionPolicy

PLACEHOLDER_PATTERN = re.compile(r"\{([^{}]+)\}")
INDEX_PATTERN = re.compile(r"index(?::(\d+)d)?")
LEFTOVER_PATTERN = re.compile(r"\{[^}]+\}")


def format_cell(value: CellValue) -> str | None:
    """
    Render a cell value the way it should appear on a card.

    Integral floats lose their trailing ".0" (spreadsheets hand back 3.0 for 3),
    booleans render lowercase.

    Args:
        value: Cell value from a row.

    Returns:
        String form, or None when the value counts as absent (None or NaN).
    """
    if value is None:
        return None
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float):
        if math.isnan(value):
            return None
        if value.is_integer():
            return str(int(value))
        return repr(value)
    return str(value)


def format_index(index: int, width: str | None) -> str:
    """Format a row counter, zero-padded to width. Padding never truncates."""
    if width:
        return str(index).zfill(int(width))
    return str(index)


def resolve_template(
    template: str, row: Row, index: int, policy: SubstitutionPolicy = "strict"
) -> str | None:
    """
    Substitute placeholders in a template for one row.

    Supported placeholders:
    - {index}: 1-based row counter
    - {index:03d}: row counter zero-padded to 3 digits
    - {column}: value of that column in the row (case-sensitive)

    Args:
        template: Template string.
        row: Row values keyed by column name.
        index: 1-based row counter.
        policy: "strict" treats a missing column as unresolved; "lenient"
            substitutes an empty string.

    Returns:
        Resolved string, or None when the template cannot be fully resolved
        for this row (the field should not render).
    """
    missing = False

    def _substitute(match: re.Match[str]) -> str:
        nonlocal missing
        key = match.group(1)

        index_match = INDEX_PATTERN.fullmatch(key)
        if index_match:
            return format_index(index, index_match.group(1))

        text = format_cell(row[key]) if key in row else None
        if text is None:
            missing = True
            return ""
        return text

    result = PLACEHOLDER_PATTERN.sub(_substitute, template)

    if missing and policy == "strict":
        return None

    # Anything still looking like a placeholder (including braces that came in
    # through row values) suppresses the field
    if LEFTOVER_PATTERN.search(result):
        return None

    return result


def find_placeholders(template: str) -> list[str]:
    """
    List the column names a template refers to, in order of first use.

    Index placeholders are not columns and are left out.
    """
    keys: list[str] = []
    for match in PLACEHOLDER_PATTERN.finditer(template):
        key = match.group(1)
        if INDEX_PATTERN.fullmatch(key) or key in keys:
            continue
        keys.append(key)
    return keys
