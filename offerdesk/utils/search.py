"""Helpers for case-insensitive substring filters."""

LIKE_ESCAPE = '\\'


def contains_pattern(text: str) -> str:
    """
    LIKE pattern matching ``text`` anywhere, with ``%`` and ``_`` taken literally.

    Use together with ``column.ilike(pattern, escape=LIKE_ESCAPE)``.
    """
    escaped = (
        text.replace(LIKE_ESCAPE, LIKE_ESCAPE * 2)
        .replace('%', LIKE_ESCAPE + '%')
        .replace('_', LIKE_ESCAPE + '_')
    )
    return f'%{escaped}%'
