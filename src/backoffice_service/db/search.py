"""Case-insensitive substring filters built from bound parameters."""

from __future__ import annotations

from sqlalchemy import or_
from sqlalchemy.sql.elements import ColumnElement

_ESCAPE = "\\"


def escape_like(term: str) -> str:
    """Escape LIKE wildcards so the caller's term matches literally."""
    return (
        term.replace(_ESCAPE, _ESCAPE * 2)
        .replace("%", f"{_ESCAPE}%")
        .replace("_", f"{_ESCAPE}_")
    )


def contains_any(term: str, *columns) -> ColumnElement[bool]:
    """``col1 ILIKE %term% OR col2 ILIKE %term% ...`` with ``term`` bound."""
    pattern = f"%{escape_like(term)}%"
    return or_(*(column.ilike(pattern, escape=_ESCAPE) for column in columns))
