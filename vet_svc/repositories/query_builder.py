"""
Parameterized WHERE-clause builder for the relational adapter.

Clause text may be assembled dynamically, but user-supplied values only ever
travel as bound ``?`` parameters. Nothing in this module interpolates a value
into SQL text.

Usage:
    where = SqlFilter()
    where.equals("c.patient_id", "PET001")
    where.contains("p.name", "luk")
    sql, params = where.render()
    # sql    -> " WHERE c.patient_id = ? AND unicode_lower(p.name) LIKE ? ESCAPE '\\'"
    # params -> ["PET001", "%luk%"]
"""
import re
from typing import Any, List, Optional, Tuple

LIKE_ESCAPE = "\\"

# Column references must be plain identifiers, optionally table-qualified.
_COLUMN_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*(\.[A-Za-z_][A-Za-z0-9_]*)?$")


def escape_like(term: str) -> str:
    """Escape LIKE wildcards so the term matches literally."""
    return (
        term.replace(LIKE_ESCAPE, LIKE_ESCAPE * 2)
        .replace("%", LIKE_ESCAPE + "%")
        .replace("_", LIKE_ESCAPE + "_")
    )


class SqlFilter:
    """Accumulates AND-combined conditions with their bound parameters."""

    def __init__(self) -> None:
        self._clauses: List[str] = []
        self._params: List[Any] = []

    @staticmethod
    def _column(column: str) -> str:
        if not _COLUMN_RE.match(column):
            raise ValueError(f"Invalid column reference: {column!r}")
        return column

    def equals(self, column: str, value: Optional[Any]) -> "SqlFilter":
        """Add ``column = ?`` when value is not None."""
        if value is not None:
            self._clauses.append(f"{self._column(column)} = ?")
            self._params.append(value)
        return self

    def contains(self, column: str, term: Optional[str]) -> "SqlFilter":
        """
        Add a case-insensitive substring match when term is not None.

        Relies on the ``unicode_lower`` SQL function that SqliteDatabase
        registers on every connection (SQLite's own LOWER only folds ASCII).
        Both sides are lowercased, not casefolded, so "ss" does not match
        "ß"; the document store's case-insensitive regex folds the same way.
        """
        if term is not None:
            self._clauses.append(f"unicode_lower({self._column(column)}) LIKE ? ESCAPE '{LIKE_ESCAPE}'")
            self._params.append(f"%{escape_like(term.lower())}%")
        return self

    @property
    def params(self) -> List[Any]:
        return list(self._params)

    def __bool__(self) -> bool:
        return bool(self._clauses)

    def render(self) -> Tuple[str, List[Any]]:
        """Return ``(" WHERE ...", params)``, or ``("", [])`` when empty."""
        if not self._clauses:
            return "", []
        return " WHERE " + " AND ".join(self._clauses), list(self._params)
