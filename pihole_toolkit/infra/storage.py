"""Read-only access to the FTL query-log database."""

from __future__ import annotations

import sqlite3
from contextlib import closing
from pathlib import Path
from typing import Sequence

from ..errors import LogDatabaseError

# FTL query status codes that mean the query was blocked.
BLOCKED_STATUSES: tuple[int, ...] = (1, 4, 5, 6, 7, 8, 9, 10, 11, 15, 16, 18)


class QueryLogDatabase:
    """Run aggregate queries against ``pihole-FTL.db`` without writing to it."""

    def __init__(self, path: Path) -> None:
        self.path = Path(path)

    def connect(self) -> sqlite3.Connection:
        if not self.path.exists():
            raise LogDatabaseError(f"Query log database not found: {self.path}")
        try:
            conn = sqlite3.connect(f"{self.path.resolve().as_uri()}?mode=ro", uri=True)
        except sqlite3.Error as exc:
            raise LogDatabaseError(f"Cannot open {self.path}: {exc}") from exc
        conn.row_factory = sqlite3.Row
        return conn

    def _fetch(self, sql: str, params: Sequence[object] = ()) -> list[sqlite3.Row]:
        with closing(self.connect()) as conn:
            try:
                return conn.execute(sql, tuple(params)).fetchall()
            except sqlite3.Error as exc:
                raise LogDatabaseError(f"Query failed on {self.path}: {exc}") from exc

    def top_clients(self, limit: int = 10) -> list[tuple[str, int]]:
        rows = self._fetch(
            "SELECT client, count(client) AS total FROM queries "
            "GROUP BY client ORDER BY total DESC LIMIT ?",
            (limit,),
        )
        return [(str(row["client"]), int(row["total"])) for row in rows]

    def top_blocked_domains(self, limit: int = 10) -> list[tuple[str, int]]:
        placeholders = ", ".join("?" for _ in BLOCKED_STATUSES)
        rows = self._fetch(
            f"SELECT domain, count(domain) AS total FROM queries "
            f"WHERE status IN ({placeholders}) "
            f"GROUP BY domain ORDER BY total DESC LIMIT ?",
            (*BLOCKED_STATUSES, limit),
        )
        return [(str(row["domain"]), int(row["total"])) for row in rows]

    def query_totals(self, since: int = 0) -> dict[str, int]:
        """Total and blocked query counts with ``timestamp >= since``."""

        placeholders = ", ".join("?" for _ in BLOCKED_STATUSES)
        rows = self._fetch(
            f"SELECT count(*) AS total, "
            f"coalesce(sum(CASE WHEN status IN ({placeholders}) THEN 1 ELSE 0 END), 0) AS blocked "
            f"FROM queries WHERE timestamp >= ?",
            (*BLOCKED_STATUSES, since),
        )
        row = rows[0]
        return {"total": int(row["total"]), "blocked": int(row["blocked"])}


__all__ = ["BLOCKED_STATUSES", "QueryLogDatabase"]
