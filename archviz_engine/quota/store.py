"""SQLite-backed per-identity quota records."""

from __future__ import annotations

import sqlite3
from dataclasses import dataclass
from datetime import date
from pathlib import Path

from ..utils import ensure_dir, parse_date


DB_PATH = Path.home() / ".archviz" / "quota.sqlite"


@dataclass(frozen=True)
class QuotaRecord:
    identity: str
    daily_limit: int | None
    used_today: int
    last_usage_date: date | None
    is_privileged: bool = False


@dataclass
class QuotaStore:
    path: Path = DB_PATH

    def connect(self) -> sqlite3.Connection:
        ensure_dir(self.path.parent)
        conn = sqlite3.connect(self.path)
        conn.row_factory = sqlite3.Row
        return conn

    def init_db(self) -> None:
        with self.connect() as conn:
            conn.executescript(
                """
                CREATE TABLE IF NOT EXISTS quota (
                    identity TEXT PRIMARY KEY,
                    daily_limit INTEGER,
                    used_today INTEGER NOT NULL DEFAULT 0,
                    last_usage_date TEXT,
                    is_privileged INTEGER NOT NULL DEFAULT 0
                );
                """
            )

    def upsert_record(
        self,
        identity: str,
        *,
        daily_limit: int | None,
        used_today: int = 0,
        last_usage_date: date | None = None,
        is_privileged: bool = False,
    ) -> None:
        with self.connect() as conn:
            conn.execute(
                """
                INSERT INTO quota (identity, daily_limit, used_today, last_usage_date, is_privileged)
                VALUES (?, ?, ?, ?, ?)
                ON CONFLICT(identity) DO UPDATE SET
                    daily_limit=excluded.daily_limit,
                    used_today=excluded.used_today,
                    last_usage_date=excluded.last_usage_date,
                    is_privileged=excluded.is_privileged
                """,
                (
                    identity,
                    daily_limit,
                    int(used_today),
                    last_usage_date.isoformat() if last_usage_date else None,
                    int(bool(is_privileged)),
                ),
            )

    def get_record(self, identity: str) -> QuotaRecord | None:
        with self.connect() as conn:
            row = conn.execute(
                "SELECT identity, daily_limit, used_today, last_usage_date, is_privileged FROM quota WHERE identity = ?",
                (identity,),
            ).fetchone()
        if row is None:
            return None
        return QuotaRecord(
            identity=row["identity"],
            daily_limit=row["daily_limit"],
            used_today=int(row["used_today"] or 0),
            last_usage_date=parse_date(row["last_usage_date"]),
            is_privileged=bool(row["is_privileged"]),
        )

    def increment_usage(self, identity: str, today: date) -> int:
        """Add one use for ``today``, restarting the count on a new day.

        The upsert is a single statement, so concurrent sessions for the same
        identity cannot both increment from the same stale base. An identity
        without a record gets one with no explicit limit and a count of 1.
        Returns the new count.
        """

        stamp = today.isoformat()
        with self.connect() as conn:
            conn.execute(
                """
                INSERT INTO quota (identity, daily_limit, used_today, last_usage_date)
                VALUES (?, NULL, 1, ?)
                ON CONFLICT(identity) DO UPDATE SET
                    used_today = CASE
                        WHEN quota.last_usage_date = excluded.last_usage_date THEN quota.used_today + 1
                        ELSE 1
                    END,
                    last_usage_date = excluded.last_usage_date
                """,
                (identity, stamp),
            )
            row = conn.execute("SELECT used_today FROM quota WHERE identity = ?", (identity,)).fetchone()
        return int(row["used_today"])

    def list_identities(self) -> list[str]:
        with self.connect() as conn:
            rows = conn.execute("SELECT identity FROM quota ORDER BY identity").fetchall()
        return [row[0] for row in rows]
