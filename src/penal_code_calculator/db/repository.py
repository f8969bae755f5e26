"""Database access layer."""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Any, Iterator

import psycopg
from psycopg.rows import dict_row
from psycopg.types.json import Json

from penal_code_calculator.core.types import AggregatedPenalty, OffenseRecord, SavedCalculation

logger = logging.getLogger(__name__)

SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS offense_catalog (
  offense_id TEXT PRIMARY KEY,
  code TEXT NOT NULL DEFAULT '',
  title TEXT NOT NULL,
  article_title TEXT NOT NULL DEFAULT '',
  punishment_text TEXT NOT NULL DEFAULT '',
  fine_text TEXT NOT NULL DEFAULT '',
  language TEXT NOT NULL DEFAULT 'en',
  updated_at TIMESTAMPTZ NOT NULL DEFAULT now()
);

CREATE INDEX IF NOT EXISTS idx_offense_catalog_language ON offense_catalog (language);

CREATE TABLE IF NOT EXISTS calculations (
  calculation_id BIGSERIAL PRIMARY KEY,
  name TEXT NOT NULL,
  selected_offense_ids JSONB NOT NULL,
  total_fine_min DOUBLE PRECISION NOT NULL,
  total_fine_max DOUBLE PRECISION NOT NULL,
  total_jail_min_days INTEGER NOT NULL,
  total_jail_max_days INTEGER NOT NULL,
  breakdown JSONB NOT NULL,
  notes TEXT NOT NULL DEFAULT '',
  created_at TIMESTAMPTZ NOT NULL DEFAULT now()
);
"""

OFFENSE_COLUMNS = [
    "offense_id",
    "code",
    "title",
    "article_title",
    "punishment_text",
    "fine_text",
    "language",
]


class Repository:
    """Thin repository around Postgres queries."""

    def __init__(self, database_url: str):
        self.database_url = database_url

    @contextmanager
    def connect(self) -> Iterator[psycopg.Connection]:
        with psycopg.connect(self.database_url, row_factory=dict_row) as conn:
            yield conn

    def ensure_schema(self) -> None:
        with self.connect() as conn, conn.cursor() as cur:
            cur.execute(SCHEMA_SQL)
            conn.commit()

    def fetch_offenses(self, offense_ids: list[str]) -> list[OffenseRecord]:
        """Fetch records in the order of ``offense_ids``; unknown ids are skipped."""
        if not offense_ids:
            return []
        sql = "SELECT * FROM offense_catalog WHERE offense_id = ANY(%s)"
        with self.connect() as conn, conn.cursor() as cur:
            cur.execute(sql, (list(offense_ids),))
            by_id = {row["offense_id"]: self._to_offense_record(row) for row in cur.fetchall()}
        return [by_id[offense_id] for offense_id in offense_ids if offense_id in by_id]

    def search_offenses(self, query: str, limit: int = 10, language: str | None = None) -> list[OffenseRecord]:
        sql = """
        SELECT *
        FROM offense_catalog
        WHERE (%(language)s::text IS NULL OR language = %(language)s)
          AND (
            code ILIKE %(pattern)s
            OR title ILIKE %(pattern)s
            OR article_title ILIKE %(pattern)s
            OR punishment_text ILIKE %(pattern)s
            OR fine_text ILIKE %(pattern)s
          )
        ORDER BY code ASC, title ASC
        LIMIT %(limit)s;
        """
        params = {"pattern": f"%{query}%", "language": language, "limit": limit}
        with self.connect() as conn, conn.cursor() as cur:
            cur.execute(sql, params)
            rows = cur.fetchall()
        return [self._to_offense_record(row) for row in rows if row]

    def upsert_offenses(self, records: list[OffenseRecord]) -> int:
        if not records:
            return 0

        placeholders = ", ".join(["%s"] * len(OFFENSE_COLUMNS))
        columns_sql = ", ".join(OFFENSE_COLUMNS)
        set_clause = ", ".join(f"{col} = EXCLUDED.{col}" for col in OFFENSE_COLUMNS[1:])
        sql = (
            f"INSERT INTO offense_catalog ({columns_sql}) VALUES ({placeholders}) "
            f"ON CONFLICT (offense_id) DO UPDATE SET {set_clause}, updated_at = now()"
        )
        values = [tuple(getattr(record, col) for col in OFFENSE_COLUMNS) for record in records]

        with self.connect() as conn, conn.cursor() as cur:
            cur.executemany(sql, values)
            conn.commit()

        logger.info(f"Upserted {len(records)} offenses")
        return len(records)

    def save_calculation(self, name: str, snapshot: AggregatedPenalty, notes: str = "") -> int:
        sql = """
        INSERT INTO calculations (
          name, selected_offense_ids, total_fine_min, total_fine_max,
          total_jail_min_days, total_jail_max_days, breakdown, notes
        )
        VALUES (
          %(name)s, %(selected_offense_ids)s, %(total_fine_min)s, %(total_fine_max)s,
          %(total_jail_min_days)s, %(total_jail_max_days)s, %(breakdown)s, %(notes)s
        )
        RETURNING calculation_id
        """
        data = snapshot.to_dict()
        params = {
            "name": name,
            "selected_offense_ids": Json(data["selected_offense_ids"]),
            "total_fine_min": data["total_fine_min"],
            "total_fine_max": data["total_fine_max"],
            "total_jail_min_days": data["total_jail_min_days"],
            "total_jail_max_days": data["total_jail_max_days"],
            "breakdown": Json(data["breakdown"]),
            "notes": notes,
        }
        with self.connect() as conn, conn.cursor() as cur:
            cur.execute(sql, params)
            row = cur.fetchone()
            conn.commit()

        calculation_id = int(row["calculation_id"])
        logger.info(f"Saved calculation {name!r} as {calculation_id}")
        return calculation_id

    def list_calculations(self, limit: int = 50) -> list[SavedCalculation]:
        sql = "SELECT * FROM calculations ORDER BY created_at DESC, calculation_id DESC LIMIT %s"
        with self.connect() as conn, conn.cursor() as cur:
            cur.execute(sql, (limit,))
            return [self._to_saved_calculation(row) for row in cur.fetchall()]

    def fetch_calculation(self, calculation_id: int) -> SavedCalculation | None:
        sql = "SELECT * FROM calculations WHERE calculation_id = %s"
        with self.connect() as conn, conn.cursor() as cur:
            cur.execute(sql, (calculation_id,))
            row = cur.fetchone()
            return self._to_saved_calculation(row) if row else None

    def delete_calculation(self, calculation_id: int) -> bool:
        sql = "DELETE FROM calculations WHERE calculation_id = %s"
        with self.connect() as conn, conn.cursor() as cur:
            cur.execute(sql, (calculation_id,))
            deleted = cur.rowcount > 0
            conn.commit()
        return deleted

    @staticmethod
    def _to_offense_record(row: dict[str, Any]) -> OffenseRecord:
        return OffenseRecord(
            offense_id=str(row["offense_id"]),
            code=row.get("code") or "",
            title=row.get("title") or "",
            punishment_text=row.get("punishment_text") or "",
            fine_text=row.get("fine_text") or "",
            article_title=row.get("article_title") or "",
            language=row.get("language") or "en",
        )

    @staticmethod
    def _to_saved_calculation(row: dict[str, Any]) -> SavedCalculation:
        created_at = row.get("created_at")
        return SavedCalculation(
            calculation_id=int(row["calculation_id"]),
            name=row["name"],
            notes=row.get("notes") or "",
            created_at=created_at.isoformat() if created_at is not None else None,
            snapshot=AggregatedPenalty.from_dict(row),
        )
