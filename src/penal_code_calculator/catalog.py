"""Offense catalog: ingestion-time normalization and lookup.

Catalog sources name the same fields several ways (``code`` / ``code_en`` /
``code_id``, ``name`` / ``title`` / ``title_id``, ``punishment`` /
``punishmentText``). Everything is mapped onto ``OffenseRecord`` here so the
parser and aggregator only ever see one shape.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Iterator

from rapidfuzz import fuzz, process

from .core.types import OffenseRecord
from .etl.utils import (
    first_present,
    normalize_code,
    normalize_name_for_match,
    read_json_from_zip_or_file,
)

logger = logging.getLogger(__name__)

ID_KEYS = ("id", "offense_id", "section_id", "sectionId")
PUNISHMENT_KEYS = ("punishment_text", "punishmentText", "punishment")
FINE_KEYS = ("fine_text", "fineText", "fine")

SEARCH_SCORE_CUTOFF = 70
RESOLVE_SCORE_CUTOFF = 80


def _language_keys(field: str, language: str, *fallbacks: str) -> tuple[str, ...]:
    return (f"{field}_{language}", field, *fallbacks)


def normalize_offense_record(
    row: dict[str, Any],
    language: str = "en",
    article_title: str = "",
) -> OffenseRecord:
    """Map one raw section row onto the canonical record shape."""
    offense_id = first_present(row, *ID_KEYS)
    code = first_present(row, *_language_keys("code", language, "code_en", "code_id"))
    title = first_present(
        row,
        f"title_{language}",
        f"name_{language}",
        "name",
        "title",
        "title_en",
        "title_id",
    )

    if not offense_id:
        offense_id = code
    if not offense_id:
        raise ValueError(f"Offense row has no identifier: {sorted(row)}")

    return OffenseRecord(
        offense_id=offense_id,
        code=code,
        title=title or code or offense_id,
        punishment_text=first_present(row, *PUNISHMENT_KEYS),
        fine_text=first_present(row, *FINE_KEYS),
        article_title=article_title or first_present(row, "article_title", "articleTitle"),
        language=first_present(row, "language") or language,
    )


def _article_title(article: dict[str, Any], language: str) -> str:
    return first_present(article, f"title_{language}", "title", "title_en", "title_id")


def records_from_payload(payload: Any, language: str = "en") -> list[OffenseRecord]:
    """Flatten any supported catalog layout into offense records.

    Accepted layouts: ``{"en": [articles], "id": [articles]}``, ``{"articles":
    [...]}``, a list of articles (each with ``sections``) or a flat list of
    section rows.
    """
    if isinstance(payload, dict):
        if "articles" in payload:
            payload = payload["articles"]
        elif language in payload:
            payload = payload[language]
        else:
            raise ValueError(f"Catalog has no articles for language {language!r}")

    if not isinstance(payload, list):
        raise ValueError("Catalog payload must be a list of articles or sections")

    records: list[OffenseRecord] = []
    for item in payload:
        if not isinstance(item, dict):
            continue
        sections = item.get("sections")
        if isinstance(sections, list):
            title = _article_title(item, language)
            for section in sections:
                records.append(normalize_offense_record(section, language, title))
        else:
            records.append(normalize_offense_record(item, language))
    return records


class OffenseCatalog:
    """In-memory catalog keyed by offense id."""

    def __init__(self, records: list[OffenseRecord] | None = None):
        self._records: dict[str, OffenseRecord] = {}
        for record in records or []:
            if record.offense_id in self._records:
                logger.warning(f"Duplicate offense id {record.offense_id}; keeping the last one")
            self._records[record.offense_id] = record

    def __len__(self) -> int:
        return len(self._records)

    def __iter__(self) -> Iterator[OffenseRecord]:
        return iter(self._records.values())

    def __contains__(self, offense_id: object) -> bool:
        return offense_id in self._records

    def get(self, offense_id: str) -> OffenseRecord | None:
        return self._records.get(offense_id)

    def require(self, offense_id: str) -> OffenseRecord:
        record = self._records.get(offense_id)
        if record is None:
            raise KeyError(f"Offense not found: {offense_id}")
        return record

    def search(self, query: str, limit: int = 10) -> list[OffenseRecord]:
        """Substring matches first, then fuzzy title matches."""
        needle = normalize_name_for_match(query)
        if not needle:
            return []

        scored: list[tuple[float, OffenseRecord]] = []
        for record in self._records.values():
            haystack = normalize_name_for_match(
                " ".join(
                    [record.code, record.title, record.article_title, record.punishment_text, record.fine_text]
                )
            )
            if needle in haystack:
                score = 100.0
            else:
                score = fuzz.token_set_ratio(needle, normalize_name_for_match(record.title))
            if score >= SEARCH_SCORE_CUTOFF:
                scored.append((score, record))

        scored.sort(key=lambda item: (-item[0], item[1].code, item[1].offense_id))
        return [record for _, record in scored[:limit]]

    def resolve(self, query: str) -> OffenseRecord | None:
        """Resolve an id, a section code or a title to one record."""
        query = (query or "").strip()
        if not query:
            return None

        if query in self._records:
            return self._records[query]

        wanted_code = normalize_code(query)
        for record in self._records.values():
            if record.code and normalize_code(record.code) == wanted_code:
                return record

        titles = {
            offense_id: normalize_name_for_match(record.title)
            for offense_id, record in self._records.items()
        }
        best = process.extractOne(
            normalize_name_for_match(query),
            titles,
            scorer=fuzz.token_set_ratio,
            score_cutoff=RESOLVE_SCORE_CUTOFF,
        )
        if best is None:
            return None
        _, _, offense_id = best
        return self._records[offense_id]


def load_catalog(path: Path | str, language: str = "en") -> OffenseCatalog:
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Catalog not found: {path}")

    payload = read_json_from_zip_or_file(path)
    records = records_from_payload(payload, language)
    logger.info(f"Loaded {len(records)} offenses ({language}) from {path}")
    return OffenseCatalog(records)
