"""Load a penal code catalog JSON file into Postgres."""

from __future__ import annotations

import argparse
import json
import logging
from dataclasses import replace
from pathlib import Path

from penal_code_calculator.catalog import records_from_payload
from penal_code_calculator.config import get_settings
from penal_code_calculator.core.types import OffenseRecord
from penal_code_calculator.db.repository import Repository
from penal_code_calculator.etl.utils import read_json_from_zip_or_file

logger = logging.getLogger(__name__)


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Load a penal code catalog into Postgres")
    parser.add_argument("--catalog", type=Path, required=True, help="Path to catalog JSON (or zip)")
    parser.add_argument(
        "--language",
        action="append",
        default=None,
        help="Catalog language to load; repeatable (default: every language in the file, else 'en')",
    )
    parser.add_argument(
        "--database-url",
        type=str,
        default=None,
        help="Database URL override; defaults to PENAL_DATABASE_URL from env",
    )
    return parser.parse_args(argv)


def detect_languages(payload: object) -> list[str]:
    if isinstance(payload, dict) and "articles" not in payload:
        return [key for key, value in payload.items() if isinstance(value, list)]
    return ["en"]


def records_by_language(
    payload: object,
    languages: list[str],
    default_language: str = "en",
) -> dict[str, list[OffenseRecord]]:
    """Normalize each requested language; ids of non-default languages get a ``-<lang>`` suffix."""
    batches: dict[str, list[OffenseRecord]] = {}
    for language in languages:
        records = records_from_payload(payload, language)
        if len(languages) > 1 and language != default_language:
            # Section ids repeat across translations.
            records = [replace(r, offense_id=f"{r.offense_id}-{language}") for r in records]
        batches[language] = records
    return batches


def load_catalog_into(repo: Repository, path: Path, languages: list[str] | None = None) -> dict[str, int]:
    if not path.exists():
        raise FileNotFoundError(f"Catalog not found: {path}")

    payload = read_json_from_zip_or_file(path)
    languages = languages or detect_languages(payload)
    batches = records_by_language(payload, languages, get_settings().default_language)

    repo.ensure_schema()
    counts = {language: repo.upsert_offenses(records) for language, records in batches.items()}
    logger.info(f"Loaded {sum(counts.values())} offenses from {path}")
    return counts


def main(argv: list[str] | None = None) -> None:
    args = parse_args(argv)
    settings = get_settings()
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )
    database_url = args.database_url or settings.database_url

    counts = load_catalog_into(Repository(database_url), args.catalog, args.language)
    print(json.dumps({"loaded": counts}, indent=2))


if __name__ == "__main__":
    main()
