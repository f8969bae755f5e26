"""ETL utility functions."""

from __future__ import annotations

import json
import re
from pathlib import Path
from typing import Any
from zipfile import ZipFile


def normalize_space(value: str | None) -> str:
    if not value:
        return ""
    return re.sub(r"\s+", " ", str(value)).strip()


def first_present(row: dict[str, Any], *keys: str) -> str:
    """Return the first non-blank value among ``keys``."""
    for key in keys:
        value = normalize_space(row.get(key))
        if value:
            return value
    return ""


def normalize_code(value: str | None) -> str:
    # "1-01", "1 01" and "1.01" all name the same section.
    text = normalize_space(value).lower()
    return re.sub(r"[\s.\-_]+", "", text)


def normalize_name_for_match(name: str) -> str:
    text = normalize_space(name).lower()
    text = re.sub(r"\([^)]*\)", "", text)
    text = re.sub(r"[^a-z0-9 ]+", " ", text)
    text = re.sub(r"\s+", " ", text).strip()
    return text


def read_json_from_zip_or_file(path: Path, json_name: str = "penal-code.json") -> Any:
    if path.suffix.lower() == ".zip":
        with ZipFile(path, "r") as zf:
            target = None
            for info in zf.infolist():
                name = info.filename.strip("/")
                if name.lower().endswith(json_name.lower()):
                    target = name
                    break
            if not target:
                raise FileNotFoundError(f"{json_name} not found in {path}")
            with zf.open(target, "r") as handle:
                return json.loads(handle.read().decode("utf-8"))

    with path.open("r", encoding="utf-8") as handle:
        return json.load(handle)
