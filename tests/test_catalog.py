from pathlib import Path

import pytest

from penal_code_calculator.catalog import (
    OffenseCatalog,
    load_catalog,
    normalize_offense_record,
    records_from_payload,
)

FIXTURES = Path(__file__).parent / "fixtures"


@pytest.fixture
def catalog():
    return load_catalog(FIXTURES / "penal_code.json")


def test_load_catalog_flattens_articles(catalog):
    assert len(catalog) == 6
    assault = catalog.require("title-1-103")
    assert assault.code == "1 03"
    assert assault.title == "Assault"
    assert assault.article_title == "TITLE 1. CRIMES AGAINST PERSONS"
    assert assault.punishment_text == "6 months - 3 years imprisonment"
    assert assault.fine_text == "$5,000 - $15,000"
    assert assault.language == "en"


def test_load_catalog_other_language_uses_language_fields():
    catalog = load_catalog(FIXTURES / "penal_code.json", language="id")
    assert len(catalog) == 2
    murder = catalog.require("title-1-101")
    assert murder.code == "1 01"
    assert murder.title == "Pembunuhan"
    assert murder.article_title == "JUDUL 1. KEJAHATAN TERHADAP ORANG"
    assert murder.language == "id"


def test_load_catalog_missing_file():
    with pytest.raises(FileNotFoundError):
        load_catalog(FIXTURES / "does-not-exist.json")


def test_normalize_legacy_field_variants():
    record = normalize_offense_record(
        {
            "sectionId": "s-301",
            "code_en": "3 01",
            "title_en": "Arson",
            "punishmentText": "2 - 6 years",
            "fineText": "up to $20,000",
        }
    )
    assert record.offense_id == "s-301"
    assert record.code == "3 01"
    assert record.title == "Arson"
    assert record.punishment_text == "2 - 6 years"
    assert record.fine_text == "up to $20,000"


def test_normalize_falls_back_to_code_for_identifier():
    record = normalize_offense_record({"code": "4 01", "name": "Fraud"})
    assert record.offense_id == "4 01"
    assert record.punishment_text == ""
    assert record.fine_text == ""


def test_normalize_without_identifier_raises():
    with pytest.raises(ValueError):
        normalize_offense_record({"name": "Nameless"})


def test_records_from_flat_list():
    records = records_from_payload(
        [
            {"id": "a", "code": "1", "title": "First", "fine": "$10"},
            {"id": "b", "code": "2", "title": "Second"},
        ]
    )
    assert [r.offense_id for r in records] == ["a", "b"]
    assert records[0].fine_text == "$10"


def test_records_from_payload_unknown_language():
    with pytest.raises(ValueError):
        records_from_payload({"en": []}, language="fr")


def test_duplicate_ids_keep_last():
    records = records_from_payload(
        [
            {"id": "a", "title": "Old"},
            {"id": "a", "title": "New"},
        ]
    )
    catalog = OffenseCatalog(records)
    assert len(catalog) == 1
    assert catalog.require("a").title == "New"


def test_resolve_by_id_code_and_title(catalog):
    assert catalog.resolve("title-2-202").title == "Burglary"
    assert catalog.resolve("2-01").title == "Theft"
    assert catalog.resolve("2 03").title == "Robbery"
    assert catalog.resolve("manslaughter").offense_id == "title-1-102"
    assert catalog.resolve("zzzz") is None
    assert catalog.resolve("") is None


def test_require_unknown_id(catalog):
    with pytest.raises(KeyError):
        catalog.require("nope")


def test_search(catalog):
    results = catalog.search("burglary")
    assert results[0].offense_id == "title-2-202"
    assert catalog.search("") == []
    assert len(catalog.search("imprisonment", limit=3)) == 3
