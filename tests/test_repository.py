from datetime import datetime, timezone

from penal_code_calculator.core.aggregator import aggregate
from penal_code_calculator.core.types import OffenseRecord
from penal_code_calculator.db.repository import Repository


def test_offense_row_mapping_fills_blanks():
    record = Repository._to_offense_record(
        {"offense_id": "title-1-101", "code": "1 01", "title": "Murder", "fine_text": None}
    )
    assert record == OffenseRecord(offense_id="title-1-101", code="1 01", title="Murder")


def test_saved_calculation_row_mapping():
    snapshot = aggregate(
        [
            OffenseRecord(
                offense_id="title-2-201",
                code="2 01",
                title="Theft",
                punishment_text="1 - 5 years imprisonment",
                fine_text="$2,500 - $10,000",
            )
        ]
    )
    row = {
        "calculation_id": 3,
        "name": "Shoplifting spree",
        "notes": None,
        "created_at": datetime(2026, 1, 2, 3, 4, 5, tzinfo=timezone.utc),
        **snapshot.to_dict(),
    }

    saved = Repository._to_saved_calculation(row)

    assert saved.calculation_id == 3
    assert saved.notes == ""
    assert saved.created_at == "2026-01-02T03:04:05+00:00"
    assert saved.snapshot == snapshot
