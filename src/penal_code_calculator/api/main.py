"""FastAPI entrypoint for the penal code calculator."""

from __future__ import annotations

import logging
from contextlib import contextmanager
from dataclasses import asdict
from functools import lru_cache
from typing import Iterator

import psycopg
from fastapi import FastAPI, HTTPException, Query

from penal_code_calculator.api.schemas import (
    BreakdownEntryOut,
    CalculateRequest,
    CalculateResponse,
    OffenseOut,
    OffenseSearchResponse,
    ParsedFineOut,
    ParsedJailTimeOut,
    ParseRequest,
    ParseResponse,
    SavedCalculationListResponse,
    SavedCalculationOut,
    ValidationOut,
)
from penal_code_calculator.catalog import OffenseCatalog, load_catalog
from penal_code_calculator.config import get_settings
from penal_code_calculator.core.aggregator import EmptySelectionError, aggregate, format_jail_total
from penal_code_calculator.core.punishment import (
    format_currency,
    format_duration,
    parse,
    parse_fine,
    parse_jail_time,
    severity_score,
    validate,
)
from penal_code_calculator.core.types import AggregatedPenalty, OffenseRecord, SavedCalculation
from penal_code_calculator.db.repository import Repository

logger = logging.getLogger(__name__)

app = FastAPI(title="Penal Code Calculator API", version="0.1.0")


@lru_cache
def get_repository() -> Repository:
    settings = get_settings()
    return Repository(settings.database_url)


@lru_cache
def get_catalog() -> OffenseCatalog | None:
    settings = get_settings()
    if not settings.catalog_path:
        return None
    return load_catalog(settings.catalog_path, settings.default_language)


@contextmanager
def store_errors(action: str) -> Iterator[None]:
    try:
        yield
    except psycopg.Error as exc:
        logger.error(f"{action} failed: {exc}")
        raise HTTPException(status_code=503, detail="Database unavailable") from exc


def range_display(low: str, high: str) -> str:
    return low if low == high else f"{low} - {high}"


def resolve_offenses(offense_ids: list[str]) -> list[OffenseRecord]:
    if not offense_ids:
        return []

    catalog = get_catalog()
    if catalog is not None:
        records = [catalog.get(offense_id) for offense_id in offense_ids]
        found = [record for record in records if record is not None]
    else:
        with store_errors("Offense lookup"):
            found = get_repository().fetch_offenses(offense_ids)

    known = {record.offense_id for record in found}
    missing = [offense_id for offense_id in offense_ids if offense_id not in known]
    if missing:
        raise HTTPException(status_code=404, detail=f"Offense not found: {', '.join(missing)}")
    return found


def to_calculation_payload(
    snapshot: AggregatedPenalty,
    currency: str,
    calculation_id: int | None = None,
) -> CalculateResponse:
    return CalculateResponse(
        selected_offense_ids=list(snapshot.selected_offense_ids),
        total_fine_min=snapshot.total_fine_min,
        total_fine_max=snapshot.total_fine_max,
        total_jail_min_days=snapshot.total_jail_min_days,
        total_jail_max_days=snapshot.total_jail_max_days,
        fine_display=range_display(
            format_currency(snapshot.total_fine_min, currency),
            format_currency(snapshot.total_fine_max, currency),
        ),
        jail_display=format_jail_total(snapshot),
        breakdown=[BreakdownEntryOut(**asdict(entry)) for entry in snapshot.breakdown],
        calculation_id=calculation_id,
    )


def to_saved_payload(saved: SavedCalculation, currency: str) -> SavedCalculationOut:
    return SavedCalculationOut(
        calculation_id=saved.calculation_id,
        name=saved.name,
        notes=saved.notes,
        created_at=saved.created_at,
        calculation=to_calculation_payload(saved.snapshot, currency, saved.calculation_id),
    )


def to_offense_payload(record: OffenseRecord) -> OffenseOut:
    parsed = parse(record.punishment_text, record.fine_text)
    return OffenseOut(**asdict(record), severity_score=severity_score(parsed))


@app.get("/v1/health")
def health() -> dict[str, str]:
    return {"status": "ok"}


@app.post("/v1/parse", response_model=ParseResponse)
def parse_endpoint(req: ParseRequest) -> ParseResponse:
    settings = get_settings()
    currency = (req.currency or settings.default_currency).upper()

    fine = parse_fine(req.fine_text, currency)
    jail = parse_jail_time(req.punishment_text)
    parsed = parse(req.punishment_text, req.fine_text, currency)
    validation = validate(parsed, settings.fine_warning_threshold)

    return ParseResponse(
        fine=ParsedFineOut(**asdict(fine)),
        jail=ParsedJailTimeOut(**asdict(jail)),
        fine_display=range_display(format_currency(fine.min, currency), format_currency(fine.max, currency)),
        jail_display=range_display(format_duration(jail.min_days), format_duration(jail.max_days)),
        severity_score=severity_score(parsed),
        validation=ValidationOut(**asdict(validation)),
    )


@app.post("/v1/calculate", response_model=CalculateResponse)
def calculate_endpoint(req: CalculateRequest) -> CalculateResponse:
    settings = get_settings()
    currency = (req.currency or settings.default_currency).upper()

    offenses = resolve_offenses(req.offense_ids)
    offenses.extend(OffenseRecord(**item.model_dump()) for item in req.offenses)

    try:
        snapshot = aggregate(offenses, currency=currency)
    except EmptySelectionError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc

    calculation_id = None
    if req.save_as:
        with store_errors(f"Saving calculation {req.save_as!r}"):
            calculation_id = get_repository().save_calculation(req.save_as, snapshot, req.notes)

    return to_calculation_payload(snapshot, currency, calculation_id)


@app.get("/v1/offenses/search", response_model=OffenseSearchResponse)
def search_offenses_endpoint(
    q: str = Query(min_length=1),
    limit: int = Query(default=10, ge=1, le=50),
) -> OffenseSearchResponse:
    catalog = get_catalog()
    if catalog is not None:
        records = catalog.search(q, limit=limit)
    else:
        with store_errors("Offense search"):
            records = get_repository().search_offenses(q, limit=limit, language=get_settings().default_language)
    return OffenseSearchResponse(results=[to_offense_payload(record) for record in records])


@app.get("/v1/calculations", response_model=SavedCalculationListResponse)
def list_calculations_endpoint(limit: int | None = Query(default=None, ge=1, le=500)) -> SavedCalculationListResponse:
    settings = get_settings()
    with store_errors("Listing calculations"):
        saved = get_repository().list_calculations(limit or settings.history_limit)
    return SavedCalculationListResponse(
        results=[to_saved_payload(item, settings.default_currency) for item in saved]
    )


@app.get("/v1/calculations/{calculation_id}", response_model=SavedCalculationOut)
def get_calculation_endpoint(calculation_id: int) -> SavedCalculationOut:
    with store_errors(f"Fetching calculation {calculation_id}"):
        saved = get_repository().fetch_calculation(calculation_id)
    if saved is None:
        raise HTTPException(status_code=404, detail=f"Calculation not found: {calculation_id}")
    return to_saved_payload(saved, get_settings().default_currency)


@app.delete("/v1/calculations/{calculation_id}")
def delete_calculation_endpoint(calculation_id: int) -> dict[str, str]:
    with store_errors(f"Deleting calculation {calculation_id}"):
        deleted = get_repository().delete_calculation(calculation_id)
    if not deleted:
        raise HTTPException(status_code=404, detail=f"Calculation not found: {calculation_id}")
    return {"status": "deleted"}
