"""Pydantic API schemas."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

FinePattern = Literal["range", "maximum", "minimum", "single", "none", "unparsed"]

JailPattern = Literal["life", "death", "parsed", "unparsed"]

MAX_CLAUSE_LENGTH = 5_000


class ParseRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    punishment_text: str = Field(default="", max_length=MAX_CLAUSE_LENGTH)
    fine_text: str = Field(default="", max_length=MAX_CLAUSE_LENGTH)
    currency: str | None = Field(default=None, min_length=3, max_length=3)


class ParsedFineOut(BaseModel):
    min: float
    max: float
    pattern: FinePattern
    original: str
    currency: str


class TimeComponentOut(BaseModel):
    unit: str
    min: float
    max: float
    pattern: str
    max_unit: str | None = None


class ParsedJailTimeOut(BaseModel):
    min_days: int
    max_days: int
    pattern: JailPattern
    components: list[TimeComponentOut] = Field(default_factory=list)
    original: str


class ValidationOut(BaseModel):
    is_valid: bool
    issues: list[str]
    warnings: list[str]


class ParseResponse(BaseModel):
    fine: ParsedFineOut
    jail: ParsedJailTimeOut
    fine_display: str
    jail_display: str
    severity_score: int
    validation: ValidationOut


class OffenseIn(BaseModel):
    model_config = ConfigDict(extra="forbid")

    offense_id: str = Field(min_length=1)
    code: str = ""
    title: str = ""
    punishment_text: str = Field(default="", max_length=MAX_CLAUSE_LENGTH)
    fine_text: str = Field(default="", max_length=MAX_CLAUSE_LENGTH)
    article_title: str = ""


class OffenseOut(BaseModel):
    offense_id: str
    code: str
    title: str
    article_title: str
    punishment_text: str
    fine_text: str
    language: str
    severity_score: int


class OffenseSearchResponse(BaseModel):
    results: list[OffenseOut]


class CalculateRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    offense_ids: list[str] = Field(default_factory=list)
    offenses: list[OffenseIn] = Field(default_factory=list)
    currency: str | None = Field(default=None, min_length=3, max_length=3)
    save_as: str | None = Field(default=None, min_length=1, max_length=200)
    notes: str = ""


class BreakdownEntryOut(BaseModel):
    offense_id: str
    code: str
    title: str
    article_title: str
    fine_min: float
    fine_max: float
    jail_min_days: int
    jail_max_days: int
    fine_text: str
    jail_text: str


class CalculateResponse(BaseModel):
    selected_offense_ids: list[str]
    total_fine_min: float
    total_fine_max: float
    total_jail_min_days: int
    total_jail_max_days: int
    fine_display: str
    jail_display: str
    breakdown: list[BreakdownEntryOut]
    calculation_id: int | None = None


class SavedCalculationOut(BaseModel):
    calculation_id: int
    name: str
    notes: str
    created_at: str | None
    calculation: CalculateResponse


class SavedCalculationListResponse(BaseModel):
    results: list[SavedCalculationOut]
