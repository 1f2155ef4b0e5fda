from __future__ import annotations

import datetime as dt
from typing import AbstractSet, List, Literal, Optional

from pydantic import BaseModel, Field, field_validator, model_validator

ProjectStatus = Literal["pending", "in-progress", "completed", "cancelled"]
ProjectSort = Literal["newest", "oldest", "budget-high", "budget-low", "deadline"]
StatusFilter = Literal["all", "pending", "in-progress", "completed", "cancelled"]


def _none_to_empty(value):
    return "" if value is None else value


def _reject_nulls(model: BaseModel, nullable: AbstractSet[str] = frozenset()) -> None:
    """Partial updates may omit a field, but only ``nullable`` ones may be sent as null."""
    cleared = sorted(
        name for name in model.model_fields_set if name not in nullable and getattr(model, name) is None
    )
    if cleared:
        raise ValueError(f"{', '.join(cleared)} cannot be null")


# ---------------------------------------------------------------------------
# Expenses
# ---------------------------------------------------------------------------

class ExpenseBase(BaseModel):
    description: str = Field(..., min_length=1, max_length=500)
    amount: float = Field(..., ge=0)
    date: dt.date
    category: str = Field("", max_length=100)


class ExpenseCreate(ExpenseBase):
    pass


class ExpenseUpdate(BaseModel):
    description: Optional[str] = Field(None, min_length=1, max_length=500)
    amount: Optional[float] = Field(None, ge=0)
    date: Optional[dt.date] = None
    category: Optional[str] = Field(None, max_length=100)

    @model_validator(mode="after")
    def non_nullable_fields(self):
        _reject_nulls(self)
        return self


class Expense(ExpenseBase):
    id: str
    project_id: str
    created_at: Optional[dt.datetime] = None
    updated_at: Optional[dt.datetime] = None

    @field_validator("category", mode="before")
    @classmethod
    def blank_category(cls, value):
        return _none_to_empty(value)


# ---------------------------------------------------------------------------
# Projects
# ---------------------------------------------------------------------------

class ProjectBase(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    client: str = Field(..., min_length=1, max_length=255)
    description: str = Field("", max_length=5000)
    start_date: dt.date
    due_date: dt.date
    budget: float = Field(..., ge=0)
    hourly_rate: Optional[float] = Field(None, ge=0)
    hours_worked: Optional[float] = Field(None, ge=0)
    status: ProjectStatus = "pending"
    category: str = Field("", max_length=100)


class ProjectCreate(ProjectBase):
    """New projects always start at 0% completion."""


class ProjectUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=255)
    client: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = Field(None, max_length=5000)
    start_date: Optional[dt.date] = None
    due_date: Optional[dt.date] = None
    budget: Optional[float] = Field(None, ge=0)
    hourly_rate: Optional[float] = Field(None, ge=0)
    hours_worked: Optional[float] = Field(None, ge=0)
    status: Optional[ProjectStatus] = None
    completion_percentage: Optional[int] = Field(None, ge=0, le=100)
    category: Optional[str] = Field(None, max_length=100)

    @model_validator(mode="after")
    def non_nullable_fields(self):
        _reject_nulls(self, nullable={"hourly_rate", "hours_worked"})
        return self


class ProgressUpdate(BaseModel):
    completion_percentage: int = Field(..., ge=0, le=100)


class Project(ProjectBase):
    id: str
    completion_percentage: float = Field(0, ge=0, le=100)
    created_at: Optional[dt.datetime] = None
    updated_at: Optional[dt.datetime] = None

    @field_validator("description", "category", mode="before")
    @classmethod
    def blank_text(cls, value):
        return _none_to_empty(value)

    @field_validator("completion_percentage", mode="before")
    @classmethod
    def default_completion(cls, value):
        return 0 if value is None else value


class ProjectFinancialsModel(BaseModel):
    total_expenses: float = 0.0
    total_earned: float = 0.0
    net_profit: float = 0.0


class ProjectDetail(Project):
    expenses: List[Expense] = Field(default_factory=list)
    financials: ProjectFinancialsModel = Field(default_factory=ProjectFinancialsModel)


class ProjectTimelineResponse(BaseModel):
    project_id: str
    start_date: dt.date
    due_date: dt.date
    total_days: int
    days_elapsed: int
    days_remaining: int
    completion_percentage: float
    time_elapsed_percentage: float
    today_in_range: bool
    overdue: bool


class ErrorResponse(BaseModel):
    """Standard error response."""
    detail: dict
