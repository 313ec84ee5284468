"""Routine schemas."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator

from src.models.enums import RoutineFrequency


class RoutineStepCreate(BaseModel):
    """Step supplied when creating a routine."""

    title: str = Field(..., min_length=1, max_length=200)
    order: int | None = None


class RoutineStepUpdate(BaseModel):
    """Step in a full replacement list; omit id for a new step."""

    id: str | None = Field(None, max_length=36)
    title: str = Field(..., min_length=1, max_length=200)
    completed: bool = False


class RoutineCreate(BaseModel):
    """Create a new routine."""

    title: str = Field(..., min_length=3, max_length=200)
    description: str | None = Field(None, max_length=2000)
    group: str | None = Field(None, max_length=100)
    frequency: RoutineFrequency
    steps: list[RoutineStepCreate] = Field(..., min_length=1)


class RoutineUpdate(BaseModel):
    """Update routine metadata and/or replace its steps."""

    title: str | None = Field(None, min_length=3, max_length=200)
    description: str | None = Field(None, max_length=2000)
    group: str | None = Field(None, max_length=100)
    frequency: RoutineFrequency | None = None
    steps: list[RoutineStepUpdate] | None = Field(None, min_length=1)

    @field_validator("steps")
    @classmethod
    def validate_unique_step_ids(
        cls, steps: list[RoutineStepUpdate] | None
    ) -> list[RoutineStepUpdate] | None:
        if steps is None:
            return steps
        ids = [step.id for step in steps if step.id]
        if len(ids) != len(set(ids)):
            raise ValueError("Step ids must be unique within a routine")
        return steps


class RoutineStepResponse(BaseModel):
    """Routine step response."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    title: str
    completed: bool
    order: int


class RoutineResponse(BaseModel):
    """Routine response."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    owner_id: int
    title: str
    description: str
    group: str | None
    frequency: RoutineFrequency
    steps: list[RoutineStepResponse]
    completed_dates: list[str]
    streak: int
    completed_today: bool = False
    last_completed_at: datetime | None
    created_at: datetime
    updated_at: datetime
