"""Routine API endpoints."""

from typing import Annotated

from fastapi import APIRouter, Depends, status

from src.api.dependencies import get_current_user, get_routine_service
from src.models.user import User
from src.schemas.routine import RoutineCreate, RoutineResponse, RoutineUpdate
from src.services.routine_service import RoutineService
from src.services.streak_engine import RoutineRecord

router = APIRouter(prefix="/api/v1/routines", tags=["routines"])

CurrentUser = Annotated[User, Depends(get_current_user)]
Routines = Annotated[RoutineService, Depends(get_routine_service)]


def to_response(routine: RoutineRecord) -> RoutineResponse:
    return RoutineResponse.model_validate(routine)


@router.post("", response_model=RoutineResponse, status_code=status.HTTP_201_CREATED)
def create_routine(
    routine_data: RoutineCreate,
    current_user: CurrentUser,
    service: Routines,
):
    """Create a routine; all steps start incomplete."""
    routine = service.create_routine(current_user.id, routine_data)
    return to_response(routine)


@router.get("", response_model=list[RoutineResponse])
def get_routines(current_user: CurrentUser, service: Routines):
    """Get the user's routines, newest first."""
    return [to_response(routine) for routine in service.list_routines(current_user.id)]


@router.get("/groups", response_model=list[str])
def get_groups(current_user: CurrentUser, service: Routines):
    """Get the distinct group labels used by the user's routines."""
    return service.list_groups(current_user.id)


@router.get("/{routine_id}", response_model=RoutineResponse)
def get_routine(routine_id: str, current_user: CurrentUser, service: Routines):
    routine = service.get_routine(current_user.id, routine_id)
    return to_response(routine)


@router.patch("/{routine_id}", response_model=RoutineResponse)
def update_routine(
    routine_id: str,
    routine_data: RoutineUpdate,
    current_user: CurrentUser,
    service: Routines,
):
    """Update routine metadata. A ``steps`` list replaces all steps."""
    routine = service.update_routine(current_user.id, routine_id, routine_data)
    return to_response(routine)


@router.post("/{routine_id}/steps/{step_id}/toggle", response_model=RoutineResponse)
def toggle_step(routine_id: str, step_id: str, current_user: CurrentUser, service: Routines):
    routine = service.toggle_step(current_user.id, routine_id, step_id)
    return to_response(routine)


@router.post("/{routine_id}/complete", response_model=RoutineResponse)
def complete_routine(routine_id: str, current_user: CurrentUser, service: Routines):
    """Complete the routine for today. 409 if today is already recorded."""
    routine = service.complete_routine(current_user.id, routine_id)
    return to_response(routine)


@router.post("/{routine_id}/reset", response_model=RoutineResponse)
def reset_steps(routine_id: str, current_user: CurrentUser, service: Routines):
    """Uncheck all steps without touching completion history."""
    routine = service.reset_steps(current_user.id, routine_id)
    return to_response(routine)


@router.delete("/{routine_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_routine(routine_id: str, current_user: CurrentUser, service: Routines):
    service.delete_routine(current_user.id, routine_id)
