"""Pydantic schemas for API requests and responses."""

from src.schemas.auth import AuthResponse, UserLogin, UserRegister, UserResponse
from src.schemas.routine import (
    RoutineCreate,
    RoutineResponse,
    RoutineStepCreate,
    RoutineStepResponse,
    RoutineStepUpdate,
    RoutineUpdate,
)

__all__ = [
    "UserRegister",
    "UserLogin",
    "AuthResponse",
    "UserResponse",
    "RoutineCreate",
    "RoutineUpdate",
    "RoutineResponse",
    "RoutineStepCreate",
    "RoutineStepUpdate",
    "RoutineStepResponse",
]
