"""Student schemas for educator endpoints."""

from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, field_validator

from educare.app.schemas.validators import require_name


class StudentCreate(BaseModel):
    first_name: str
    last_name: str
    date_of_birth: Optional[date] = None

    @field_validator("first_name", "last_name")
    @classmethod
    def _names_required(cls, value: str) -> str:
        return require_name(value)


class StudentRead(BaseModel):
    id: int
    educator_id: int
    first_name: str
    last_name: str
    date_of_birth: Optional[date] = None
    is_active: bool
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)
