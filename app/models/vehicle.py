"""Vehicle models and identifier validation."""

from __future__ import annotations

import re
import uuid
from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from app.core.clock import utcnow

VIN_LENGTH = 17
VIN_PATTERN = re.compile(r"^[A-HJ-NPR-Z0-9]{17}$")
STOCK_NUMBER_PATTERN = re.compile(r"^[A-Za-z0-9_-]+$")


class ProcessingStatus(str, Enum):
    """Aggregate image processing state of a vehicle, derived from its jobs."""

    NOT_STARTED = "NOT_STARTED"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"
    ERROR = "ERROR"


def normalize_vin(value: str) -> str:
    """Upper-case and validate a VIN, raising ``ValueError`` with a readable reason."""

    vin = str(value or "").strip().upper()
    if not vin:
        raise ValueError("VIN is required and cannot be empty")
    if len(vin) != VIN_LENGTH:
        raise ValueError(f"VIN must be exactly {VIN_LENGTH} characters (provided: {len(vin)})")
    if not VIN_PATTERN.match(vin):
        raise ValueError("VIN must contain only alphanumeric characters (A-Z, 0-9) excluding I, O, and Q")
    return vin


def normalize_stock_number(value: str) -> str:
    stock_number = str(value or "").strip()
    if not stock_number:
        raise ValueError("Stock number is required and cannot be empty")
    if not STOCK_NUMBER_PATTERN.match(stock_number):
        raise ValueError("Stock number may only contain letters, digits, '-' and '_'")
    return stock_number


class Vehicle(BaseModel):
    """A dealership vehicle as seen by the image pipeline."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=lambda: f"veh_{uuid.uuid4().hex}")
    stock_number: str
    vin: str
    store_id: str
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    @field_validator("vin", mode="before")
    @classmethod
    def validate_vin(cls, value: str) -> str:
        return normalize_vin(value)

    @field_validator("stock_number", mode="before")
    @classmethod
    def validate_stock_number(cls, value: str) -> str:
        return normalize_stock_number(value)


class VehicleCreateRequest(BaseModel):
    """Payload accepted by the vehicle intake endpoint."""

    stock_number: str = Field(..., description="Store-scoped stock number.")
    vin: str = Field(..., description="17 character VIN.")
    store_id: str

    @field_validator("vin", mode="before")
    @classmethod
    def validate_vin(cls, value: str) -> str:
        return normalize_vin(value)

    @field_validator("stock_number", mode="before")
    @classmethod
    def validate_stock_number(cls, value: str) -> str:
        return normalize_stock_number(value)


class VehicleResponse(BaseModel):
    """API representation of a vehicle with its derived processing status."""

    id: str
    stock_number: str
    vin: str
    store_id: str
    processing_status: ProcessingStatus
    created_at: datetime
    updated_at: datetime
    image_count: int = 0
    optimized_key_image_count: int = 0
    latest_job_id: Optional[str] = None
