# farmgeo/schemas.py
from __future__ import annotations

import logging
from enum import Enum
from typing import Any, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

from farmgeo.utils import to_float

logger = logging.getLogger(__name__)


class FarmerStatus(str, Enum):
    ENROLLED = "Enrolled"
    FARM_CAPTURED = "FarmCaptured"
    VALIDATED = "Validated"
    VERIFIED = "Verified"

    @property
    def is_terminal(self) -> bool:
        """Validated/Verified are set by an external workflow and never regress."""
        return self in TERMINAL_STATUSES

    @classmethod
    def parse(cls, value: Any) -> Optional["FarmerStatus"]:
        """Exact or case-insensitive match on the status value; None if unknown."""
        if isinstance(value, cls):
            return value
        if not isinstance(value, str):
            return None
        try:
            return cls(value)
        except ValueError:
            pass
        wanted = value.strip().lower()
        for member in cls:
            if member.value.lower() == wanted:
                return member
        return None


TERMINAL_STATUSES = frozenset({FarmerStatus.VALIDATED, FarmerStatus.VERIFIED})


class AreaResult(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    square_meters: int = Field(0, alias="squareMeters")
    hectares: float = 0.0
    acres: float = 0.0


class Farm(BaseModel):
    """Snapshot of the farm fields the area engine reads and derives.

    Any other fields on the incoming record are kept as extras, so a derived
    snapshot carries the rest of the record back to the caller.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="allow")

    farm_id: Optional[str] = Field(
        None,
        validation_alias=AliasChoices("farm_id", "farmId", "id"),
        serialization_alias="id",
    )
    farm_size: Optional[float] = Field(
        None,
        validation_alias=AliasChoices("farm_size", "farmSize"),
        serialization_alias="farmSize",
    )
    farm_polygon: Optional[Any] = Field(
        None,
        validation_alias=AliasChoices("farm_polygon", "farmPolygon"),
        serialization_alias="farmPolygon",
    )
    farm_area: Optional[float] = Field(
        None,
        validation_alias=AliasChoices("farm_area", "farmArea"),
        serialization_alias="farmArea",
    )
    calculated_size: bool = Field(
        False,
        validation_alias=AliasChoices("calculated_size", "calculatedSize"),
        serialization_alias="calculatedSize",
    )

    @field_validator("farm_id", mode="before")
    @classmethod
    def _id_as_str(cls, v: Any) -> Optional[str]:
        return None if v in (None, "") else str(v)

    @field_validator("farm_size", "farm_area", mode="before")
    @classmethod
    def _parse_number(cls, v: Any) -> Optional[float]:
        # bad numbers mean "unknown", not a rejected record
        return to_float(v)

    @field_validator("calculated_size", mode="before")
    @classmethod
    def _flag(cls, v: Any) -> bool:
        return bool(v) if v is not None else False


class Farmer(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="allow")

    farmer_id: Optional[str] = Field(
        None,
        validation_alias=AliasChoices("farmer_id", "farmerId", "id"),
        serialization_alias="id",
    )
    status: FarmerStatus = FarmerStatus.ENROLLED

    @field_validator("farmer_id", mode="before")
    @classmethod
    def _id_as_str(cls, v: Any) -> Optional[str]:
        return None if v in (None, "") else str(v)

    @field_validator("status", mode="before")
    @classmethod
    def _status(cls, v: Any) -> FarmerStatus:
        status = FarmerStatus.parse(v)
        if status is None:
            if v is not None:
                logger.warning("Unknown farmer status %r; treating as %s", v, FarmerStatus.ENROLLED.value)
            return FarmerStatus.ENROLLED
        return status


class StatusChange(BaseModel):
    farmer_id: Optional[str] = None
    previous: FarmerStatus
    status: FarmerStatus


class StatusUpdatePlan(BaseModel):
    total: int = 0
    updated: int = 0
    changes: list[StatusChange] = Field(default_factory=list)
    errors: list[dict[str, Any]] = Field(default_factory=list)
