"""
Schemas for the Flights API

Flight documents live in the "flights" MongoDB collection. Passengers are
embedded in their flight and have no collection of their own. The models here
validate client payloads before anything reaches the database; timestamps and
the document id are owned by the store and never accepted from clients.
"""

from enum import Enum
from typing import Annotated, Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field, StringConstraints, ValidationError, field_validator

FlightCode = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]


class FlightCategory(str, Enum):
    BLACK = "Black"
    PLATINUM = "Platinum"
    GOLD = "Gold"
    NORMAL = "Normal"


class Passenger(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: int = Field(..., description="Passenger identifier, not required to be unique")
    name: str = Field(..., min_length=1, description="Passenger full name")
    hasConnections: bool = Field(..., description="Whether the passenger has connecting flights")
    age: int = Field(..., description="Age in years")
    flightCategory: FlightCategory = Field(..., description="Black | Platinum | Gold | Normal")
    reservationId: str = Field(..., min_length=1, description="Reservation reference")
    hasCheckedBaggage: bool = Field(..., description="Whether the passenger checked baggage")


class FlightCreate(BaseModel):
    model_config = ConfigDict(extra="ignore")

    flightCode: FlightCode = Field(..., description="Unique flight code, e.g., AA100")
    passengers: List[Passenger] = Field(..., description="Passengers on board, may be empty")


class FlightUpdate(BaseModel):
    """Partial update: only the fields the client sent are written."""

    model_config = ConfigDict(extra="ignore")

    flightCode: Optional[FlightCode] = None
    passengers: Optional[List[Passenger]] = None

    @field_validator("flightCode", "passengers", mode="before")
    @classmethod
    def reject_null(cls, value: Any) -> Any:
        if value is None:
            raise ValueError("must not be null")
        return value

    def changes(self) -> dict:
        return self.model_dump(mode="json", exclude_unset=True)


class ApiResponse(BaseModel):
    """Envelope shared by every response body."""

    success: bool
    data: Optional[Any] = None
    message: Optional[str] = None
    error: Optional[str] = None
    count: Optional[int] = None
    errors: Optional[List[str]] = None

    def body(self) -> dict:
        return {key: value for key, value in self.model_dump().items() if value is not None}


def describe_errors(exc: ValidationError) -> List[str]:
    """Flatten pydantic errors into "field.path: reason" strings."""
    reasons = []
    for err in exc.errors():
        where = ".".join(str(part) for part in err["loc"]) or "body"
        reasons.append(f"{where}: {err['msg']}")
    return reasons
