"""
Validation and conflict rules for the flight resource.

Expected outcomes (not found, invalid payload, duplicate flight code) come
back as a FlightResult. Anything else, typically a PyMongoError from the
store, is raised to the caller unchanged.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import ValidationError
from pymongo.errors import DuplicateKeyError

from database import FlightStore
from schemas import FlightCreate, FlightUpdate, describe_errors

logger = logging.getLogger(__name__)

REQUIRED_FIELDS_MESSAGE = "flightCode and passengers are required"
INVALID_FLIGHT_MESSAGE = "Invalid flight data"
NOT_FOUND_MESSAGE = "Flight not found"
DUPLICATE_CODE_MESSAGE = "Flight code already exists"


class Outcome(str, Enum):
    OK = "ok"
    NOT_FOUND = "not_found"
    VALIDATION_FAILURE = "validation_failure"
    CONFLICT = "conflict"


@dataclass
class FlightResult:
    outcome: Outcome
    data: Any = None
    message: Optional[str] = None
    errors: List[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.outcome is Outcome.OK

    @classmethod
    def success(cls, data: Any) -> "FlightResult":
        return cls(Outcome.OK, data=data)

    @classmethod
    def not_found(cls) -> "FlightResult":
        return cls(Outcome.NOT_FOUND, message=NOT_FOUND_MESSAGE)

    @classmethod
    def conflict(cls) -> "FlightResult":
        return cls(Outcome.CONFLICT, message=DUPLICATE_CODE_MESSAGE)

    @classmethod
    def invalid(cls, message: str, errors: List[str]) -> "FlightResult":
        return cls(Outcome.VALIDATION_FAILURE, message=message, errors=errors)


def _missing_required(exc: ValidationError) -> bool:
    """True when flightCode or passengers is absent, null or blank."""
    for err in exc.errors():
        if len(err["loc"]) != 1:
            continue
        if err["type"] in ("missing", "string_too_short") or err.get("input") is None:
            return True
    return False


class FlightService:
    def __init__(self, store: FlightStore):
        self.store = store

    def list_flights(self) -> FlightResult:
        return FlightResult.success(self.store.find_all())

    def get_flight(self, flight_code: str) -> FlightResult:
        flight = self.store.find_by_code(flight_code.strip())
        if flight is None:
            return FlightResult.not_found()
        return FlightResult.success(flight)

    def create_flight(self, payload: Dict[str, Any]) -> FlightResult:
        try:
            candidate = FlightCreate.model_validate(payload)
        except ValidationError as exc:
            message = REQUIRED_FIELDS_MESSAGE if _missing_required(exc) else INVALID_FLIGHT_MESSAGE
            return FlightResult.invalid(message, describe_errors(exc))

        if self.store.find_by_code(candidate.flightCode) is not None:
            return FlightResult.conflict()

        try:
            flight = self.store.insert(candidate.model_dump(mode="json"))
        except DuplicateKeyError:
            # lost the race against a concurrent create with the same code
            logger.info("Duplicate flight code %s rejected by unique index", candidate.flightCode)
            return FlightResult.conflict()

        logger.info("Created flight %s", candidate.flightCode)
        return FlightResult.success(flight)

    def update_flight(self, flight_code: str, payload: Dict[str, Any]) -> FlightResult:
        try:
            update = FlightUpdate.model_validate(payload)
        except ValidationError as exc:
            return FlightResult.invalid(INVALID_FLIGHT_MESSAGE, describe_errors(exc))

        flight_code = flight_code.strip()
        existing = self.store.find_by_code(flight_code)
        if existing is None:
            return FlightResult.not_found()

        changes = update.changes()
        new_code = changes.get("flightCode")
        if new_code is not None and new_code != existing["flightCode"]:
            if self.store.find_by_code(new_code) is not None:
                return FlightResult.conflict()

        try:
            flight = self.store.update_by_code(flight_code, changes)
        except DuplicateKeyError:
            logger.info("Flight code change %s -> %s rejected by unique index", flight_code, new_code)
            return FlightResult.conflict()

        if flight is None:
            # deleted between the existence check and the write
            return FlightResult.not_found()

        logger.info("Updated flight %s (fields: %s)", flight_code, ", ".join(sorted(changes)) or "none")
        return FlightResult.success(flight)

    def delete_flight(self, flight_code: str) -> FlightResult:
        flight = self.store.delete_by_code(flight_code.strip())
        if flight is None:
            return FlightResult.not_found()
        logger.info("Deleted flight %s", flight["flightCode"])
        return FlightResult.success(flight)
