"""
MongoDB access for flight documents.

The client is opened once by the application lifespan and handed to
FlightStore through its collection; nothing here keeps a module-level
connection.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from pymongo import ASCENDING, DESCENDING, MongoClient, ReturnDocument
from pymongo.collection import Collection

from config import Settings

logger = logging.getLogger(__name__)

FLIGHTS_COLLECTION = "flights"


def connect(settings: Settings) -> MongoClient:
    logger.info("Connecting to MongoDB database %s", settings.database_name)
    return MongoClient(
        settings.database_url,
        serverSelectionTimeoutMS=settings.database_timeout_ms,
        tz_aware=True,
    )


def to_str_id(doc: Dict[str, Any]) -> Dict[str, Any]:
    if not doc:
        return doc
    doc = dict(doc)
    if "_id" in doc:
        doc["_id"] = str(doc["_id"])
    return doc


def _now() -> datetime:
    # BSON dates keep milliseconds only
    now = datetime.now(timezone.utc)
    return now.replace(microsecond=now.microsecond // 1000 * 1000)


class FlightStore:
    """Point reads and writes on the flights collection, keyed by flightCode."""

    def __init__(self, collection: Collection):
        self.collection = collection

    def ensure_indexes(self) -> None:
        # flightCode uniqueness is enforced here, not by the service pre-checks
        self.collection.create_index([("flightCode", ASCENDING)], unique=True, name="flightCode_unique")
        self.collection.create_index([("createdAt", DESCENDING)], name="createdAt_desc")

    def find_all(self) -> List[Dict[str, Any]]:
        return list(self.collection.find().sort("createdAt", DESCENDING))

    def find_by_code(self, flight_code: str) -> Optional[Dict[str, Any]]:
        return self.collection.find_one({"flightCode": flight_code})

    def insert(self, document: Dict[str, Any]) -> Dict[str, Any]:
        """Insert a new flight. Raises DuplicateKeyError if the code is taken."""
        data = dict(document)
        now = _now()
        data["createdAt"] = now
        data["updatedAt"] = now
        result = self.collection.insert_one(data)
        data["_id"] = result.inserted_id
        return data

    def update_by_code(self, flight_code: str, fields: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        """$set the given fields and return the updated document, or None if absent."""
        changes = dict(fields)
        changes["updatedAt"] = _now()
        return self.collection.find_one_and_update(
            {"flightCode": flight_code},
            {"$set": changes},
            return_document=ReturnDocument.AFTER,
        )

    def delete_by_code(self, flight_code: str) -> Optional[Dict[str, Any]]:
        return self.collection.find_one_and_delete({"flightCode": flight_code})

