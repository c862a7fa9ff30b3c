# harvestchain/services/farmer/farmer_service.py
from __future__ import annotations

import logging
from collections import Counter
from typing import Any, Dict, List, Optional

from pymongo import ASCENDING, DESCENDING, ReturnDocument
from pymongo.errors import DuplicateKeyError

from harvestchain.errors import ConflictError, NotFoundError, ValidationError
from harvestchain.models.base import parse_payload, to_object_id, utcnow
from harvestchain.models.farmer.farmer_models import FarmerCreateModel

log = logging.getLogger(__name__)

COLLECTION = "farmers"
DEFAULT_PAGE_SIZE = 50
UNIQUE_FIELDS = ("firebaseUid", "phoneNumber", "aadharNumber")

DUPLICATE_MESSAGE = "Farmer already exists with this phone number, Aadhar, or Firebase UID"


def mask_phone(phone: Optional[str]) -> str:
    phone = phone or ""
    return f"******{phone[-4:]}" if len(phone) > 4 else "****"


class FarmerService:
    """CRUD over the `farmers` collection. Uniqueness is left to the indexes."""

    def __init__(self, db):
        self.col = db[COLLECTION]

    def ensure_indexes(self) -> List[str]:
        names = [self.col.create_index([(f, ASCENDING)], unique=True) for f in UNIQUE_FIELDS]
        names.append(self.col.create_index([("createdAt", DESCENDING)]))
        return names

    # ------------------------------------------------------------
    # CREATE
    # ------------------------------------------------------------
    def create(self, data: Dict[str, Any]) -> Dict[str, Any]:
        payload = parse_payload(FarmerCreateModel, data)
        now = utcnow()
        doc = {**payload.model_dump(), "createdAt": now, "updatedAt": now}

        try:
            res = self.col.insert_one(doc)
        except DuplicateKeyError as e:
            log.info("Duplicate farmer rejected for %s", mask_phone(payload.phoneNumber))
            raise ConflictError(DUPLICATE_MESSAGE) from e

        log.info("Farmer created: %s", res.inserted_id)
        return self.col.find_one({"_id": res.inserted_id})

    # ------------------------------------------------------------
    # LOOKUPS
    # ------------------------------------------------------------
    def get_by_firebase_uid(self, uid: str, projection=None) -> Optional[Dict[str, Any]]:
        return self.col.find_one({"firebaseUid": uid}, projection)

    def get_by_phone(self, phone: str, projection=None) -> Optional[Dict[str, Any]]:
        return self.col.find_one({"phoneNumber": phone}, projection)

    def get_by_id(self, farmer_id: str, projection=None) -> Optional[Dict[str, Any]]:
        oid = to_object_id(farmer_id)
        if oid is None:
            return None
        return self.col.find_one({"_id": oid}, projection)

    def exists(self, uid: str) -> bool:
        return self.col.find_one({"firebaseUid": uid}, {"_id": 1}) is not None

    def verify_login(self, phone: str, passcode: str) -> Optional[Dict[str, Any]]:
        # Plaintext passcode: one exact match on both fields.
        return self.col.find_one({"phoneNumber": phone, "passcode": passcode})

    # ------------------------------------------------------------
    # UPDATES
    # ------------------------------------------------------------
    def _update_one(self, query: Dict[str, Any], patch: Dict[str, Any], projection=None):
        fields = {**patch, "updatedAt": utcnow()}
        try:
            return self.col.find_one_and_update(
                query,
                {"$set": fields},
                projection=projection,
                return_document=ReturnDocument.AFTER,
            )
        except DuplicateKeyError as e:
            raise ConflictError(DUPLICATE_MESSAGE) from e

    def update(self, uid: str, patch: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        """Partial update by Firebase UID. Callers strip immutable fields first."""
        return self._update_one({"firebaseUid": uid}, patch)

    def update_by_id(self, farmer_id: str, patch: Dict[str, Any], projection=None) -> Optional[Dict[str, Any]]:
        oid = to_object_id(farmer_id)
        if oid is None:
            return None
        return self._update_one({"_id": oid}, patch, projection)

    def update_crops(self, farmer_id: str, crops: Any) -> Dict[str, Any]:
        if not isinstance(crops, list) or not all(isinstance(c, str) for c in crops):
            raise ValidationError("Crops array is required")

        cleaned = [c.strip() for c in crops]
        farmer = self.update_by_id(farmer_id, {"cropsGrown": cleaned})
        if farmer is None:
            raise NotFoundError("Farmer not found")

        log.info("Farmer crops updated: %s (%d crops)", farmer["_id"], len(cleaned))
        return farmer

    # ------------------------------------------------------------
    # DELETE
    # ------------------------------------------------------------
    def delete(self, uid: str) -> bool:
        return self.col.delete_one({"firebaseUid": uid}).deleted_count == 1

    def delete_by_id(self, farmer_id: str) -> bool:
        oid = to_object_id(farmer_id)
        if oid is None:
            return False
        return self.col.delete_one({"_id": oid}).deleted_count == 1

    # ------------------------------------------------------------
    # LISTING + STATS
    # ------------------------------------------------------------
    def list_paged(self, limit: int = DEFAULT_PAGE_SIZE, skip: int = 0, projection=None) -> List[Dict[str, Any]]:
        cur = (
            self.col.find({}, projection)
            .sort([("createdAt", DESCENDING)])
            .skip(skip)
            .limit(limit)
        )
        return list(cur)

    def count(self, query: Optional[Dict[str, Any]] = None) -> int:
        return self.col.count_documents(query or {})

    def stats(self) -> Dict[str, Any]:
        by_crop: Counter = Counter()
        by_location: Counter = Counter()
        total = 0

        for farmer in self.col.find({}, {"cropsGrown": 1, "location": 1}):
            total += 1
            by_crop.update(farmer.get("cropsGrown") or [])
            by_location[farmer.get("location") or "Unknown"] += 1

        return {
            "totalFarmers": total,
            "farmersByCrop": dict(by_crop),
            "farmersByLocation": dict(by_location),
        }
