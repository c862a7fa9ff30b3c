# harvestchain/services/admin/admin_service.py
from __future__ import annotations

import hmac
import logging
import math
from datetime import timedelta
from typing import Any, Dict, List, Optional

from pymongo import ASCENDING, ReturnDocument
from pymongo.errors import DuplicateKeyError

from harvestchain.auth import bcrypt
from harvestchain.errors import AuthError, ConflictError, NotFoundError, ValidationError
from harvestchain.models.admin.admin_models import MIN_PASSWORD_LENGTH, AdminRole
from harvestchain.models.base import to_object_id, utcnow
from harvestchain.services.farmer.farmer_service import DEFAULT_PAGE_SIZE, FarmerService

log = logging.getLogger(__name__)

COLLECTION = "admins"

DEFAULT_MASTER_USERNAME = "master"
DEFAULT_MASTER_PASSWORD = "admin123"

RECENT_WINDOW = timedelta(days=7)

# Admin views of farmer records never carry the passcode.
NO_PASSCODE = {"passcode": 0}


def _hash(password: str) -> str:
    return bcrypt.generate_password_hash(password).decode("utf-8")


def _matches(hashed: Optional[str], password: str) -> bool:
    if not hashed:
        return False
    return bcrypt.check_password_hash(hashed, password or "")


class AdminService:
    def __init__(self, db):
        self.col = db[COLLECTION]
        self.farmers = FarmerService(db)

    def ensure_indexes(self) -> List[str]:
        return [
            self.col.create_index([("username", ASCENDING)], unique=True),
            self.col.create_index([("role", ASCENDING)]),
        ]

    # ------------------------------------------------------------
    # BOOTSTRAP
    # ------------------------------------------------------------
    def _insert_admin(self, username: str, password: str, role: AdminRole) -> Dict[str, Any]:
        now = utcnow()
        doc = {
            "username": username,
            "password": _hash(password),
            "role": role,
            "isActive": True,
            "lastLogin": None,
            "createdAt": now,
            "updatedAt": now,
        }
        try:
            res = self.col.insert_one(doc)
        except DuplicateKeyError as e:
            raise ConflictError("Username already exists") from e
        return self.col.find_one({"_id": res.inserted_id})

    def get_master(self) -> Optional[Dict[str, Any]]:
        return self.col.find_one({"role": "master"})

    def create_master(self) -> Dict[str, Any]:
        """Idempotent: returns the existing master, else creates the default one."""
        existing = self.get_master()
        if existing:
            log.info("Master admin already exists")
            return existing

        master = self._insert_admin(DEFAULT_MASTER_USERNAME, DEFAULT_MASTER_PASSWORD, "master")
        log.info("Master admin created with default credentials")
        return master

    def create_master_with_credentials(self, username: str, password: str) -> Dict[str, Any]:
        username = (username or "").strip()
        if not username or not password:
            raise ValidationError("Username and password are required")
        if len(password) < MIN_PASSWORD_LENGTH:
            raise ValidationError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters")
        if self.get_master():
            raise ConflictError("Master admin already exists")

        master = self._insert_admin(username, password, "master")
        log.info("Master admin '%s' created via setup secret", username)
        return master

    @staticmethod
    def check_setup_secret(supplied: Any, expected: Optional[str]) -> None:
        """Fails closed when the server has no setup secret configured."""
        if not isinstance(supplied, str) or not supplied or not expected:
            raise AuthError("Unauthorized setup")
        if not hmac.compare_digest(supplied.encode("utf-8"), expected.encode("utf-8")):
            raise AuthError("Unauthorized setup")

    # ------------------------------------------------------------
    # LOGIN
    # ------------------------------------------------------------
    def verify_login(self, username: str, password: str) -> Optional[Dict[str, Any]]:
        admin = self.col.find_one({"username": (username or "").strip(), "isActive": True})
        if not admin or not _matches(admin.get("password"), password):
            return None

        return self.col.find_one_and_update(
            {"_id": admin["_id"]},
            {"$set": {"lastLogin": utcnow()}},
            return_document=ReturnDocument.AFTER,
        )

    def get_by_id(self, admin_id: str) -> Optional[Dict[str, Any]]:
        oid = to_object_id(admin_id)
        if oid is None:
            return None
        return self.col.find_one({"_id": oid})

    def count(self) -> int:
        return self.col.count_documents({})

    # ------------------------------------------------------------
    # CREDENTIALS
    # ------------------------------------------------------------
    def update_credentials(
        self,
        admin_id: str,
        username: Optional[str] = None,
        current_password: Optional[str] = None,
        new_password: Optional[str] = None,
    ) -> Dict[str, Any]:
        username = (username or "").strip() or None
        if not username and not new_password:
            raise ValidationError("Username or new password is required")

        admin = self.get_by_id(admin_id)
        if admin is None:
            raise NotFoundError("Admin not found")

        fields: Dict[str, Any] = {}

        if new_password:
            if not current_password:
                raise ValidationError("Current password is required to change password")
            if not _matches(admin.get("password"), current_password):
                raise ValidationError("Current password is incorrect")
            if len(new_password) < MIN_PASSWORD_LENGTH:
                raise ValidationError(f"New password must be at least {MIN_PASSWORD_LENGTH} characters")
            fields["password"] = _hash(new_password)

        if username and username != admin.get("username"):
            taken = self.col.find_one({"username": username, "_id": {"$ne": admin["_id"]}})
            if taken:
                raise ConflictError("Username already exists")
            fields["username"] = username

        fields["updatedAt"] = utcnow()
        try:
            updated = self.col.find_one_and_update(
                {"_id": admin["_id"]},
                {"$set": fields},
                return_document=ReturnDocument.AFTER,
            )
        except DuplicateKeyError as e:
            raise ConflictError("Username already exists") from e

        if updated is None:
            raise NotFoundError("Admin not found")
        log.info("Admin %s updated credentials (%s)", admin["_id"], ", ".join(sorted(fields)))
        return updated

    # ------------------------------------------------------------
    # FARMER MANAGEMENT (passcode always projected away)
    # ------------------------------------------------------------
    def list_farmers(self, limit: int = DEFAULT_PAGE_SIZE, skip: int = 0) -> Dict[str, Any]:
        total = self.farmers.count()
        farmers = self.farmers.list_paged(limit, skip, projection=NO_PASSCODE)
        return {
            "farmers": farmers,
            "total": total,
            "pagination": {
                "limit": limit,
                "skip": skip,
                "total": total,
                "pages": math.ceil(total / limit) if limit else 0,
            },
        }

    def get_farmer(self, farmer_id: str) -> Optional[Dict[str, Any]]:
        return self.farmers.get_by_id(farmer_id, projection=NO_PASSCODE)

    def update_farmer(self, farmer_id: str, patch: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        return self.farmers.update_by_id(farmer_id, patch, projection=NO_PASSCODE)

    def delete_farmer(self, farmer_id: str) -> bool:
        return self.farmers.delete_by_id(farmer_id)

    def stats(self) -> Dict[str, Any]:
        farmer_stats = self.farmers.stats()
        since = utcnow() - RECENT_WINDOW
        return {
            "totalFarmers": farmer_stats["totalFarmers"],
            "totalAdmins": self.count(),
            "recentFarmers": self.farmers.count({"createdAt": {"$gte": since}}),
            "farmersByLocation": farmer_stats["farmersByLocation"],
            "farmersByCrop": farmer_stats["farmersByCrop"],
        }
