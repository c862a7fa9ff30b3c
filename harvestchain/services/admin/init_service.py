# harvestchain/services/admin/init_service.py
from __future__ import annotations

import logging
from typing import Any, Dict

from harvestchain.services.admin.admin_service import COLLECTION as ADMIN_COLLECTION
from harvestchain.services.admin.admin_service import AdminService
from harvestchain.services.farmer.farmer_service import COLLECTION as FARMER_COLLECTION
from harvestchain.services.farmer.farmer_service import FarmerService

log = logging.getLogger(__name__)

COLLECTIONS = (ADMIN_COLLECTION, FARMER_COLLECTION)


class InitService:
    @staticmethod
    def ensure_indexes(db) -> None:
        """on_connect hook: unique indexes must exist before any write."""
        AdminService(db).ensure_indexes()
        FarmerService(db).ensure_indexes()

    @staticmethod
    def initialize_database(db, create_master: bool = False) -> Dict[str, Any]:
        existing = set(db.list_collection_names())
        created = []
        for name in COLLECTIONS:
            if name not in existing:
                db.create_collection(name)
                created.append(name)

        InitService.ensure_indexes(db)

        master_initialized = None
        if create_master:
            admins = AdminService(db)
            admins.create_master()
            master_initialized = admins.get_master() is not None

        log.info("Database '%s' initialized (created=%s)", db.name, created)
        return {
            "database": db.name,
            "createdCollections": created,
            "ensuredIndexes": list(COLLECTIONS),
            "masterInitialized": master_initialized,
        }
