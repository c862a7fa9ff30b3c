# harvestchain/models/admin/admin_models.py
from __future__ import annotations

from typing import Any, Dict, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from harvestchain.models.base import serialize_doc

AdminRole = Literal["master", "admin"]

MIN_PASSWORD_LENGTH = 6


class AdminLoginModel(BaseModel):
    username: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)


class MasterSetupModel(BaseModel):
    setupSecret: Optional[str] = None
    username: str = Field(..., min_length=1)
    password: str = Field(..., min_length=MIN_PASSWORD_LENGTH)


class CredentialsUpdateModel(BaseModel):
    model_config = ConfigDict(extra="ignore")

    adminId: Optional[str] = None
    username: Optional[str] = None
    currentPassword: Optional[str] = None
    newPassword: Optional[str] = None


class InitDbModel(BaseModel):
    createMaster: bool = False


def public_admin(doc: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    if doc is None:
        return None
    out = serialize_doc(doc, hide=("password",))
    return {
        "id": out.get("_id"),
        "username": out.get("username"),
        "role": out.get("role"),
        "isActive": out.get("isActive", True),
        "lastLogin": out.get("lastLogin"),
    }
