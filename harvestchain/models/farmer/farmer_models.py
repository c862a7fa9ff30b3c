# harvestchain/models/farmer/farmer_models.py
from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from harvestchain.models.base import serialize_doc

PASSCODE_PATTERN = r"^\d{4}$"

# Fields a caller may never patch on an existing farmer.
IMMUTABLE_FIELDS = ("passcode", "firebaseUid", "_id", "createdAt", "updatedAt")

# Never leaves the server.
PRIVATE_FIELDS = ("passcode",)


class FarmerCreateModel(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True, extra="ignore")

    firebaseUid: str = Field(..., min_length=1, description="Subject id from the phone-OTP provider")
    name: str = Field(..., min_length=1)
    phoneNumber: str = Field(..., min_length=1)
    passcode: str = Field(..., pattern=PASSCODE_PATTERN, description="4-digit login passcode")
    aadharNumber: str = Field(..., min_length=1)
    location: str = Field(..., min_length=1)
    cropsGrown: List[str] = Field(default_factory=list)


class FarmerUpdateModel(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True, extra="ignore")

    name: Optional[str] = Field(None, min_length=1)
    phoneNumber: Optional[str] = Field(None, min_length=1)
    aadharNumber: Optional[str] = Field(None, min_length=1)
    location: Optional[str] = Field(None, min_length=1)
    cropsGrown: Optional[List[str]] = None


class FarmerLoginModel(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    phoneNumber: str
    passcode: str


class CropsUpdateModel(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    crops: List[str]


def strip_immutable(patch: Dict[str, Any]) -> Dict[str, Any]:
    return {k: v for k, v in patch.items() if k not in IMMUTABLE_FIELDS}


def public_farmer(doc: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    return serialize_doc(doc, hide=PRIVATE_FIELDS)
