# harvestchain/routes/farmer/farmer_routes.py

from flask import Blueprint, current_app, request

from harvestchain.errors import ValidationError
from harvestchain.models.base import parse_payload
from harvestchain.models.farmer.farmer_models import (
    CropsUpdateModel,
    FarmerLoginModel,
    FarmerUpdateModel,
    public_farmer,
    strip_immutable,
)
from harvestchain.mongo import get_db, get_store
from harvestchain.responses import fail, ok
from harvestchain.routes.pagination import page_args
from harvestchain.services.farmer.farmer_service import FarmerService, mask_phone

farmer_bp = Blueprint("farmers", __name__, url_prefix="/api/farmers")


@farmer_bp.before_request
def _require_store():
    if request.method != "OPTIONS":
        get_store().ensure_connected()


def _service() -> FarmerService:
    return FarmerService(get_db())


def _body() -> dict:
    data = request.get_json(silent=True)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValidationError("Request body must be a JSON object")
    return data


# ---------------------------------------------------------
# POST /api/farmers/create
# ---------------------------------------------------------
@farmer_bp.post("/create")
def create_farmer():
    data = _body()
    current_app.logger.info("Farmer registration for %s", mask_phone(data.get("phoneNumber")))
    farmer = _service().create(data)
    return ok(public_farmer(farmer), "Farmer created successfully", status=201)


# ---------------------------------------------------------
# Lookups
# ---------------------------------------------------------
@farmer_bp.get("/firebase/<uid>")
def get_by_firebase_uid(uid):
    farmer = _service().get_by_firebase_uid(uid)
    if not farmer:
        return fail("Farmer not found", 404)
    return ok(public_farmer(farmer))


@farmer_bp.get("/phone/<phone_number>")
def get_by_phone(phone_number):
    farmer = _service().get_by_phone(phone_number)
    if not farmer:
        return fail("Farmer not found", 404)
    return ok(public_farmer(farmer))


@farmer_bp.get("/exists/<uid>")
def farmer_exists(uid):
    exists = _service().exists(uid)
    return ok({"exists": exists}, exists=exists)


# ---------------------------------------------------------
# POST /api/farmers/login
# ---------------------------------------------------------
@farmer_bp.post("/login")
def login_farmer():
    data = _body()
    if not data.get("phoneNumber") or not data.get("passcode"):
        return fail("Phone number and passcode are required", 400)

    creds = parse_payload(FarmerLoginModel, data)
    farmer = _service().verify_login(creds.phoneNumber, creds.passcode)
    if not farmer:
        current_app.logger.info("Farmer login failed for %s", mask_phone(creds.phoneNumber))
        return fail("Invalid phone number or passcode", 401)

    return ok(public_farmer(farmer), "Login successful")


# ---------------------------------------------------------
# Updates
# ---------------------------------------------------------
@farmer_bp.put("/update/<uid>")
def update_farmer(uid):
    patch = parse_payload(FarmerUpdateModel, strip_immutable(_body()))
    farmer = _service().update(uid, patch.model_dump(exclude_unset=True, exclude_none=True))
    if not farmer:
        return fail("Farmer not found", 404)
    return ok(public_farmer(farmer), "Farmer updated successfully")


@farmer_bp.put("/crops/<farmer_id>")
def update_farmer_crops(farmer_id):
    data = _body()
    if not isinstance(data.get("crops"), list):
        return fail("Crops array is required", 400)

    payload = parse_payload(CropsUpdateModel, data)
    farmer = _service().update_crops(farmer_id, payload.crops)
    return ok(public_farmer(farmer), "Farmer crops updated successfully")


# ---------------------------------------------------------
# DELETE /api/farmers/delete/<uid>
# ---------------------------------------------------------
@farmer_bp.delete("/delete/<uid>")
def delete_farmer(uid):
    if not _service().delete(uid):
        return fail("Farmer not found", 404)
    current_app.logger.info("Farmer deleted: %s", uid)
    return ok(message="Farmer deleted successfully")


# ---------------------------------------------------------
# Listing + stats
# ---------------------------------------------------------
@farmer_bp.get("/all")
def list_farmers():
    limit, skip = page_args()
    farmers = _service().list_paged(limit, skip)
    return ok(
        [public_farmer(f) for f in farmers],
        pagination={"limit": limit, "skip": skip, "count": len(farmers)},
    )


@farmer_bp.get("/stats")
def farmer_stats():
    return ok(_service().stats())
