# harvestchain/routes/admin/admin_routes.py
"""
Admin API.

`admin_bp` holds the unauthenticated bootstrap + login routes. Everything on
`protected_bp` (nested under it) runs behind `require_admin_token`.
"""

from flask import Blueprint, current_app, request

from harvestchain.auth import current_auth, require_admin_token, sign_auth_token
from harvestchain.errors import AuthError, ValidationError
from harvestchain.models.admin.admin_models import (
    AdminLoginModel,
    CredentialsUpdateModel,
    InitDbModel,
    MasterSetupModel,
    public_admin,
)
from harvestchain.models.base import parse_payload, serialize_doc
from harvestchain.models.farmer.farmer_models import FarmerUpdateModel, public_farmer, strip_immutable
from harvestchain.mongo import get_db, get_store
from harvestchain.responses import fail, ok
from harvestchain.routes.pagination import page_args
from harvestchain.services.admin.admin_service import AdminService
from harvestchain.services.admin.init_service import InitService

admin_bp = Blueprint("admin", __name__, url_prefix="/api/admin")
protected_bp = Blueprint("protected", __name__)


@admin_bp.before_request
def _require_store():
    if request.method != "OPTIONS":
        get_store().ensure_connected()


protected_bp.before_request(require_admin_token)


def _service() -> AdminService:
    return AdminService(get_db())


def _body() -> dict:
    data = request.get_json(silent=True)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValidationError("Request body must be a JSON object")
    return data


# -------------------------------------------------------------------
# Bootstrap
# -------------------------------------------------------------------
@admin_bp.post("/init-master")
def init_master():
    master = _service().create_master()
    return ok(
        {"username": master.get("username"), "role": master.get("role")},
        "Master admin initialized successfully",
    )


@admin_bp.post("/init-master/custom")
def init_master_custom():
    data = _body()
    AdminService.check_setup_secret(data.get("setupSecret"), current_app.config.get("SETUP_SECRET"))
    if not data.get("username") or not data.get("password"):
        return fail("Username and password are required", 400)

    setup = parse_payload(MasterSetupModel, data)
    master = _service().create_master_with_credentials(setup.username, setup.password)
    current_app.logger.info("Master admin created through setup secret")
    return ok({"id": str(master["_id"]), "username": master["username"]}, "Master admin created")


@admin_bp.post("/init-db")
def init_db():
    opts = parse_payload(InitDbModel, _body())
    result = InitService.initialize_database(get_db(), create_master=opts.createMaster)
    return ok(result, "Database initialized")


# -------------------------------------------------------------------
# POST /api/admin/login
# -------------------------------------------------------------------
@admin_bp.post("/login")
def login():
    data = _body()
    if not data.get("username") or not data.get("password"):
        return fail("Username and password are required", 400)

    creds = parse_payload(AdminLoginModel, data)
    admin = _service().verify_login(creds.username, creds.password)
    if not admin:
        current_app.logger.info("Admin login failed for '%s'", creds.username)
        return fail("Invalid username or password", 401)

    token = sign_auth_token(str(admin["_id"]), admin["role"])
    public = public_admin(admin)
    return ok(
        {
            "id": public["id"],
            "username": public["username"],
            "role": public["role"],
            "lastLogin": public["lastLogin"],
            "token": token,
        },
        "Login successful",
    )


# -------------------------------------------------------------------
# Protected: farmer management
# -------------------------------------------------------------------
@protected_bp.get("/farmers")
def list_farmers():
    limit, skip = page_args()
    result = _service().list_farmers(limit, skip)
    return ok([serialize_doc(f) for f in result["farmers"]], pagination=result["pagination"])


@protected_bp.get("/farmers/<farmer_id>")
def get_farmer(farmer_id):
    farmer = _service().get_farmer(farmer_id)
    if not farmer:
        return fail("Farmer not found", 404)
    return ok(public_farmer(farmer))


@protected_bp.put("/farmers/<farmer_id>")
def update_farmer(farmer_id):
    patch = parse_payload(FarmerUpdateModel, strip_immutable(_body()))
    farmer = _service().update_farmer(farmer_id, patch.model_dump(exclude_unset=True, exclude_none=True))
    if not farmer:
        return fail("Farmer not found", 404)
    return ok(public_farmer(farmer), "Farmer updated successfully")


@protected_bp.delete("/farmers/<farmer_id>")
def delete_farmer(farmer_id):
    if not _service().delete_farmer(farmer_id):
        return fail("Farmer not found", 404)
    current_app.logger.info("Admin %s deleted farmer %s", current_auth()["id"], farmer_id)
    return ok(message="Farmer deleted successfully")


@protected_bp.get("/stats")
def stats():
    return ok(_service().stats())


# -------------------------------------------------------------------
# Protected: PUT /api/admin/credentials (self-service)
# -------------------------------------------------------------------
@protected_bp.put("/credentials")
def update_credentials():
    payload = parse_payload(CredentialsUpdateModel, _body())
    admin_id = current_auth()["id"]
    if payload.adminId and payload.adminId != admin_id:
        raise AuthError("Cannot update credentials of another admin")

    updated = _service().update_credentials(
        admin_id,
        username=payload.username,
        current_password=payload.currentPassword,
        new_password=payload.newPassword,
    )
    public = public_admin(updated)
    return ok(
        {"id": public["id"], "username": public["username"], "role": public["role"]},
        "Credentials updated successfully",
    )


admin_bp.register_blueprint(protected_bp)
