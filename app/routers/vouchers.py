"""
routers/vouchers.py — Voucher validation (public) and admin CRUD

Business Rules:
- GET /api/vouchers?code=X is the storefront check: 404 for an unknown
  code, 400 for any other failure (inactive, expired, used up)
- GET /api/vouchers without a code is the admin list
- GET /api/vouchers/validate always answers 200 with {valid, message}
- Signed-in callers are checked against the per-user limit

Called by: main.py (router mount)
Depends on: services/voucher_service, dependencies
"""

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from ..database import get_db
from ..dependencies import get_optional_user, is_admin, require_admin
from ..models import User
from ..schemas.vouchers import VoucherCreate, VoucherUpdate
from ..services import voucher_service

router = APIRouter(tags=["vouchers"])


def _raise_on_error(result: dict) -> dict:
    if "error" in result:
        raise HTTPException(result.get("status", 400), result["error"])
    return result


def _validation_payload(check: dict) -> dict:
    voucher = check["voucher"]
    return {
        "valid": check["valid"],
        "message": check["message"],
        "voucher": voucher_service.serialize_voucher(voucher) if voucher else None,
    }


@router.get("/api/vouchers")
def get_vouchers(
    code: str | None = Query(None),
    user: User | None = Depends(get_optional_user),
    db: Session = Depends(get_db),
):
    if code:
        check = voucher_service.validate_voucher(db, code, user=user)
        if not check["valid"]:
            status = 404 if check["message"] == "Invalid voucher code" else 400
            raise HTTPException(status, check["message"])
        return _validation_payload(check)

    if user is None:
        raise HTTPException(401, "Not authenticated")
    if not is_admin(user):
        raise HTTPException(403, "Admin access required")
    return voucher_service.list_vouchers(db)


@router.get("/api/vouchers/validate")
def validate_voucher(
    code: str | None = Query(None),
    user: User | None = Depends(get_optional_user),
    db: Session = Depends(get_db),
):
    return _validation_payload(voucher_service.validate_voucher(db, code, user=user))


@router.post("/api/vouchers", status_code=201)
def create_voucher(body: VoucherCreate, user: User = Depends(require_admin), db: Session = Depends(get_db)):
    return _raise_on_error(voucher_service.create_voucher(db, body.model_dump()))


@router.get("/api/vouchers/{voucher_id}")
def get_voucher(voucher_id: int, user: User = Depends(require_admin), db: Session = Depends(get_db)):
    return _raise_on_error(voucher_service.get_voucher(db, voucher_id))


@router.patch("/api/vouchers/{voucher_id}")
def update_voucher(
    voucher_id: int,
    body: VoucherUpdate,
    user: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    return _raise_on_error(
        voucher_service.update_voucher(db, voucher_id, body.model_dump(exclude_unset=True))
    )


@router.delete("/api/vouchers/{voucher_id}")
def delete_voucher(voucher_id: int, user: User = Depends(require_admin), db: Session = Depends(get_db)):
    return _raise_on_error(voucher_service.delete_voucher(db, voucher_id))
