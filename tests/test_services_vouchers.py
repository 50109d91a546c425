"""
tests/test_services_vouchers.py -- Tests for voucher validation, discounts and admin routes

Covers: validation order, per-user limits, discount math and capping,
redemption counters, and the /api/vouchers endpoints (public code
lookup, admin CRUD).

Called by: pytest
Depends on: app/services/voucher_service.py, app/routers/vouchers.py, conftest.py
"""

from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest

from app.models import VoucherCode, VoucherUsage
from app.services import voucher_service


def _voucher(db, code="SAVE20", **overrides) -> VoucherCode:
    fields = dict(code=code, discount_type="percentage", discount_value=Decimal("20"), used_count=0, is_active=True)
    fields.update(overrides)
    v = VoucherCode(**fields)
    db.add(v)
    db.commit()
    db.refresh(v)
    return v


# ── Validation ───────────────────────────────────────────────────────


class TestValidateVoucher:
    def test_valid_code_case_insensitive(self, db_session):
        _voucher(db_session)
        result = voucher_service.validate_voucher(db_session, "  save20 ")
        assert result["valid"] is True
        assert result["voucher"].code == "SAVE20"

    @pytest.mark.parametrize("code", [None, "", "   "])
    def test_missing_code(self, db_session, code):
        assert voucher_service.validate_voucher(db_session, code)["message"] == "Voucher code is required"

    def test_unknown_code(self, db_session):
        assert voucher_service.validate_voucher(db_session, "NOPE")["message"] == "Invalid voucher code"

    def test_inactive_checked_before_dates(self, db_session):
        past = datetime.now(timezone.utc) - timedelta(days=1)
        _voucher(db_session, is_active=False, valid_until=past)
        assert voucher_service.validate_voucher(db_session, "SAVE20")["message"] == "Voucher is not active"

    def test_not_yet_valid(self, db_session):
        _voucher(db_session, valid_from=datetime.now(timezone.utc) + timedelta(days=2))
        assert voucher_service.validate_voucher(db_session, "SAVE20")["message"] == "Voucher not yet valid"

    def test_expired(self, db_session):
        _voucher(db_session, valid_until=datetime.now(timezone.utc) - timedelta(seconds=1))
        assert voucher_service.validate_voucher(db_session, "SAVE20")["message"] == "Voucher has expired"

    def test_usage_limit_reached(self, db_session):
        _voucher(db_session, max_uses=3, used_count=3)
        assert voucher_service.validate_voucher(db_session, "SAVE20")["message"] == "Voucher usage limit reached"

    def test_per_user_limit(self, db_session, test_user, other_client):
        v = _voucher(db_session, uses_per_user=1)
        voucher_service.redeem_voucher(db_session, v, test_user.id, "pi_1")
        db_session.commit()

        mine = voucher_service.validate_voucher(db_session, "SAVE20", user=test_user)
        assert mine["valid"] is False
        assert mine["message"] == "You have already used this voucher"
        assert voucher_service.validate_voucher(db_session, "SAVE20", user=other_client)["valid"] is True

    def test_no_per_user_limit_when_unset(self, db_session, test_user):
        v = _voucher(db_session)
        for i in range(3):
            voucher_service.redeem_voucher(db_session, v, test_user.id, f"pi_{i}")
        db_session.commit()
        assert voucher_service.validate_voucher(db_session, "SAVE20", user=test_user)["valid"] is True


# ── Discounts & redemption ───────────────────────────────────────────


class TestDiscount:
    def test_percentage(self, db_session):
        v = _voucher(db_session, discount_value=Decimal("15"))
        assert voucher_service.calculate_discount(v, Decimal("199.99")) == Decimal("30.00")

    def test_fixed(self, db_session):
        v = _voucher(db_session, discount_type="fixed", discount_value=Decimal("25"))
        assert voucher_service.calculate_discount(v, 100) == Decimal("25.00")

    def test_fixed_capped_to_amount(self, db_session):
        v = _voucher(db_session, discount_type="fixed", discount_value=Decimal("500"))
        assert voucher_service.calculate_discount(v, Decimal("120")) == Decimal("120.00")

    def test_zero_amount(self, db_session):
        v = _voucher(db_session)
        assert voucher_service.calculate_discount(v, 0) == Decimal("0.00")

    def test_redeem_bumps_count_and_records_usage(self, db_session, test_user):
        v = _voucher(db_session)
        voucher_service.redeem_voucher(db_session, v, test_user.id, "pi_123")
        db_session.commit()
        db_session.refresh(v)
        assert v.used_count == 1
        usage = db_session.query(VoucherUsage).one()
        assert (usage.user_id, usage.order_id) == (test_user.id, "pi_123")


# ── Routes ───────────────────────────────────────────────────────────


class TestVoucherRoutes:
    def test_crud_round_trip_uppercases_code(self, admin_client):
        created = admin_client.post(
            "/api/vouchers",
            json={"code": "spring10", "discount_type": "percentage", "discount_value": 10, "max_uses": 50},
        )
        assert created.status_code == 201
        body = created.json()
        assert body["code"] == "SPRING10"
        assert body["used_count"] == 0

        fetched = admin_client.get(f"/api/vouchers/{body['id']}").json()
        assert fetched["max_uses"] == 50

        updated = admin_client.patch(f"/api/vouchers/{body['id']}", json={"is_active": False})
        assert updated.json()["is_active"] is False

        assert admin_client.delete(f"/api/vouchers/{body['id']}").json() == {"success": True}
        assert admin_client.get(f"/api/vouchers/{body['id']}").status_code == 404

    def test_patch_clears_limits_and_dates(self, admin_client, db_session):
        v = _voucher(
            db_session, valid_until=datetime(2020, 1, 1, tzinfo=timezone.utc), max_uses=3, uses_per_user=1
        )
        resp = admin_client.patch(
            f"/api/vouchers/{v.id}", json={"valid_until": None, "max_uses": None, "uses_per_user": None}
        )
        assert resp.status_code == 200
        body = resp.json()
        assert body["valid_until"] is None
        assert body["max_uses"] is None
        assert body["uses_per_user"] is None
        assert voucher_service.validate_voucher(db_session, "SAVE20")["valid"] is True

    def test_patch_null_ignored_for_required_fields(self, admin_client, db_session):
        v = _voucher(db_session)
        resp = admin_client.patch(f"/api/vouchers/{v.id}", json={"code": None, "is_active": None})
        assert resp.status_code == 200
        assert resp.json()["code"] == "SAVE20"
        assert resp.json()["is_active"] is True

    def test_duplicate_code_conflict(self, admin_client, db_session):
        _voucher(db_session)
        resp = admin_client.post(
            "/api/vouchers", json={"code": "save20", "discount_type": "fixed", "discount_value": 5}
        )
        assert resp.status_code == 409

    def test_percentage_over_100_rejected(self, admin_client):
        resp = admin_client.post(
            "/api/vouchers", json={"code": "HUGE", "discount_type": "percentage", "discount_value": 150}
        )
        assert resp.status_code == 400

    def test_non_positive_value_is_422(self, admin_client):
        resp = admin_client.post(
            "/api/vouchers", json={"code": "ZERO", "discount_type": "fixed", "discount_value": 0}
        )
        assert resp.status_code == 422

    def test_admin_list(self, admin_client, db_session):
        _voucher(db_session)
        _voucher(db_session, code="TENOFF", discount_type="fixed", discount_value=Decimal("10"))
        resp = admin_client.get("/api/vouchers")
        assert resp.status_code == 200
        assert {v["code"] for v in resp.json()} == {"SAVE20", "TENOFF"}

    def test_list_requires_admin(self, anon_client, test_user, auth_header):
        assert anon_client.get("/api/vouchers").status_code == 401
        assert anon_client.get("/api/vouchers", headers=auth_header(test_user)).status_code == 403

    def test_public_code_lookup(self, anon_client, db_session):
        _voucher(db_session)
        resp = anon_client.get("/api/vouchers", params={"code": "save20"})
        assert resp.status_code == 200
        assert resp.json()["valid"] is True
        assert resp.json()["voucher"]["discount_value"] == 20.0

    def test_code_lookup_unknown_is_404(self, anon_client):
        assert anon_client.get("/api/vouchers", params={"code": "MISSING"}).status_code == 404

    def test_code_lookup_expired_is_400(self, anon_client, db_session):
        _voucher(db_session, valid_until=datetime.now(timezone.utc) - timedelta(days=1))
        resp = anon_client.get("/api/vouchers", params={"code": "SAVE20"})
        assert resp.status_code == 400
        assert resp.json()["error"] == "Voucher has expired"

    def test_validate_endpoint_always_200(self, anon_client):
        resp = anon_client.get("/api/vouchers/validate", params={"code": "MISSING"})
        assert resp.status_code == 200
        assert resp.json() == {"valid": False, "message": "Invalid voucher code", "voucher": None}

    def test_crud_requires_admin(self, manager_client):
        resp = manager_client.post(
            "/api/vouchers", json={"code": "X1", "discount_type": "fixed", "discount_value": 5}
        )
        assert resp.status_code == 403
