"""
startup.py — Database Startup Migrations (Idempotent)

Tables, columns, and indexes are defined in the ORM models (app/models/) and
created via Base.metadata.create_all(checkfirst=True). This file only handles
what the ORM can't express: seed rows and PostgreSQL CHECK constraints.

Called by: main.py lifespan
Depends on: database.py (engine), models (Base)
"""

import logging
import os

from sqlalchemy import text as sqltext
from sqlalchemy.exc import SQLAlchemyError

from .database import engine

log = logging.getLogger(__name__)

DEFAULT_DEPARTMENTS = (
    ("Sell Sheets", "Marketing sell sheets", "#2563EB"),
    ("Virtual Prototypes", "3D renderings and virtual prototypes", "#7C3AED"),
    ("Line Drawings", "Technical line drawings", "#059669"),
)


def run_startup_migrations() -> None:
    """Execute all idempotent startup operations. Safe to call on every app boot."""
    if os.environ.get("TESTING"):
        log.info("TESTING mode — skipping startup migrations")
        return

    from .models import Base

    Base.metadata.create_all(bind=engine, checkfirst=True)
    log.info("ORM schema sync complete (create_all checkfirst=True)")

    with engine.connect() as conn:
        _seed_default_tier(conn)
        _seed_departments(conn)
        if engine.dialect.name == "postgresql":
            _add_check_constraints(conn)
    log.info("Startup migrations complete")


def _exec(conn, stmt: str, params: dict | None = None) -> None:
    """Execute a single statement with rollback on failure."""
    try:
        conn.execute(sqltext(stmt), params or {})
        conn.commit()
    except SQLAlchemyError as e:
        log.warning("Startup statement failed: %s", e)
        conn.rollback()


# ── Seed data ────────────────────────────────────────────────────────


def _seed_default_tier(conn) -> None:
    """The default price list's tier row (INSERT ON CONFLICT DO NOTHING)."""
    _exec(
        conn,
        """INSERT INTO pricing_tiers (name, display_name, description, is_active, sort_order, created_at, updated_at)
        VALUES (:name, :display, :desc, true, 0, CURRENT_TIMESTAMP, CURRENT_TIMESTAMP)
        ON CONFLICT (name) DO NOTHING""",
        {"name": "Default Pricing", "display": "Standard", "desc": "Prices for non-members"},
    )


def _seed_departments(conn) -> None:
    for name, desc, color in DEFAULT_DEPARTMENTS:
        _exec(
            conn,
            """INSERT INTO departments (name, description, color, is_active, created_at, updated_at)
            SELECT :name, :desc, :color, true, CURRENT_TIMESTAMP, CURRENT_TIMESTAMP
            WHERE NOT EXISTS (SELECT 1 FROM departments WHERE name = :name)""",
            {"name": name, "desc": desc, "color": color},
        )


# ── CHECK constraints (PostgreSQL NOT VALID) ─────────────────────────


def _add_check_constraints(conn) -> None:
    """Add CHECK constraints (NOT VALID) — only new inserts/updates are checked."""
    constraints = [
        ("users", "chk_user_role", "role IN ('client','designer','manager','admin')"),
        ("voucher_codes", "chk_voucher_type", "discount_type IN ('percentage','fixed')"),
        ("voucher_codes", "chk_voucher_value", "discount_value > 0"),
        ("product_pricing", "chk_product_price", "price >= 0"),
        ("surveys", "chk_survey_overall", "overall_satisfaction IS NULL OR overall_satisfaction BETWEEN 1 AND 5"),
        ("email_logs", "chk_email_status", "status IN ('sent','failed','logged')"),
        ("design_package_orders", "chk_pkg_status", "package_status IN ('active','completed')"),
        ("error_reports", "chk_error_status", "status IN ('open','in_progress','resolved','closed')"),
    ]
    for table, name, check in constraints:
        _exec(conn, f"""
            DO $$ BEGIN
                IF NOT EXISTS (
                    SELECT 1 FROM pg_constraint WHERE conname = '{name}'
                ) THEN
                    ALTER TABLE {table} ADD CONSTRAINT {name} CHECK ({check}) NOT VALID;
                END IF;
            END $$;
        """)
