# Overview: Liveness endpoint reporting database reachability and ledger table sizes.

import logging
import time

from flask import Blueprint
from sqlalchemy import func, text
from sqlalchemy.exc import SQLAlchemyError

from ..extensions import db
from ..models import Product, StockMovement

logger = logging.getLogger(__name__)

system_bp = Blueprint("system", __name__, url_prefix="/api/v1")


def _database_check() -> dict:
    started = time.perf_counter()
    try:
        db.session.execute(text("SELECT 1"))
        products = db.session.query(func.count(Product.id)).scalar()
        movements = db.session.query(func.count(StockMovement.id)).scalar()
    except SQLAlchemyError:
        db.session.rollback()
        logger.exception("Database health check failed")
        return {
            "status": "unhealthy",
            "latency_ms": round((time.perf_counter() - started) * 1000, 2),
            "error": "Database error",
        }
    return {
        "status": "healthy",
        "latency_ms": round((time.perf_counter() - started) * 1000, 2),
        "details": {"products": products, "stock_movements": movements},
    }


@system_bp.get("/health")
def health():
    database = _database_check()
    code = 200 if database["status"] == "healthy" else 503
    return {"status": database["status"], "checks": {"database": database}}, code
