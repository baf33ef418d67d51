# Overview: Query-string parsing helpers for list and search routes.

from __future__ import annotations

from flask import current_app, request

from ..time_utils import parse_iso_datetime
from ..validation import ValidationError, coerce_decimal, coerce_int


def int_arg(name: str):
    raw = request.args.get(name)
    if raw is None or not raw.strip():
        return None
    return coerce_int(name, raw)


def decimal_arg(name: str):
    raw = request.args.get(name)
    if raw is None or not raw.strip():
        return None
    return coerce_decimal(name, raw)


def bool_arg(name: str):
    raw = request.args.get(name)
    if raw is None or not raw.strip():
        return None
    value = raw.strip().lower()
    if value in {"true", "1", "yes"}:
        return True
    if value in {"false", "0", "no"}:
        return False
    raise ValidationError(f"{name} must be true or false")


def datetime_arg(name: str):
    raw = request.args.get(name)
    try:
        return parse_iso_datetime(raw)
    except ValueError:
        raise ValidationError(f"{name} must be an ISO-8601 datetime")


def str_arg(name: str):
    # Blank values are handed through; the specifications treat them as absent.
    return request.args.get(name)


def page_args() -> dict:
    """
    page: 1-indexed page number (default 1)
    per_page: items per page (default DEFAULT_PAGE_SIZE, max MAX_PAGE_SIZE)
    """
    page = int_arg("page")
    per_page = int_arg("per_page")
    if page is not None and page < 1:
        raise ValidationError("page must be >= 1")
    if per_page is not None and per_page < 1:
        raise ValidationError("per_page must be >= 1")
    if per_page is not None:
        per_page = min(per_page, current_app.config.get("MAX_PAGE_SIZE", 100))
    return {"page": page, "per_page": per_page}


def current_actor() -> str | None:
    return request.headers.get("X-Actor")
