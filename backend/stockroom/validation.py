from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from sqlalchemy import Boolean, Integer, String, Text
from sqlalchemy.orm import DeclarativeMeta


# Upper bound on a single quantity field; guards against typos like 1e9 units
MAX_QUANTITY = 1_000_000


class ValidationError(ValueError):
    """400-level input problem."""


class NotFoundError(LookupError):
    """404-level missing entity (item, request, user)."""


class ConflictError(ValueError):
    """409-level business rule conflict (e.g., duplicate SKU)."""


@dataclass(frozen=True)
class ModelValidationPolicy:
    """
    Central policy layer:
    - writable_fields: what clients are allowed to set (security boundary)
    - required_on_create: fields required for POST
    - aliases: incoming JSON key -> model column key (camelCase API, snake_case columns)
    """
    writable_fields: set[str]
    required_on_create: set[str] = None  # type: ignore
    aliases: dict[str, str] | None = None


def _columns_by_key(model: DeclarativeMeta) -> dict[str, Any]:
    mapper = model.__mapper__
    return {c.key: c for c in mapper.columns}


def coerce_int(value: Any, field: str) -> int:
    """Strict integer coercion: rejects bools, floats, decimals and scientific notation."""
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    if isinstance(value, str):
        stripped = value.strip()
        if not stripped:
            raise ValidationError(f"{field} must be an integer")
        if 'e' in stripped.lower():
            raise ValidationError(f"{field} must be a plain integer (scientific notation not allowed)")
        if '.' in stripped:
            raise ValidationError(f"{field} must be an integer (no decimals)")
        try:
            return int(stripped)
        except ValueError:
            raise ValidationError(f"{field} must be an integer")
    if isinstance(value, float):
        raise ValidationError(f"{field} must be an integer, not a decimal")
    raise ValidationError(f"{field} must be an integer")


def coerce_quantity(value: Any, field: str = "quantity", *, allow_zero: bool = False) -> int:
    qty = coerce_int(value, field)
    if qty < 0 or (qty == 0 and not allow_zero):
        raise ValidationError(f"{field} must be {'>= 0' if allow_zero else '> 0'}")
    if qty > MAX_QUANTITY:
        raise ValidationError(f"{field} cannot exceed {MAX_QUANTITY}")
    return qty


def _coerce_value(col, value: Any):
    coltype = col.type

    if value is None:
        return None

    if isinstance(coltype, Integer):
        return coerce_int(value, col.key)

    if isinstance(coltype, Boolean):
        if isinstance(value, bool):
            return value
        return bool(value)

    if isinstance(coltype, (String, Text)):
        return str(value).strip()

    return value


def validate_payload(
    *,
    model: DeclarativeMeta,
    payload: dict,
    policy: ModelValidationPolicy,
    partial: bool,
) -> dict:
    """
    Validates + normalizes incoming JSON against:
    - SQLAlchemy column metadata (nullable, type, String length)
    - a policy allowlist (writable_fields)
    - required_on_create (if partial=False)
    Returns a cleaned patch dict keyed by column name.

    partial=False: create semantics (enforce required_on_create)
    partial=True: patch semantics (validate only provided keys)
    """
    if payload is None:
        payload = {}
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")

    aliases = policy.aliases or {}
    payload = {aliases.get(k, k): v for k, v in payload.items()}

    required = policy.required_on_create or set()
    if not partial:
        missing = sorted(f for f in required if f not in payload)
        if missing:
            raise ValidationError(f"Missing required fields: {', '.join(missing)}")

    cols = _columns_by_key(model)

    for k in payload.keys():
        if k not in policy.writable_fields:
            raise ValidationError(f"Field not allowed: {k}")
        if k not in cols:
            raise ValidationError(f"Unknown field: {k}")

    patch: dict = {}

    for k, raw in payload.items():
        col = cols[k]

        if raw is None:
            if not col.nullable:
                raise ValidationError(f"{k} cannot be null")
            patch[k] = None
            continue

        val = _coerce_value(col, raw)

        if isinstance(col.type, (String, Text)) and isinstance(val, str) and val == "":
            if not col.nullable:
                raise ValidationError(f"{k} cannot be blank")
            # Blank optional strings (e.g. barcode) are stored as NULL
            val = None

        if isinstance(col.type, String) and col.type.length and isinstance(val, str):
            if len(val) > col.type.length:
                raise ValidationError(f"{k} exceeds max length {col.type.length}")

        patch[k] = val

    return patch


def parse_request_lines(raw_items: Any, *, drop_zero: bool = False) -> list[tuple[int, int]]:
    """
    Normalize a submitted item list into [(item_id, quantity), ...].

    Accepts dicts with itemId/requestedQuantity (the request shape) or
    itemId/quantity (the receiving shape). Duplicate item ids are merged by
    summing. With drop_zero, lines with quantity 0 are discarded instead of
    rejected. Order of first appearance is preserved.
    """
    if raw_items is None:
        raise ValidationError("items is required")
    if not isinstance(raw_items, list):
        raise ValidationError("items must be a list")

    merged: dict[int, int] = {}
    for index, raw in enumerate(raw_items):
        if not isinstance(raw, dict):
            raise ValidationError(f"items[{index}] must be an object")
        if "itemId" not in raw:
            raise ValidationError(f"items[{index}].itemId is required")
        item_id = coerce_int(raw["itemId"], f"items[{index}].itemId")

        qty_raw = raw.get("requestedQuantity", raw.get("quantity"))
        if qty_raw is None:
            raise ValidationError(f"items[{index}].requestedQuantity is required")
        qty = coerce_quantity(qty_raw, f"items[{index}].requestedQuantity", allow_zero=drop_zero)
        if qty == 0:
            continue

        merged[item_id] = merged.get(item_id, 0) + qty

    return list(merged.items())
