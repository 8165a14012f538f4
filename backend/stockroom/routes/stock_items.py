# backend/stockroom/routes/stock_items.py
"""
Catalog routes: list, create and barcode lookup.

SECURITY: reads require VIEW_STOCK_ITEMS, create requires MANAGE_STOCK_ITEMS.
"""
from flask import Blueprint, jsonify, request

from ..decorators import require_auth, require_permission
from ..models import StockItem
from ..services import catalog_service
from ..validation import ModelValidationPolicy, ValidationError, validate_payload
from .responses import error, error_response, json_payload


STOCK_ITEM_POLICY = ModelValidationPolicy(
    writable_fields={"name", "sku", "barcode"},
    required_on_create={"name", "sku"},
)

stock_items_bp = Blueprint("stock_items", __name__, url_prefix="/api/stock-items")


@stock_items_bp.get("")
@require_auth
@require_permission("VIEW_STOCK_ITEMS")
def list_stock_items():
    try:
        return jsonify([item.to_dict() for item in catalog_service.list_stock_items()])
    except Exception as e:
        return error_response(e, "fetch stock items")


@stock_items_bp.post("")
@require_auth
@require_permission("MANAGE_STOCK_ITEMS")
def create_stock_item():
    try:
        payload = json_payload()
        patch = validate_payload(model=StockItem, payload=payload, policy=STOCK_ITEM_POLICY, partial=False)
    except ValidationError as e:
        return error(str(e), 400)

    try:
        item = catalog_service.create_stock_item(**patch)
        return jsonify(item.to_dict()), 201
    except Exception as e:
        return error_response(e, "create stock item")


@stock_items_bp.get("/barcode")
@require_auth
@require_permission("VIEW_STOCK_ITEMS")
def get_stock_item_by_barcode():
    barcode = request.args.get("barcode", "")
    if not barcode.strip():
        return error("Barcode parameter is required", 400)

    try:
        item = catalog_service.get_stock_item_by_barcode(barcode)
    except Exception as e:
        return error_response(e, "fetch item by barcode")

    if item is None:
        return error("Product not found for this barcode", 404)
    return jsonify(item.to_dict())
