# backend/stockroom/routes/inventory.py
"""
Warehouse inventory routes.

GET returns the ledger. POST is an action dispatcher:

    {"action": "addStock", "itemId": int, "quantity": int}
    {"action": "receiveStock", "items": [{"itemId": int, "quantity": int}, ...]}
    {"action": "createProduct", "product": {"name", "sku", "barcode"?}, "initialQuantity": int}
    {"action": "deleteProduct", "itemId": int}

SECURITY: reads require VIEW_INVENTORY, every action MANAGE_INVENTORY.
"""
from flask import Blueprint, jsonify

from ..decorators import require_auth, require_permission
from ..services import inventory_service
from ..validation import ValidationError, coerce_int, parse_request_lines
from .responses import error, error_response, json_payload, success


inventory_bp = Blueprint("inventory", __name__, url_prefix="/api/inventory")


@inventory_bp.get("")
@require_auth
@require_permission("VIEW_INVENTORY")
def list_inventory():
    try:
        return jsonify([entry.to_dict() for entry in inventory_service.get_all()])
    except Exception as e:
        return error_response(e, "fetch inventory")


@inventory_bp.post("")
@require_auth
@require_permission("MANAGE_INVENTORY")
def inventory_action():
    try:
        data = json_payload()
        action = data.get("action")

        if action == "addStock":
            entry = inventory_service.increment(
                coerce_int(data["itemId"], "itemId"),
                data["quantity"],
            )
            return success(inventory=entry.to_dict())

        if action == "receiveStock":
            entries = inventory_service.receive_stock(parse_request_lines(data.get("items")))
            return success(inventory=[entry.to_dict() for entry in entries])

        if action == "createProduct":
            product = data.get("product")
            if not isinstance(product, dict):
                raise ValidationError("product is required")
            item = inventory_service.create_product(
                name=product.get("name"),
                sku=product.get("sku"),
                barcode=product.get("barcode"),
                initial_quantity=data.get("initialQuantity", 0),
            )
            return success(201, item=item.to_dict())

        if action == "deleteProduct":
            inventory_service.delete_product(coerce_int(data["itemId"], "itemId"))
            return success()

        return error("Invalid action", 400)

    except Exception as e:
        return error_response(e, "process inventory action")
