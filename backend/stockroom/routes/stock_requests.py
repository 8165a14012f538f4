# backend/stockroom/routes/stock_requests.py
"""
Stock request routes.

POST /api/stock-requests is an action dispatcher:

    {"action": "create", "request": {"storeLocation", "items", "comments"}}
    {"action": "update", "requestId", "updates": {"items"?, "comments"?, "storeLocation"?}}
    {"action": "updateStatus", "requestId", "status",
     "options": {"rejectionReason"?, "warehouseNotes"?, "items"?}}
    {"action": "delete", "requestId"}

The fulfillment endpoints drive the in-memory pick/pack tracker for an
accepted request and ship it once every line is confirmed.

SECURITY:
- Store managers only see and act on their own store's requests
- create/update need CREATE_REQUESTS/EDIT_REQUESTS, cancel needs EDIT_REQUESTS
- accept/reject/ship and fulfillment need PROCESS_REQUESTS
- delete needs DELETE_REQUESTS
"""
from flask import Blueprint, current_app, g, jsonify, request

from ..decorators import require_auth, require_permission
from ..models import StockRequest
from ..permissions import request_scope, require_user_permission
from ..services import fulfillment_service, request_service
from ..validation import NotFoundError, ValidationError, coerce_int
from .responses import error, error_response, json_payload, success


stock_requests_bp = Blueprint("stock_requests", __name__, url_prefix="/api/stock-requests")

STATUS_PERMISSIONS = {
    request_service.STATUS_ACCEPTED: "PROCESS_REQUESTS",
    request_service.STATUS_REJECTED: "PROCESS_REQUESTS",
    request_service.STATUS_SHIPPED: "PROCESS_REQUESTS",
    request_service.STATUS_CANCELLED: "EDIT_REQUESTS",
    request_service.STATUS_PENDING: "EDIT_REQUESTS",
}


def _visible_request(request_id: int) -> StockRequest:
    """Load a request, hiding other stores' requests from store managers."""
    stock_request = request_service.get_request(request_id)
    scope = request_scope(g.current_user)
    if scope is not None and stock_request.store_location != scope:
        raise NotFoundError(f"Stock request {request_id} not found")
    return stock_request


def _request_id(data: dict) -> int:
    return coerce_int(data["requestId"], "requestId")


@stock_requests_bp.get("")
@require_auth
@require_permission("VIEW_REQUESTS")
def list_stock_requests():
    """
    List requests, newest first.

    Query params:
    - status: pending | accepted | shipped | rejected | cancelled
    - storeLocation: exact store match (ignored for store managers)
    - search: substring of request number, store or comments
    """
    try:
        scope = request_scope(g.current_user)
        requests_ = request_service.list_requests(
            store_location=scope if scope is not None else request.args.get("storeLocation"),
            status=request.args.get("status") or None,
            search=request.args.get("search"),
        )
        return jsonify([r.to_dict() for r in requests_])
    except Exception as e:
        return error_response(e, "fetch stock requests")


@stock_requests_bp.get("/<int:request_id>")
@require_auth
@require_permission("VIEW_REQUESTS")
def get_stock_request(request_id: int):
    try:
        return jsonify(_visible_request(request_id).to_dict())
    except Exception as e:
        return error_response(e, "fetch stock request")


@stock_requests_bp.post("")
@require_auth
def stock_request_action():
    user = g.current_user

    try:
        data = json_payload()
        action = data.get("action")

        if action == "create":
            require_user_permission(user, "CREATE_REQUESTS")
            body = data.get("request")
            if not isinstance(body, dict):
                raise ValidationError("request is required")
            store_location = body.get("storeLocation") or request_scope(user)
            created = request_service.create_request(
                store_location=store_location,
                items=body.get("items"),
                comments=body.get("comments", ""),
                actor=user,
            )
            return success(201, request=created.to_dict())

        if action == "update":
            require_user_permission(user, "EDIT_REQUESTS")
            request_id = _request_id(data)
            _visible_request(request_id)
            updates = data.get("updates") or {}
            if not isinstance(updates, dict):
                raise ValidationError("updates must be an object")
            updated = request_service.update_request(
                request_id,
                items=updates.get("items"),
                comments=updates.get("comments"),
                store_location=updates.get("storeLocation"),
                actor=user,
            )
            return success(request=updated.to_dict())

        if action == "updateStatus":
            request_id = _request_id(data)
            status = data["status"]
            if status not in STATUS_PERMISSIONS:
                raise ValidationError(f"Unknown status {status!r}")
            require_user_permission(user, STATUS_PERMISSIONS[status])
            _visible_request(request_id)

            options = data.get("options") or {}
            if not isinstance(options, dict):
                raise ValidationError("options must be an object")
            updated = request_service.transition_status(
                request_id,
                status,
                actor=user,
                rejection_reason=options.get("rejectionReason"),
                warehouse_notes=options.get("warehouseNotes"),
                items=options.get("items"),
            )
            if updated.status in request_service.TERMINAL_STATUSES:
                fulfillment_service.discard_tracker(request_id)
            return success(request=updated.to_dict())

        if action == "delete":
            require_user_permission(user, "DELETE_REQUESTS")
            request_service.delete_request(_request_id(data), actor=user)
            return success()

        return error("Invalid action", 400)

    except Exception as e:
        return error_response(e, "process stock request action")


# =============================================================================
# FULFILLMENT
# =============================================================================

@stock_requests_bp.get("/<int:request_id>/fulfillment")
@require_auth
@require_permission("PROCESS_REQUESTS")
def get_fulfillment(request_id: int):
    try:
        return jsonify(fulfillment_service.get_tracker(request_id).to_dict())
    except Exception as e:
        return error_response(e, "load fulfillment progress")


@stock_requests_bp.post("/<int:request_id>/fulfillment/scan")
@require_auth
@require_permission("PROCESS_REQUESTS")
def scan_fulfillment_item(request_id: int):
    """
    Resolve a scanned barcode against the request.

    Returns the line's progress and the suggested quantity to confirm.
    Unknown barcodes give 404, items not on the request 400; neither
    changes progress.
    """
    try:
        data = json_payload()
        prompt = fulfillment_service.scan(request_id, data.get("barcode"))
        return jsonify(prompt.to_dict())
    except Exception as e:
        return error_response(e, "scan item")


@stock_requests_bp.post("/<int:request_id>/fulfillment/confirm")
@require_auth
@require_permission("PROCESS_REQUESTS")
def confirm_fulfillment_item(request_id: int):
    try:
        data = json_payload()
        tracker = fulfillment_service.confirm(request_id, data.get("itemId"), data["quantity"])
        return jsonify(tracker.to_dict())
    except Exception as e:
        return error_response(e, "confirm quantity")


@stock_requests_bp.post("/<int:request_id>/fulfillment/ship")
@require_auth
@require_permission("PROCESS_REQUESTS")
def ship_fulfilled_request(request_id: int):
    try:
        shipped = fulfillment_service.ship(request_id, actor=g.current_user)
        current_app.logger.info("Request #%s shipped after fulfillment", shipped.request_number)
        return success(request=shipped.to_dict())
    except Exception as e:
        return error_response(e, "mark request shipped")


@stock_requests_bp.delete("/<int:request_id>/fulfillment")
@require_auth
@require_permission("PROCESS_REQUESTS")
def discard_fulfillment(request_id: int):
    try:
        request_service.get_request(request_id)
        discarded = fulfillment_service.discard_tracker(request_id)
        return success(discarded=discarded)
    except Exception as e:
        return error_response(e, "discard fulfillment progress")
