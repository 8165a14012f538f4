"""
Fulfillment tracker tests.

Verifies:
- Trackers only exist for accepted requests
- Scans resolve barcodes without changing progress on errors
- Line status moves pending -> partial -> complete
- Shipping is blocked until every line is complete
- The tracker never touches the inventory ledger
"""

import pytest

from stockroom.services import fulfillment_service, inventory_service, request_service, user_service
from stockroom.services.fulfillment_service import (
    FulfillmentTracker,
    LINE_COMPLETE,
    LINE_PARTIAL,
    LINE_PENDING,
)
from stockroom.services.request_service import IllegalTransitionError, STATUS_SHIPPED
from stockroom.validation import NotFoundError, ValidationError


@pytest.fixture
def accepted_request(widget, gadget, sydney_manager, warehouse_manager):
    req = request_service.create_request(
        store_location="Sydney",
        items=[
            {"itemId": widget.id, "requestedQuantity": 10},
            {"itemId": gadget.id, "requestedQuantity": 4},
        ],
        actor=sydney_manager,
    )
    return request_service.accept_request(req.id, actor=warehouse_manager)


class TestTrackerLifecycle:

    def test_starts_with_every_line_pending(self, accepted_request, widget, gadget):
        tracker = fulfillment_service.get_tracker(accepted_request.id)

        assert set(tracker.lines) == {widget.id, gadget.id}
        assert all(line.status == LINE_PENDING for line in tracker.lines.values())
        assert tracker.total_requested == 14
        assert tracker.total_fulfilled == 0
        assert not tracker.is_complete

    def test_same_tracker_is_returned(self, accepted_request):
        first = fulfillment_service.get_tracker(accepted_request.id)
        second = fulfillment_service.get_tracker(accepted_request.id)
        assert first is second

    def test_pending_request_has_no_tracker(self, widget, sydney_manager):
        req = request_service.create_request(
            store_location="Sydney",
            items=[{"itemId": widget.id, "requestedQuantity": 1}],
            actor=sydney_manager,
        )
        with pytest.raises(IllegalTransitionError):
            fulfillment_service.get_tracker(req.id)

    def test_unknown_request(self):
        with pytest.raises(NotFoundError):
            fulfillment_service.get_tracker(9999)

    def test_stale_tracker_dropped_after_manual_ship(self, accepted_request, warehouse_manager):
        fulfillment_service.get_tracker(accepted_request.id)
        request_service.mark_shipped(accepted_request.id, actor=warehouse_manager)

        with pytest.raises(IllegalTransitionError):
            fulfillment_service.get_tracker(accepted_request.id)
        assert fulfillment_service.get_registry().get(accepted_request.id) is None

    def test_delete_request_discards_tracker(self, accepted_request, admin):
        fulfillment_service.get_tracker(accepted_request.id)

        request_service.delete_request(accepted_request.id, actor=admin)

        assert fulfillment_service.get_registry().get(accepted_request.id) is None

    def test_delete_user_discards_trackers_of_their_requests(self, accepted_request, sydney_manager):
        request_id = accepted_request.id
        fulfillment_service.get_tracker(request_id)

        user_service.delete_user(sydney_manager.id)

        assert fulfillment_service.get_registry().get(request_id) is None
        assert len(fulfillment_service.get_registry()) == 0

    def test_discard(self, accepted_request, widget):
        fulfillment_service.confirm(accepted_request.id, widget.id, 3)

        assert fulfillment_service.discard_tracker(accepted_request.id) is True
        assert fulfillment_service.discard_tracker(accepted_request.id) is False

        fresh = fulfillment_service.get_tracker(accepted_request.id)
        assert fresh.lines[widget.id].fulfilled_qty == 0


class TestScan:

    def test_scan_suggests_remaining(self, accepted_request, widget):
        prompt = fulfillment_service.scan(accepted_request.id, "1111111111111")

        assert prompt.line.item_id == widget.id
        assert prompt.suggested_quantity == 10
        assert prompt.to_dict()["remaining"] == 10

    def test_scan_after_partial_suggests_what_is_left(self, accepted_request, widget):
        fulfillment_service.confirm(accepted_request.id, widget.id, 6)

        prompt = fulfillment_service.scan(accepted_request.id, " 1111111111111 ")

        assert prompt.suggested_quantity == 4

    def test_scan_of_complete_line_suggests_requested(self, accepted_request, gadget):
        fulfillment_service.confirm(accepted_request.id, gadget.id, 4)

        prompt = fulfillment_service.scan(accepted_request.id, "2222222222222")

        assert prompt.suggested_quantity == 4

    def test_unknown_barcode_is_not_found(self, accepted_request):
        with pytest.raises(NotFoundError):
            fulfillment_service.scan(accepted_request.id, "0000000000000")

        tracker = fulfillment_service.get_tracker(accepted_request.id)
        assert tracker.total_fulfilled == 0

    def test_item_not_on_request(self, accepted_request):
        inventory_service.create_product(name="Stray", sku="STR-1", barcode="9999999999999", initial_quantity=1)

        with pytest.raises(ValidationError):
            fulfillment_service.scan(accepted_request.id, "9999999999999")

        assert fulfillment_service.get_tracker(accepted_request.id).total_fulfilled == 0

    @pytest.mark.parametrize("barcode", [None, "", "   "])
    def test_blank_barcode(self, accepted_request, barcode):
        with pytest.raises(ValidationError):
            fulfillment_service.scan(accepted_request.id, barcode)


class TestConfirm:

    def test_status_progression(self, accepted_request, widget):
        tracker = fulfillment_service.confirm(accepted_request.id, widget.id, 4)
        assert tracker.lines[widget.id].status == LINE_PARTIAL

        tracker = fulfillment_service.confirm(accepted_request.id, widget.id, 6)
        assert tracker.lines[widget.id].status == LINE_COMPLETE
        assert tracker.lines[widget.id].remaining == 0

    def test_over_confirm_is_trusted(self, accepted_request, widget):
        tracker = fulfillment_service.confirm(accepted_request.id, widget.id, 15)
        line = tracker.lines[widget.id]
        assert line.fulfilled_qty == 15
        assert line.status == LINE_COMPLETE
        assert line.remaining == 0

    def test_zero_confirm_changes_nothing(self, accepted_request, widget):
        tracker = fulfillment_service.confirm(accepted_request.id, widget.id, 0)
        assert tracker.lines[widget.id].status == LINE_PENDING

    @pytest.mark.parametrize("qty", [-1, 2.5, "x"])
    def test_invalid_quantity(self, accepted_request, widget, qty):
        with pytest.raises(ValidationError):
            fulfillment_service.confirm(accepted_request.id, widget.id, qty)
        assert fulfillment_service.get_tracker(accepted_request.id).total_fulfilled == 0

    def test_item_not_on_request(self, accepted_request):
        with pytest.raises(ValidationError):
            fulfillment_service.confirm(accepted_request.id, 9999, 1)

    def test_item_id_required(self, accepted_request):
        with pytest.raises(ValidationError):
            fulfillment_service.confirm(accepted_request.id, None, 1)

    def test_confirm_does_not_touch_inventory(self, accepted_request, widget):
        fulfillment_service.confirm(accepted_request.id, widget.id, 10)
        assert inventory_service.get_available_quantity(widget.id) == 90


class TestShip:

    def test_blocked_while_any_line_incomplete(self, accepted_request, widget, gadget):
        fulfillment_service.confirm(accepted_request.id, widget.id, 10)
        fulfillment_service.confirm(accepted_request.id, gadget.id, 3)

        with pytest.raises(IllegalTransitionError):
            fulfillment_service.ship(accepted_request.id)

        assert request_service.get_request(accepted_request.id).status == "accepted"

    def test_allowed_once_every_line_complete(self, accepted_request, widget, gadget, warehouse_manager):
        fulfillment_service.confirm(accepted_request.id, widget.id, 10)
        fulfillment_service.confirm(accepted_request.id, gadget.id, 4)

        shipped = fulfillment_service.ship(accepted_request.id, actor=warehouse_manager)

        assert shipped.status == STATUS_SHIPPED
        assert shipped.shipped_at is not None
        assert fulfillment_service.get_registry().get(accepted_request.id) is None
        assert inventory_service.get_available_quantity(widget.id) == 90
        assert inventory_service.get_available_quantity(gadget.id) == 46

    def test_deleted_product_no_longer_blocks_shipment(self, accepted_request, widget, gadget, warehouse_manager):
        widget_id, gadget_id = widget.id, gadget.id
        fulfillment_service.confirm(accepted_request.id, widget_id, 10)

        inventory_service.delete_product(gadget_id)

        tracker = fulfillment_service.get_tracker(accepted_request.id)
        assert set(tracker.lines) == {widget_id}
        assert tracker.lines[widget_id].fulfilled_qty == 10
        assert tracker.is_complete

        shipped = fulfillment_service.ship(accepted_request.id, actor=warehouse_manager)
        assert shipped.status == STATUS_SHIPPED

    def test_deleted_product_keeps_other_lines_outstanding(self, accepted_request, widget, gadget):
        widget_id = widget.id
        fulfillment_service.confirm(accepted_request.id, gadget.id, 4)

        inventory_service.delete_product(gadget.id)

        with pytest.raises(IllegalTransitionError):
            fulfillment_service.ship(accepted_request.id)
        assert set(fulfillment_service.get_tracker(accepted_request.id).lines) == {widget_id}


class TestTrackerUnit:

    def test_empty_tracker_is_complete(self):
        tracker = FulfillmentTracker(request_id=1, request_number=1, store_location="Sydney")
        assert tracker.is_complete
        assert tracker.to_dict()["complete"] is True
