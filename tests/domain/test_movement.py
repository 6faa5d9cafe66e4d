"""Unit tests for movement drafts and history queries."""

from datetime import datetime, timedelta, timezone

import pytest

from stockledger.domain.exceptions import InvalidMovement, InvalidQuantity, InvalidTransfer
from stockledger.domain.model.movement import (
    Adjustment,
    Movement,
    MovementDraft,
    MovementQuery,
    MovementType,
)
from stockledger.domain.model.stock import StockKey

T0 = datetime(2025, 7, 1, 12, 0, tzinfo=timezone.utc)


class TestMovementDraftShape:

    def test_receipt_needs_destination_only(self):
        draft = MovementDraft.create(MovementType.RECEIPT, "P", 5, to_location_id="WH")
        assert draft.effects() == [(StockKey("P", "WH"), 5)]

    def test_receipt_without_destination_rejected(self):
        with pytest.raises(InvalidMovement, match="requires a destination"):
            MovementDraft.create(MovementType.RECEIPT, "P", 5)

    def test_receipt_with_source_rejected(self):
        with pytest.raises(InvalidMovement, match="must not name a source"):
            MovementDraft.create(
                MovementType.RECEIPT, "P", 5, from_location_id="A", to_location_id="B"
            )

    def test_shipment_needs_source_only(self):
        draft = MovementDraft.create(MovementType.SHIPMENT, "P", 5, from_location_id="WH")
        assert draft.effects() == [(StockKey("P", "WH"), -5)]

    def test_shipment_with_destination_rejected(self):
        with pytest.raises(InvalidMovement, match="must not name a destination"):
            MovementDraft.create(
                MovementType.SHIPMENT, "P", 5, from_location_id="A", to_location_id="B"
            )

    def test_adjustment_requires_direction(self):
        with pytest.raises(InvalidMovement, match="INCREASE or DECREASE"):
            MovementDraft.create(MovementType.ADJUSTMENT, "P", 5, to_location_id="WH")

    def test_adjustment_increase_behaves_like_receipt(self):
        draft = MovementDraft.create(
            MovementType.ADJUSTMENT, "P", 5,
            to_location_id="WH", adjustment=Adjustment.INCREASE,
        )
        assert draft.effects() == [(StockKey("P", "WH"), 5)]

    def test_adjustment_decrease_behaves_like_shipment(self):
        draft = MovementDraft.create(
            MovementType.ADJUSTMENT, "P", 5,
            from_location_id="WH", adjustment=Adjustment.DECREASE,
        )
        assert draft.effects() == [(StockKey("P", "WH"), -5)]

    def test_adjustment_decrease_with_destination_rejected(self):
        with pytest.raises(InvalidMovement):
            MovementDraft.create(
                MovementType.ADJUSTMENT, "P", 5,
                to_location_id="WH", adjustment=Adjustment.DECREASE,
            )

    def test_direction_on_non_adjustment_rejected(self):
        with pytest.raises(InvalidMovement, match="Adjustment direction"):
            MovementDraft.create(
                MovementType.RECEIPT, "P", 5,
                to_location_id="WH", adjustment=Adjustment.INCREASE,
            )

    def test_transfer_effects_source_first(self):
        draft = MovementDraft.create(
            MovementType.TRANSFER, "P", 30, from_location_id="WH", to_location_id="STORE"
        )
        assert draft.effects() == [(StockKey("P", "WH"), -30), (StockKey("P", "STORE"), 30)]

    def test_transfer_needs_both_locations(self):
        with pytest.raises(InvalidMovement, match="both a source and a destination"):
            MovementDraft.create(MovementType.TRANSFER, "P", 5, from_location_id="WH")

    def test_self_transfer_rejected(self):
        with pytest.raises(InvalidTransfer, match="same location"):
            MovementDraft.create(
                MovementType.TRANSFER, "P", 5, from_location_id="WH", to_location_id="WH"
            )

    @pytest.mark.parametrize("bad", [0, -1, 1.5])
    def test_bad_quantity_rejected(self, bad):
        with pytest.raises(InvalidQuantity):
            MovementDraft.create(MovementType.RECEIPT, "P", bad, to_location_id="WH")


def _movement(type=MovementType.TRANSFER, product_id="P", src="A", dst="B", at=T0):
    return Movement(
        id="m1", type=type, product_id=product_id, quantity=1,
        from_location_id=src, to_location_id=dst,
        reason="", actor_id="u1", created_at=at,
    )


class TestMovementQuery:

    def test_empty_query_matches_everything(self):
        assert MovementQuery().matches(_movement())

    def test_location_matches_either_side(self):
        m = _movement(src="A", dst="B")
        assert MovementQuery(location_id="A").matches(m)
        assert MovementQuery(location_id="B").matches(m)
        assert not MovementQuery(location_id="C").matches(m)

    def test_product_and_type_filters(self):
        m = _movement(product_id="P", type=MovementType.TRANSFER)
        assert not MovementQuery(product_id="Q").matches(m)
        assert not MovementQuery(type=MovementType.RECEIPT).matches(m)

    def test_date_range_is_half_open(self):
        m = _movement(at=T0)
        assert MovementQuery(since=T0).matches(m)
        assert not MovementQuery(until=T0).matches(m)
        assert MovementQuery(until=T0 + timedelta(seconds=1)).matches(m)
