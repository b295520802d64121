"""Tests for slots.py - the prioritized timeslot catalog."""

from datetime import time

import pytest

from matchplan.errors import InvalidInputError
from matchplan.models import Slot
from matchplan.slots import SlotCatalog


def _make_slot(weekday, hour, priority, venue="Hal A", minute=0):
    return Slot(weekday=weekday, start_time=time(hour, minute),
                venue=venue, priority=priority)


MON_20 = _make_slot(1, 20, 1)
MON_21 = _make_slot(1, 21, 2)
TUE_20 = _make_slot(2, 20, 3, venue="Hal B")


class TestSlotCatalog:
    def test_sorted_by_priority(self):
        catalog = SlotCatalog([TUE_20, MON_21, MON_20])
        assert catalog.prioritized() == [MON_20, MON_21, TUE_20]
        assert len(catalog) == 3

    def test_weekdays(self):
        catalog = SlotCatalog([TUE_20, MON_20])
        assert catalog.weekdays() == [1, 2]

    def test_slot_at_wraps(self):
        catalog = SlotCatalog([MON_20, MON_21, TUE_20])
        assert catalog.slot_at(0) == MON_20
        assert catalog.slot_at(2) == TUE_20
        assert catalog.slot_at(3) == MON_20
        assert catalog.slot_at(7) == MON_21

    def test_slots_for_weekday(self):
        catalog = SlotCatalog([MON_20, MON_21, TUE_20])
        assert catalog.slots_for_weekday(1) == [MON_20, MON_21]
        assert catalog.slots_for_weekday(5) == []

    def test_slot_for_weekday_cycles(self):
        catalog = SlotCatalog([MON_20, MON_21, TUE_20])
        assert catalog.slot_for_weekday(1, 0) == MON_20
        assert catalog.slot_for_weekday(1, 3) == MON_21
        assert catalog.slot_for_weekday(2, 5) == TUE_20

    def test_slot_for_missing_weekday(self):
        catalog = SlotCatalog([MON_20])
        with pytest.raises(InvalidInputError, match="weekday 3"):
            catalog.slot_for_weekday(3, 0)

    def test_empty_catalog(self):
        catalog = SlotCatalog([])
        assert not catalog
        with pytest.raises(InvalidInputError, match="No timeslots"):
            catalog.slot_at(0)

    def test_invalid_weekday(self):
        with pytest.raises(InvalidInputError):
            SlotCatalog([_make_slot(0, 20, 1)])

    def test_equal_priority_ordered_by_day_then_time(self):
        late = _make_slot(1, 21, 1)
        tuesday = _make_slot(2, 19, 1)
        early = _make_slot(1, 19, 1, minute=30)
        catalog = SlotCatalog([tuesday, late, early])
        assert catalog.prioritized() == [early, late, tuesday]
