"""Read-only catalog of venue timeslots, ordered by priority."""

from matchplan.errors import InvalidInputError
from matchplan.models import Slot


def _priority_key(slot: Slot):
    return (slot.priority, slot.weekday, slot.start_time, slot.venue)


class SlotCatalog:
    """Venue/timeslot definitions keyed by weekday.

    Lower priority numbers are preferred. Callers that need more matches on a
    day than there are slots cycle through them by index.
    """

    def __init__(self, slots: list[Slot]):
        for s in slots:
            if not 1 <= s.weekday <= 7:
                raise InvalidInputError(
                    f"Slot weekday must be 1-7, got {s.weekday} ({s.venue})"
                )
        self._slots = tuple(sorted(slots, key=_priority_key))

    def __len__(self) -> int:
        return len(self._slots)

    def __bool__(self) -> bool:
        return bool(self._slots)

    def prioritized(self) -> list[Slot]:
        return list(self._slots)

    def weekdays(self) -> list[int]:
        return sorted({s.weekday for s in self._slots})

    def slots_for_weekday(self, weekday: int) -> list[Slot]:
        return [s for s in self._slots if s.weekday == weekday]

    def slot_at(self, index: int) -> Slot:
        """The index-th slot in priority order, wrapping around."""
        if not self._slots:
            raise InvalidInputError("No timeslots configured")
        return self._slots[index % len(self._slots)]

    def slot_for_weekday(self, weekday: int, index: int) -> Slot:
        day_slots = self.slots_for_weekday(weekday)
        if not day_slots:
            raise InvalidInputError(f"No timeslots configured on weekday {weekday}")
        return day_slots[index % len(day_slots)]
