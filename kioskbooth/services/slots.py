"""How many photos a template needs, and how a selection fills its slots."""

from typing import List, Optional, Sequence, TypeVar

from kioskbooth.errors import SelectionError, UnsupportedSlotConfiguration

T = TypeVar("T")

# declared slot count -> photos the user picks
SELECTION_RULES = {
    6: 3,
    2: 2,
    4: 4,
    3: 3,
}
DEFAULT_SELECTION = 3
INTERLEAVED_SLOTS = 6


def required_selection_count(slot_count: Optional[int]) -> int:
    if slot_count is None:
        return DEFAULT_SELECTION
    try:
        return SELECTION_RULES[slot_count]
    except KeyError:
        raise UnsupportedSlotConfiguration(
            f"Templates with {slot_count} slots are not supported"
        ) from None


def expand_selection(selection: Sequence[T], slot_count: Optional[int]) -> List[T]:
    """Expand the chosen photos into the placement order of the template's slots.

    Six-slot strips print every photo twice side by side, so ``[A, B, C]``
    becomes ``[A, A, B, B, C, C]``. Every other supported template takes the
    selection as is.
    """
    required = required_selection_count(slot_count)
    if len(selection) != required:
        raise UnsupportedSlotConfiguration(
            f"A template with {slot_count} slots takes {required} photos, got {len(selection)}"
        )
    if slot_count == INTERLEAVED_SLOTS:
        return [photo for photo in selection for _ in range(2)]
    return list(selection)


def validate_selection(indices: Sequence[int], photo_count: int, required: int) -> List[int]:
    if len(indices) != required:
        raise SelectionError(f"Must select exactly {required} photos")
    if len(set(indices)) != len(indices):
        raise SelectionError("A photo can only be selected once")
    for idx in indices:
        if idx < 0 or idx >= photo_count:
            raise SelectionError("Invalid photo index")
    return list(indices)
