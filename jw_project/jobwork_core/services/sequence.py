"""
Sequential document numbers.

A numbering state is an explicit value: it is read from the store, passed
in, and a new state comes back out. Nothing here keeps a counter of its own.
"""
from dataclasses import dataclass, replace
from typing import Optional, Tuple

from ..exceptions import NumberingPreconditionError

AUTO = "auto"
MANUAL = "manual"
NUMBERING_MODES = (AUTO, MANUAL)

PAD_WIDTH = 4


@dataclass(frozen=True)
class NumberingState:
    prefix: str
    next_number: int
    mode: str = AUTO

    @property
    def is_manual(self):
        return self.mode == MANUAL


def _check_counter(number):
    # bool is an int subclass, but True is not a document counter
    if isinstance(number, bool) or not isinstance(number, int):
        raise NumberingPreconditionError(
            f"next_number must be an integer, got {number!r}")
    if number < 0:
        raise NumberingPreconditionError(
            f"next_number must be >= 0, got {number}")


def format_document_number(prefix: str, number: int) -> str:
    """ "PO" + 1 -> "PO-0001"; 12345 keeps all five digits. """
    _check_counter(number)
    return f"{prefix or ''}-{number:0{PAD_WIDTH}d}"


def allocate(state: NumberingState) -> Tuple[str, NumberingState]:
    """Mint the next number and return it with the state to persist."""
    number = format_document_number(state.prefix, state.next_number)
    return number, replace(state, next_number=state.next_number + 1)


def preview(state: NumberingState) -> Optional[str]:
    # what the next auto-numbered document would get, without consuming it
    if state.is_manual:
        return None
    return format_document_number(state.prefix, state.next_number)
