"""
Shared in-process state for the API routers.

Outreach status changes live in memory for the lifetime of the process.
"""
from typing import Optional

from ..config.settings import get_settings
from ..data.reference_data import ReferenceData, get_reference_data
from ..outreach.board import OutreachBoard

_board: Optional[OutreachBoard] = None


def get_reference() -> ReferenceData:
    return get_reference_data()


def get_outreach_board() -> OutreachBoard:
    global _board
    if _board is None:
        _board = OutreachBoard.from_file(get_settings().outreach_file)
    return _board


def reset_state() -> None:
    """Forget the in-memory outreach board."""
    global _board
    _board = None
