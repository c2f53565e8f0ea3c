from travelbook.core.errors import InvalidTransition
from travelbook.models.booking import BookingStatus

S = BookingStatus

_ALLOWED_TRANSITIONS: dict[BookingStatus, set[BookingStatus]] = {
    S.MENUNGGU_PEMBAYARAN: {S.MENUNGGU_VALIDASI, S.EXPIRED},
    S.MENUNGGU_VALIDASI: {S.LUNAS, S.DITOLAK, S.EXPIRED},
    S.LUNAS: set(),
    S.DITOLAK: set(),
    S.EXPIRED: set(),
}

TERMINAL_STATUSES = frozenset(s for s, targets in _ALLOWED_TRANSITIONS.items() if not targets)
EXPIRABLE_STATUSES = frozenset(s for s, targets in _ALLOWED_TRANSITIONS.items() if S.EXPIRED in targets)


def is_terminal(status: BookingStatus | str) -> bool:
    return BookingStatus(status) in TERMINAL_STATUSES


def can_transition(current: BookingStatus | str, target: BookingStatus | str) -> bool:
    return BookingStatus(target) in _ALLOWED_TRANSITIONS[BookingStatus(current)]


def ensure_transition(current: BookingStatus | str, target: BookingStatus | str, message: str | None = None) -> None:
    """Raise InvalidTransition unless current -> target is in the transition table."""
    if not can_transition(current, target):
        raise InvalidTransition(BookingStatus(current).value, BookingStatus(target).value, message)


def sources_of(target: BookingStatus) -> set[BookingStatus]:
    return {s for s, targets in _ALLOWED_TRANSITIONS.items() if target in targets}
