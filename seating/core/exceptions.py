"""
Error taxonomy for the reservation engine.

Validation and conflict errors are terminal for the current attempt.
Transient storage errors may be retried by the caller with a fresh
idempotency key. Integrity warnings never propagate past the ledger reader.
"""
from typing import Iterable, List


class ReservationError(Exception):
    """Base class for all engine errors."""


class SeatValidationError(ReservationError):
    """Malformed request: empty seat set, duplicates, count out of bounds."""


class SeatConflictError(ReservationError):
    """One or more requested seats are already claimed by a live booking."""

    def __init__(self, seats: Iterable, message: str = "Seats are no longer available"):
        self.seats: List = sorted(seats, key=lambda s: (s.row, s.number))
        super().__init__(f"{message}: {', '.join(s.label for s in self.seats)}")


class TransientStorageError(ReservationError):
    """The underlying read/write failed for infrastructural reasons."""


class ShowtimeNotFoundError(ReservationError):
    pass


class BookingNotFoundError(ReservationError):
    pass


class DataIntegrityWarning(UserWarning):
    """A stored booking record could not be parsed."""
