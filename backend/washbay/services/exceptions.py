"""
Booking engine exceptions.
Raised in the service layer and mapped to HTTP errors in the routers.
"""

from datetime import date


class BookingEngineError(Exception):
    """Base exception for all booking engine errors."""
    pass


class UnknownServiceError(BookingEngineError):
    """Raised when a service id is not in the catalogue."""

    def __init__(self, service_id: str):
        self.service_id = service_id
        super().__init__(f"Unknown service: {service_id!r}")


class CapacityExceededError(BookingEngineError):
    """
    Raised at commit time when the slot has no headroom left.

    Distinct from validation rejections: the request was valid, but the
    slot filled up between the availability check and the write.
    """

    def __init__(self, target_date: date, time_slot: str, service_id: str):
        self.target_date = target_date
        self.time_slot = time_slot
        self.service_id = service_id
        super().__init__(
            f"Slot {target_date.isoformat()} {time_slot} just filled for {service_id}"
        )


class BookingRejectedError(BookingEngineError):
    """Raised by the write path when submission-time validation fails."""

    def __init__(self, rejection):
        self.rejection = rejection
        super().__init__(rejection.reason)


class BookingNotFoundError(BookingEngineError):
    """Raised when a booking id does not exist."""
    pass


class BookingStateError(BookingEngineError):
    """Raised when a booking cannot transition (e.g. cancelling a cancelled booking)."""
    pass


class AlreadyWaitlistedError(BookingEngineError):
    """Raised when the customer already has an active entry for the same request."""
    pass


class WaitlistEntryNotFoundError(BookingEngineError):
    """Raised when a waitlist entry does not exist or belongs to someone else."""
    pass


class SlotContentionError(BookingEngineError):
    """
    Raised when a commit kept losing the slot version check to other writers.

    The slot may still have room; the client should simply retry.
    """

    def __init__(self, target_date: date, time_slot: str, attempts: int):
        self.target_date = target_date
        self.time_slot = time_slot
        self.attempts = attempts
        super().__init__(
            f"Slot {target_date.isoformat()} {time_slot} busy after {attempts} attempts"
        )
