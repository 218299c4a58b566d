from .generated import Base, Bookings, SlotLedger, Waitlist

__all__ = ["Base", "Bookings", "SlotLedger", "Waitlist"]
