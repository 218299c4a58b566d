from sqlalchemy import Column, Index, Integer, Text, UniqueConstraint, func, text

from sqlalchemy.orm import declarative_base

Base = declarative_base()
metadata = Base.metadata


class Bookings(Base):
    __tablename__ = 'bookings'
    __table_args__ = (
        Index('ix_bookings_date_slot', 'booking_date', 'time_slot'),
        Index('ix_bookings_customer_email', 'customer_email'),
    )

    booking_date = Column(Text, nullable=False)  # YYYY-MM-DD
    time_slot = Column(Text, nullable=False)  # HH:MM
    service_id = Column(Text, nullable=False)
    customer_name = Column(Text, nullable=False)
    customer_email = Column(Text, nullable=False)
    status = Column(Text, nullable=False, server_default=text("'confirmed'"))
    created_at = Column(Text, nullable=False, server_default=text('CURRENT_TIMESTAMP'))
    updated_at = Column(Text, nullable=False, server_default=text('CURRENT_TIMESTAMP'))
    id = Column(Integer, primary_key=True)
    customer_phone = Column(Text)
    notes = Column(Text)
    cancelled_at = Column(Text)
    cancel_reason = Column(Text)


class SlotLedger(Base):
    __tablename__ = 'slot_ledger'
    __table_args__ = (
        UniqueConstraint('booking_date', 'time_slot'),
    )

    booking_date = Column(Text, nullable=False)
    time_slot = Column(Text, nullable=False)
    version = Column(Integer, nullable=False, server_default=text('0'))
    id = Column(Integer, primary_key=True)


class Waitlist(Base):
    __tablename__ = 'waitlist'
    __table_args__ = (
        Index('ix_waitlist_lookup', 'preferred_date', 'service_id', 'status'),
    )

    customer_name = Column(Text, nullable=False)
    email = Column(Text, nullable=False)
    preferred_date = Column(Text, nullable=False)
    service_id = Column(Text, nullable=False)
    alternative_times = Column(Text, nullable=False, server_default=text("'[]'"))
    status = Column(Text, nullable=False, server_default=text("'active'"))
    priority = Column(Integer, nullable=False, server_default=text('1'))
    created_at = Column(Text, nullable=False, server_default=text('CURRENT_TIMESTAMP'))
    id = Column(Integer, primary_key=True)
    phone = Column(Text)
    preferred_time = Column(Text)
    membership_tier = Column(Text)
    cancelled_at = Column(Text)


# one active entry per (email, date, time, service); NULL time counts as "any"
Index(
    'uq_waitlist_active_request',
    func.lower(Waitlist.email),
    Waitlist.preferred_date,
    func.coalesce(Waitlist.preferred_time, ''),
    Waitlist.service_id,
    unique=True,
    sqlite_where=Waitlist.status == 'active',
    postgresql_where=Waitlist.status == 'active',
)
