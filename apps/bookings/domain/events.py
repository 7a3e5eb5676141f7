"""
Booking Domain Events

Events that represent things that have happened in the booking domain.
These are published after successful transaction commits.
"""

from dataclasses import dataclass
from datetime import date
from uuid import UUID

from shared.domain.base import DomainEvent
from shared.domain.value_objects import Money


@dataclass
class HoldRequested(DomainEvent):
    """
    Event: A date was placed on hold

    Triggers:
    - Log the new hold
    """
    booking_id: UUID
    client_id: int
    event_date: date
    package_type: str


@dataclass
class DepositPaid(DomainEvent):
    """
    Event: Deposit charged and recorded (PENDING_DEPOSIT -> DEPOSIT_PAID)

    Triggers:
    - Send date confirmation email to the client
    """
    booking_id: UUID
    client_id: int
    payment_id: str
    amount: Money


@dataclass
class BalancePaid(DomainEvent):
    """
    Event: Balance charged and recorded (DEPOSIT_PAID -> BALANCE_PAID)

    Triggers:
    - Send receipt email to the client
    """
    booking_id: UUID
    client_id: int
    payment_id: str
    amount: Money


@dataclass
class HoldReleased(DomainEvent):
    """Event: A client gave up an unpaid hold"""
    booking_id: UUID
    client_id: int
    event_date: date
