"""
Typed transaction metadata variants.
"""
from dataclasses import dataclass
from typing import ClassVar, Optional

from apps.core.payloads import PayloadRegistry


@dataclass(frozen=True)
class PlanChangeMetadata:
    kind: ClassVar[str] = 'plan_change'
    from_plan: str
    to_plan: str


@dataclass(frozen=True)
class StripePaymentMetadata:
    kind: ClassVar[str] = 'stripe_payment'
    checkout_session_id: Optional[str] = None
    payment_intent_id: Optional[str] = None


@dataclass(frozen=True)
class ManualEntryMetadata:
    kind: ClassVar[str] = 'manual_entry'
    note: str = ''


registry = PayloadRegistry(PlanChangeMetadata, StripePaymentMetadata, ManualEntryMetadata)
