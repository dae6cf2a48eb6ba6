"""
Typed audit payloads.

Each audit action carries one payload variant. Variants are stored as JSON
with a ``kind`` tag through ``registry``.
"""
from dataclasses import dataclass
from typing import ClassVar, Optional

from apps.core.payloads import PayloadRegistry


@dataclass(frozen=True)
class MemberPayload:
    kind: ClassVar[str] = 'member'
    email: str
    name: str = ''


@dataclass(frozen=True)
class RoleChangePayload:
    kind: ClassVar[str] = 'role_change'
    email: str
    from_role: str
    to_role: str


@dataclass(frozen=True)
class InvitePayload:
    kind: ClassVar[str] = 'invite'
    email: str
    role: str


@dataclass(frozen=True)
class SettingsPayload:
    kind: ClassVar[str] = 'settings'
    changed_fields: tuple = ()


@dataclass(frozen=True)
class PlanChangePayload:
    kind: ClassVar[str] = 'plan_change'
    from_plan: str
    to_plan: str


@dataclass(frozen=True)
class EventPayload:
    kind: ClassVar[str] = 'event'
    title: str
    starts_at: Optional[str] = None


@dataclass(frozen=True)
class BroadcastPayload:
    kind: ClassVar[str] = 'broadcast'
    subject: str
    recipient_filter: str
    recipient_count: int
    emails_sent: int = 0
    sms_sent: int = 0


@dataclass(frozen=True)
class PasswordResetPayload:
    kind: ClassVar[str] = 'password_reset'
    email: str


registry = PayloadRegistry(
    MemberPayload,
    RoleChangePayload,
    InvitePayload,
    SettingsPayload,
    PlanChangePayload,
    EventPayload,
    BroadcastPayload,
    PasswordResetPayload,
)
