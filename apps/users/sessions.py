"""
Session resolution for server-rendered pages.

The API authenticates through DRF's JWT cookie authentication; pages use
``resolve_session`` directly so that a missing or broken token becomes a
redirect instead of an error.
"""
import logging
from dataclasses import dataclass, field
from typing import Optional

from django.conf import settings
from rest_framework_simplejwt.exceptions import TokenError
from rest_framework_simplejwt.tokens import AccessToken

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MembershipClaim:
    membership_id: int
    role: str
    chapter_id: int
    chapter_slug: str


@dataclass(frozen=True)
class SessionUser:
    id: int
    name: str
    email: str
    memberships: tuple = field(default_factory=tuple)

    is_authenticated = True


def membership_claims(user) -> list:
    """Membership summary embedded in tokens at login, oldest first."""
    return [
        {
            'membership_id': m.id,
            'role': m.role,
            'chapter_id': m.chapter_id,
            'chapter_slug': m.chapter.slug,
        }
        for m in user.memberships.select_related('chapter').order_by('created_at', 'id')
    ]


def _raw_token(request) -> Optional[str]:
    header = request.META.get('HTTP_AUTHORIZATION', '')
    parts = header.split()
    if len(parts) == 2 and parts[0] in settings.SIMPLE_JWT['AUTH_HEADER_TYPES']:
        return parts[1]
    return request.COOKIES.get(settings.REST_AUTH['JWT_AUTH_COOKIE'])


def resolve_session(request) -> Optional[SessionUser]:
    """Return the signed-in user for ``request`` or ``None``. Never raises."""
    raw = _raw_token(request)
    if not raw:
        return None

    try:
        token = AccessToken(raw)
    except TokenError as e:
        logger.debug(f"Ignoring invalid session token: {e}")
        return None

    user_id = token.get(settings.SIMPLE_JWT['USER_ID_CLAIM'])
    if user_id is None:
        return None

    claims = tuple(
        MembershipClaim(
            membership_id=c.get('membership_id'),
            role=c.get('role'),
            chapter_id=c.get('chapter_id'),
            chapter_slug=c.get('chapter_slug'),
        )
        for c in token.get('memberships', [])
    )
    return SessionUser(
        id=int(user_id),
        name=token.get('name', ''),
        email=token.get('email', ''),
        memberships=claims,
    )
