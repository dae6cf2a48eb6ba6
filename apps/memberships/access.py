"""
Tenant access decisions.

Every chapter-scoped request goes through the same three steps: the session
is resolved, the caller's membership in the chapter named by the URL is
looked up, and ``decide`` turns that into an allow/deny with a redirect target
for page routes and a status code for API routes.
"""
import enum
from dataclasses import dataclass
from typing import Optional

from rest_framework import status
from rest_framework.exceptions import PermissionDenied

from apps.chapters.models import Chapter
from .models import Membership, Role


class AccessState(str, enum.Enum):
    UNAUTHENTICATED = 'UNAUTHENTICATED'
    NO_MEMBERSHIP = 'NO_MEMBERSHIP'
    PENDING_MEMBER = 'PENDING_MEMBER'
    MEMBER = 'MEMBER'
    ADMIN = 'ADMIN'
    OWNER = 'OWNER'


@dataclass(frozen=True)
class AccessDecision:
    state: AccessState
    allowed: bool
    redirect_to: Optional[str] = None
    status_code: int = status.HTTP_200_OK
    message: str = ''


@dataclass(frozen=True)
class MembershipLookup:
    chapter: Chapter
    membership: Optional[Membership]


def lookup_membership(user_id, chapter_slug) -> MembershipLookup:
    """
    Find the caller's membership in the chapter with ``chapter_slug``.
    Raises ``Chapter.DoesNotExist`` when the chapter itself is unknown; a
    missing membership is returned as ``None``.
    """
    chapter = Chapter.objects.get(slug=chapter_slug)
    membership = None
    if user_id is not None:
        membership = (
            Membership.objects
            .filter(chapter=chapter, user_id=user_id)
            .select_related('user')
            .first()
        )
    return MembershipLookup(chapter=chapter, membership=membership)


def classify(authenticated: bool, membership: Optional[Membership]) -> AccessState:
    if not authenticated:
        return AccessState.UNAUTHENTICATED
    if membership is None:
        return AccessState.NO_MEMBERSHIP
    return AccessState(membership.role)


def decide(state: AccessState, chapter_slug: str, required=Role.MEMBER,
           allow_pending: bool = False, next_path: str = '') -> AccessDecision:
    if state is AccessState.UNAUTHENTICATED:
        target = f"/login/?next={next_path}" if next_path else '/login/'
        return AccessDecision(state, False, target, status.HTTP_401_UNAUTHORIZED,
                              'Authentication required')

    if state is AccessState.NO_MEMBERSHIP:
        return AccessDecision(state, False, f"/{chapter_slug}/join/", status.HTTP_403_FORBIDDEN,
                              'You are not a member of this chapter')

    if state is AccessState.PENDING_MEMBER:
        if allow_pending:
            return AccessDecision(state, True)
        return AccessDecision(state, False, f"/{chapter_slug}/pending/", status.HTTP_403_FORBIDDEN,
                              'Your membership is pending approval')

    if Role.at_least(state.value, required):
        return AccessDecision(state, True)

    # Authenticated member without enough privilege: send them one level down
    if Role.at_least(state.value, Role.ADMIN):
        target = f"/{chapter_slug}/admin/"
        message = 'Only the chapter owner can do this'
    else:
        target = f"/{chapter_slug}/portal/"
        message = 'Admin access required'
    return AccessDecision(state, False, target, status.HTTP_403_FORBIDDEN, message)


def check_access(user, chapter_slug, required=Role.MEMBER, allow_pending=False, next_path=''):
    """Lookup plus decision in one call. Returns ``(lookup, decision)``."""
    authenticated = user is not None and getattr(user, 'is_authenticated', True)
    user_id = getattr(user, 'id', None) if authenticated else None
    lookup = lookup_membership(user_id, chapter_slug)
    state = classify(authenticated, lookup.membership)
    return lookup, decide(state, chapter_slug, required, allow_pending, next_path)


def select_default_chapter(memberships) -> str:
    """
    Landing path for a signed-in user when no chapter was requested.
    ``memberships`` are oldest first; each item needs ``role`` and
    ``chapter_slug`` (claims) or ``chapter.slug`` (model rows).
    """
    def slug_of(m):
        return getattr(m, 'chapter_slug', None) or m.chapter.slug

    memberships = list(memberships)
    for m in memberships:
        if m.role != Role.PENDING_MEMBER:
            return f"/{slug_of(m)}/portal/"
    for m in memberships:
        return f"/{slug_of(m)}/pending/"
    return '/signup/'


def ensure_can_remove(actor: Membership, target: Membership):
    if target.role == Role.OWNER:
        raise PermissionDenied('Cannot remove the chapter owner')
    if target.user_id == actor.user_id:
        raise PermissionDenied('You cannot remove yourself from the chapter')


def ensure_can_change_role(actor: Membership, target: Membership):
    if target.role == Role.OWNER:
        raise PermissionDenied("Cannot modify the owner's role")
    if target.user_id == actor.user_id:
        raise PermissionDenied('You cannot change your own role')
