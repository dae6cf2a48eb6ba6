from rest_framework import permissions
from rest_framework.exceptions import NotFound

from apps.chapters.models import Chapter
from .access import check_access
from .models import Role


class ChapterAccess(permissions.BasePermission):
    """
    Grants access when the caller's membership in the chapter named by the
    ``slug`` URL kwarg reaches ``required_role``.

    The resolved chapter and membership are attached to the request as
    ``request.chapter`` and ``request.membership`` for the view to use.
    """
    required_role = Role.MEMBER
    allow_pending = False

    def has_permission(self, request, view):
        if not request.user or not request.user.is_authenticated:
            return False

        try:
            lookup, decision = check_access(
                request.user,
                view.kwargs.get('slug'),
                required=self.required_role,
                allow_pending=self.allow_pending,
            )
        except Chapter.DoesNotExist:
            raise NotFound('Chapter not found')

        request.chapter = lookup.chapter
        request.membership = lookup.membership
        if not decision.allowed:
            self.message = decision.message
            return False
        return True


class HasChapterMembership(ChapterAccess):
    """Any membership, including one still pending approval."""
    allow_pending = True


class IsChapterMember(ChapterAccess):
    required_role = Role.MEMBER


class IsChapterAdmin(ChapterAccess):
    required_role = Role.ADMIN


class IsChapterOwner(ChapterAccess):
    required_role = Role.OWNER
