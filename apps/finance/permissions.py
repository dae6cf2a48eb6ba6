from apps.memberships.models import Role
from apps.memberships.permissions import ChapterAccess
from apps.payments.plans import finance_access_allowed, finance_features


class FinanceAccess(ChapterAccess):
    """Chapter role check followed by the subscription plan check."""

    def has_permission(self, request, view):
        if not super().has_permission(request, view):
            return False

        if not finance_access_allowed(self.required_role, finance_features(request.chapter)):
            self.message = "Your chapter's plan does not include this finance feature. Upgrade to unlock it."
            return False
        return True


class FinanceMemberAccess(FinanceAccess):
    required_role = Role.MEMBER


class FinanceAdminAccess(FinanceAccess):
    required_role = Role.ADMIN


class FinanceOwnerAccess(FinanceAccess):
    required_role = Role.OWNER
