"""
Plan feature maps and finance gating.
"""
from apps.memberships.models import Role

from .models import Plan, Subscription

FEATURES = (
    'basicFinance',
    'budgeting',
    'expenseTracking',
    'duesCollection',
    'advancedReporting',
    'financialForecasting',
    'multipleAccounts',
    'dataExport',
    'auditTrail',
    'donationTracking',
)

_BASIC_FEATURES = {'basicFinance', 'budgeting', 'expenseTracking', 'duesCollection', 'dataExport'}

PLAN_FEATURES = {
    Plan.FREE: {name: name == 'basicFinance' for name in FEATURES},
    Plan.BASIC: {name: name in _BASIC_FEATURES for name in FEATURES},
    Plan.PRO: {name: True for name in FEATURES},
}


def chapter_plan(chapter) -> str:
    try:
        return chapter.subscription.effective_plan
    except Subscription.DoesNotExist:
        return Plan.FREE


def finance_features(chapter) -> dict:
    return dict(PLAN_FEATURES[Plan(chapter_plan(chapter))])


def finance_access_allowed(level, features: dict) -> bool:
    """
    Plan side of the finance check for a caller already at ``level``:
    reads need basic finance, writes need expense tracking or dues
    collection, owner reports need advanced reporting.
    """
    if level == Role.OWNER:
        return features.get('advancedReporting', False)
    if level == Role.ADMIN:
        return features.get('expenseTracking', False) or features.get('duesCollection', False)
    return features.get('basicFinance', False)
