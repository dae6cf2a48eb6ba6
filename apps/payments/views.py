import logging
import stripe
from django.conf import settings
from rest_framework import views, status, permissions
from rest_framework.response import Response

from apps.finance.models import DuesPayment, Expense
from apps.finance.services import dues_stats
from apps.memberships.permissions import IsChapterAdmin, IsChapterOwner
from .models import Plan, SubscriptionPlan
from .plans import PLAN_FEATURES, chapter_plan, finance_features
from .services import (
    create_portal_session,
    create_subscription_checkout,
    downgrade_to_free,
    get_or_create_subscription,
)

logger = logging.getLogger(__name__)
stripe.api_key = settings.STRIPE_SECRET_KEY

PROVIDER_ERROR = 'Payment provider error, please try again later'


class SubscriptionPlansView(views.APIView):
    """List available subscription plans."""
    permission_classes = [permissions.AllowAny]  # Public info
    authentication_classes = []

    def get(self, request):
        plans = SubscriptionPlan.objects.filter(is_active=True)
        data = [{
            'id': p.id,
            'name': p.name,
            'display_name': p.display_name,
            'description': p.description,
            'price_monthly': str(p.price_monthly),
            'features': dict(PLAN_FEATURES[Plan(p.name)]),
        } for p in plans]
        return Response(data)


class BillingView(views.APIView):
    """
    GET: the chapter's subscription with its finance feature map (admins).
    POST: change plan (owner). FREE applies immediately; paid plans return
    a Stripe Checkout URL and take effect when the webhook arrives.
    """

    def get_permissions(self):
        if self.request.method == 'POST':
            return [permissions.IsAuthenticated(), IsChapterOwner()]
        return [permissions.IsAuthenticated(), IsChapterAdmin()]

    def get(self, request, slug):
        chapter = request.chapter
        subscription = get_or_create_subscription(chapter)
        expenses = Expense.objects.filter(chapter=chapter)

        return Response({
            'chapter': {
                'id': chapter.id,
                'slug': chapter.slug,
                'name': chapter.name,
                'has_stripe_customer': bool(chapter.stripe_customer_id),
            },
            'subscription': {
                'plan': subscription.plan,
                'effective_plan': chapter_plan(chapter),
                'status': subscription.status,
                'current_period_end': subscription.current_period_end,
            },
            'features': finance_features(chapter),
            'finance_stats': {
                'dues': dues_stats(DuesPayment.objects.filter(chapter=chapter)),
                'expense_count': expenses.count(),
                'pending_expense_count': expenses.filter(status=Expense.Status.PENDING).count(),
            },
        })

    def post(self, request, slug):
        plan = request.data.get('plan')
        if plan not in Plan.values:
            return Response(
                {'error': f"Plan must be one of {', '.join(Plan.values)}"},
                status=status.HTTP_400_BAD_REQUEST
            )

        chapter = request.chapter
        try:
            if plan == Plan.FREE:
                subscription = downgrade_to_free(chapter, request.user)
                logger.info(f"Chapter {chapter.slug} downgraded to FREE by {request.user.email}")
                return Response({'plan': subscription.plan, 'status': subscription.status})

            session = create_subscription_checkout(chapter, plan, request.user, settings.APP_URL)
        except ValueError as e:
            return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)
        except stripe.error.StripeError as e:
            logger.error(f"Stripe error changing plan for {chapter.slug}: {e}")
            return Response({'error': PROVIDER_ERROR}, status=status.HTTP_500_INTERNAL_SERVER_ERROR)

        return Response({'session_id': session.id, 'url': session.url})


class BillingPortalView(views.APIView):
    permission_classes = [permissions.IsAuthenticated, IsChapterOwner]

    def post(self, request, slug):
        chapter = request.chapter
        if not chapter.stripe_customer_id:
            return Response(
                {'error': 'No billing account exists for this chapter yet'},
                status=status.HTTP_400_BAD_REQUEST
            )

        try:
            session = create_portal_session(chapter, settings.APP_URL)
        except stripe.error.StripeError as e:
            logger.error(f"Stripe error opening billing portal for {chapter.slug}: {e}")
            return Response({'error': PROVIDER_ERROR}, status=status.HTTP_500_INTERNAL_SERVER_ERROR)

        return Response({'url': session.url})
