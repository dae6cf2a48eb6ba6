"""
Stripe-facing subscription operations for chapters.
"""
import logging
from datetime import datetime, timezone as dt_timezone

import stripe
from django.conf import settings
from django.db import transaction

from apps.audit.models import AuditAction
from apps.audit.payloads import PlanChangePayload
from apps.audit.services import log_audit_entry
from apps.chapters.models import Chapter
from apps.finance.metadata import PlanChangeMetadata
from apps.finance.models import Transaction
from apps.finance.services import record_transaction
from .models import Plan, Subscription, SubscriptionPlan

logger = logging.getLogger(__name__)
stripe.api_key = settings.STRIPE_SECRET_KEY

STRIPE_STATUSES = {
    'active': Subscription.Status.ACTIVE,
    'trialing': Subscription.Status.TRIALING,
    'past_due': Subscription.Status.PAST_DUE,
    'unpaid': Subscription.Status.PAST_DUE,
    'canceled': Subscription.Status.CANCELED,
    'incomplete': Subscription.Status.INCOMPLETE,
    'incomplete_expired': Subscription.Status.CANCELED,
}


def get_or_create_subscription(chapter) -> Subscription:
    subscription, _ = Subscription.objects.get_or_create(chapter=chapter)
    return subscription


def price_id_for(plan) -> str:
    """Stripe price for a paid plan, preferring the seeded catalogue row."""
    row = SubscriptionPlan.objects.filter(name=plan, is_active=True).first()
    if row and row.stripe_price_id:
        return row.stripe_price_id
    return settings.SUBSCRIPTION_PLANS.get(plan, {}).get('stripe_price_id', '')


def plan_for_price(price_id) -> str:
    if not price_id:
        return Plan.FREE
    row = SubscriptionPlan.objects.filter(stripe_price_id=price_id).first()
    if row:
        return row.name
    for name, config in settings.SUBSCRIPTION_PLANS.items():
        if config.get('stripe_price_id') == price_id:
            return name
    # Price ids created by hand in the dashboard are named after the plan
    lowered = price_id.lower()
    if 'pro' in lowered:
        return Plan.PRO
    if 'basic' in lowered:
        return Plan.BASIC
    logger.warning(f"Unknown Stripe price {price_id}, treating as FREE")
    return Plan.FREE


def ensure_stripe_customer(chapter, email) -> str:
    if chapter.stripe_customer_id:
        return chapter.stripe_customer_id

    customer = stripe.Customer.create(
        email=email,
        name=chapter.name,
        metadata={
            'chapterId': str(chapter.id),
            'chapterSlug': chapter.slug,
        },
    )
    chapter.stripe_customer_id = customer.id
    chapter.save(update_fields=['stripe_customer_id', 'updated_at'])
    logger.info(f"Created Stripe customer {customer.id} for chapter {chapter.slug}")
    return customer.id


def create_subscription_checkout(chapter, plan, user, base_url):
    price_id = price_id_for(plan)
    if not price_id:
        raise ValueError(f"No Stripe price configured for plan {plan}")

    customer_id = ensure_stripe_customer(chapter, user.email)
    metadata = {
        'chapterId': str(chapter.id),
        'chapterSlug': chapter.slug,
        'plan': str(plan),
    }
    session = stripe.checkout.Session.create(
        customer=customer_id,
        client_reference_id=str(chapter.id),
        payment_method_types=['card'],
        line_items=[
            {
                'price': price_id,
                'quantity': 1,
            },
        ],
        mode='subscription',
        success_url=f"{base_url}/{chapter.slug}/admin/billing/?success=true",
        cancel_url=f"{base_url}/{chapter.slug}/admin/billing/?canceled=true",
        metadata=metadata,
        subscription_data={'metadata': metadata},
    )
    logger.info(f"Created {plan} checkout session {session.id} for chapter {chapter.slug}")
    return session


def create_portal_session(chapter, base_url):
    return stripe.billing_portal.Session.create(
        customer=chapter.stripe_customer_id,
        return_url=f"{base_url}/{chapter.slug}/admin/billing/",
    )


def downgrade_to_free(chapter, user) -> Subscription:
    """
    Move a chapter to the FREE plan immediately, cancelling any Stripe
    subscription, and note the change in the ledger and audit log.
    """
    subscription = get_or_create_subscription(chapter)
    previous = subscription.plan

    if previous == Plan.FREE and not subscription.stripe_subscription_id:
        return subscription

    if subscription.stripe_subscription_id:
        stripe.Subscription.cancel(subscription.stripe_subscription_id)
        logger.info(f"Cancelled Stripe subscription {subscription.stripe_subscription_id} for {chapter.slug}")

    with transaction.atomic():
        subscription.plan = Plan.FREE
        subscription.status = Subscription.Status.ACTIVE
        subscription.stripe_subscription_id = None
        subscription.current_period_end = None
        subscription.save()

        record_transaction(
            chapter,
            0,
            Transaction.Type.OTHER,
            f"Plan changed from {previous} to {Plan.FREE}",
            metadata=PlanChangeMetadata(from_plan=previous, to_plan=Plan.FREE),
        )

    log_audit_entry(
        chapter, user, AuditAction.SUBSCRIPTION_CHANGED, 'SUBSCRIPTION', subscription.pk,
        PlanChangePayload(from_plan=previous, to_plan=Plan.FREE),
    )
    return subscription


def _chapter_for_stripe_object(obj):
    chapter_id = (obj.get('metadata') or {}).get('chapterId')
    if chapter_id:
        chapter = Chapter.objects.filter(pk=chapter_id).first()
        if chapter:
            return chapter
    customer = obj.get('customer')
    if customer:
        return Chapter.objects.filter(stripe_customer_id=customer).first()
    return None


def sync_subscription(stripe_subscription):
    """Apply a Stripe subscription object to the chapter it belongs to."""
    chapter = _chapter_for_stripe_object(stripe_subscription)
    if chapter is None:
        logger.warning(f"No chapter found for Stripe subscription {stripe_subscription.get('id')}")
        return None

    items = (stripe_subscription.get('items') or {}).get('data') or []
    price_id = items[0]['price']['id'] if items else None

    subscription = get_or_create_subscription(chapter)
    previous = subscription.plan
    subscription.plan = plan_for_price(price_id)
    subscription.status = STRIPE_STATUSES.get(stripe_subscription.get('status'), Subscription.Status.INCOMPLETE)
    subscription.stripe_subscription_id = stripe_subscription.get('id')
    period_end = stripe_subscription.get('current_period_end')
    if period_end:
        subscription.current_period_end = datetime.fromtimestamp(period_end, tz=dt_timezone.utc)
    subscription.save()

    customer = stripe_subscription.get('customer')
    if customer and not chapter.stripe_customer_id:
        chapter.stripe_customer_id = customer
        chapter.save(update_fields=['stripe_customer_id', 'updated_at'])

    if previous != subscription.plan:
        log_audit_entry(
            chapter, None, AuditAction.SUBSCRIPTION_CHANGED, 'SUBSCRIPTION', subscription.pk,
            PlanChangePayload(from_plan=previous, to_plan=subscription.plan),
        )
    logger.info(f"Chapter {chapter.slug} subscription now {subscription.plan} ({subscription.status})")
    return subscription


def cancel_subscription(stripe_subscription):
    chapter = _chapter_for_stripe_object(stripe_subscription)
    if chapter is None:
        logger.warning(f"No chapter found for deleted subscription {stripe_subscription.get('id')}")
        return None

    subscription = get_or_create_subscription(chapter)
    previous = subscription.plan
    subscription.plan = Plan.FREE
    subscription.status = Subscription.Status.CANCELED
    subscription.stripe_subscription_id = None
    subscription.save()

    log_audit_entry(
        chapter, None, AuditAction.SUBSCRIPTION_CHANGED, 'SUBSCRIPTION', subscription.pk,
        PlanChangePayload(from_plan=previous, to_plan=Plan.FREE),
    )
    logger.info(f"Subscription cancelled for chapter {chapter.slug}")
    return subscription
