import logging
import stripe
from django.conf import settings
from django.http import HttpResponse
from django.views.decorators.csrf import csrf_exempt

from apps.chapters.models import Chapter
from apps.finance.metadata import StripePaymentMetadata
from apps.finance.models import DuesPayment
from apps.finance.services import mark_dues_paid
from .services import cancel_subscription, sync_subscription

logger = logging.getLogger(__name__)

@csrf_exempt
def stripe_webhook(request):
    payload = request.body
    sig_header = request.headers.get('Stripe-Signature')
    endpoint_secret = settings.STRIPE_WEBHOOK_SECRET

    try:
        event = stripe.Webhook.construct_event(
            payload, sig_header, endpoint_secret
        )
    except ValueError:
        logger.warning("Rejected Stripe webhook: invalid payload")
        return HttpResponse(status=400)
    except stripe.error.SignatureVerificationError:
        logger.warning("Rejected Stripe webhook: invalid signature")
        return HttpResponse(status=400)

    event_type = event['type']
    obj = event['data']['object']
    logger.info(f"Stripe webhook {event_type} ({event.get('id')})")

    # Handle the event
    if event_type in ('customer.subscription.created', 'customer.subscription.updated'):
        sync_subscription(obj)
    elif event_type == 'customer.subscription.deleted':
        cancel_subscription(obj)
    elif event_type == 'checkout.session.completed':
        handle_checkout_session(obj)
    elif event_type == 'payment_intent.succeeded':
        handle_payment_intent_succeeded(obj)

    return HttpResponse(status=200)

def handle_checkout_session(session):
    metadata = session.get('metadata') or {}

    if session.get('mode') == 'subscription':
        # The plan itself arrives with customer.subscription.* events
        chapter_id = metadata.get('chapterId') or session.get('client_reference_id')
        customer = session.get('customer')
        chapter = Chapter.objects.filter(pk=chapter_id).first() if chapter_id else None
        if chapter and customer and not chapter.stripe_customer_id:
            chapter.stripe_customer_id = customer
            chapter.save(update_fields=['stripe_customer_id', 'updated_at'])
            logger.info(f"Linked Stripe customer {customer} to chapter {chapter.slug}")
        return

    dues_id = metadata.get('duesPaymentId')
    if not dues_id:
        return
    if session.get('payment_status') != 'paid':
        logger.info(f"Checkout {session.get('id')} for dues {dues_id} not paid yet")
        return

    settle_dues(
        dues_id,
        session.get('payment_intent') or session.get('id'),
        StripePaymentMetadata(
            checkout_session_id=session.get('id'),
            payment_intent_id=session.get('payment_intent'),
        ),
    )

def handle_payment_intent_succeeded(payment_intent):
    """Backup for dues whose checkout.session.completed never arrived."""
    dues_id = (payment_intent.get('metadata') or {}).get('duesPaymentId')
    if not dues_id:
        return
    settle_dues(
        dues_id,
        payment_intent.get('id'),
        StripePaymentMetadata(payment_intent_id=payment_intent.get('id')),
    )

def settle_dues(dues_id, stripe_payment_id, metadata):
    try:
        dues, created = mark_dues_paid(
            dues_id, stripe_payment_id=stripe_payment_id or '', metadata=metadata
        )
    except (DuesPayment.DoesNotExist, ValueError):
        logger.warning(f"Stripe payment for unknown dues payment {dues_id}")
        return None

    if not created:
        logger.info(f"Dues {dues_id} already paid, ignoring duplicate Stripe notification")
    return dues
