"""
Finance operations that touch more than one row.

Marking dues paid and paying an expense both write a ledger Transaction;
these helpers keep the two writes in one database transaction and make
repeat calls no-ops.
"""
import logging
from datetime import timedelta
from decimal import Decimal

import stripe
from django.conf import settings
from django.db import transaction
from django.db.models import Count, Q, Sum
from django.db.models.functions import TruncMonth
from django.utils import timezone
from rest_framework.exceptions import PermissionDenied, ValidationError

from .metadata import ManualEntryMetadata, registry
from .models import Budget, DuesPayment, Expense, Transaction

logger = logging.getLogger(__name__)
stripe.api_key = settings.STRIPE_SECRET_KEY

TIMEFRAMES = {
    'month': timedelta(days=30),
    'quarter': timedelta(days=91),
    'year': timedelta(days=365),
}


def record_transaction(chapter, amount, type, description, metadata=None, **links):
    return Transaction.objects.create(
        chapter=chapter,
        amount=amount,
        type=type,
        description=description,
        metadata=registry.dump(metadata) if metadata is not None else {},
        processed_at=timezone.now(),
        **links,
    )


def mark_dues_paid(dues_id, paid_at=None, stripe_payment_id='', metadata=None):
    """
    Mark a dues payment as paid and add the matching ledger entry.
    Returns ``(dues, created)``; ``created`` is False when it was already paid.
    """
    with transaction.atomic():
        dues = (
            DuesPayment.objects
            .select_for_update()
            .select_related('user', 'chapter')
            .get(pk=dues_id)
        )
        if dues.is_paid:
            return dues, False

        dues.paid_at = paid_at or timezone.now()
        if stripe_payment_id:
            dues.stripe_payment_id = stripe_payment_id
        dues.save(update_fields=['paid_at', 'stripe_payment_id', 'updated_at'])

        payer = dues.user.name or dues.user.email
        record_transaction(
            dues.chapter,
            dues.amount,
            Transaction.Type.DUES_PAYMENT,
            f"Dues payment from {payer}",
            metadata=metadata,
            dues_payment=dues,
        )

    logger.info(f"Dues {dues.pk} paid ({dues.amount}) in chapter {dues.chapter.slug}")
    return dues, True


def create_dues(chapter, users, amount, due_date):
    with transaction.atomic():
        return [
            DuesPayment.objects.create(chapter=chapter, user=user, amount=amount, due_date=due_date)
            for user in users
        ]


def update_expense(expense, actor, is_admin, changes, approve=False):
    """
    Apply ``changes`` to an expense.

    With ``approve`` only the status moves (admin only). Otherwise the
    submitter or an admin may edit fields and only an admin may change the
    status. Reaching PAID records the payment in the ledger exactly once.
    """
    new_status = changes.get('status')

    if approve:
        if not is_admin:
            raise PermissionDenied('Only admins can approve expenses')
        if new_status not in (Expense.Status.APPROVED, Expense.Status.DENIED, Expense.Status.PAID):
            raise ValidationError({'status': ['Status must be APPROVED, DENIED or PAID']})
        changes = {'status': new_status}
    else:
        if not is_admin and expense.submitted_by_id != actor.id:
            raise PermissionDenied('You can only edit your own expenses')
        if new_status is not None and new_status != expense.status and not is_admin:
            raise PermissionDenied('Only admins can change expense status')

    if expense.status == Expense.Status.PAID and changes:
        raise ValidationError('Paid expenses cannot be changed')

    with transaction.atomic():
        for field, value in changes.items():
            setattr(expense, field, value)

        if new_status and new_status != Expense.Status.PENDING and expense.approved_by_id is None:
            expense.approved_by = actor
            expense.approved_at = timezone.now()

        paying = new_status == Expense.Status.PAID
        if paying:
            expense.paid_at = timezone.now()
        expense.save()

        if paying:
            record_transaction(
                expense.chapter,
                -expense.amount,
                Transaction.Type.EXPENSE,
                f"Expense payment: {expense.title}",
                expense=expense,
            )
            logger.info(f"Expense {expense.pk} paid ({expense.amount}) in chapter {expense.chapter.slug}")

    return expense


def record_manual_transaction(chapter, amount, type, description, note=''):
    return record_transaction(chapter, amount, type, description, ManualEntryMetadata(note=note))


def _total(queryset, field='amount'):
    return queryset.aggregate(total=Sum(field))['total'] or Decimal('0.00')


def finance_summary(chapter, timeframe='month'):
    if timeframe not in TIMEFRAMES:
        timeframe = 'month'

    dues = DuesPayment.objects.filter(chapter=chapter)
    expenses = Expense.objects.filter(chapter=chapter)

    paid_dues = dues.filter(paid_at__isnull=False)
    paid_expenses = expenses.filter(status=Expense.Status.PAID)
    unpaid_dues = dues.filter(paid_at__isnull=True)
    pending_expenses = expenses.filter(status=Expense.Status.PENDING)

    total_income = _total(paid_dues)
    total_expenses = _total(paid_expenses)

    now = timezone.now()
    start = now - TIMEFRAMES[timeframe]
    period_dues = paid_dues.filter(paid_at__gte=start, paid_at__lte=now)
    period_expenses = paid_expenses.filter(paid_at__gte=start, paid_at__lte=now)
    period_income = _total(period_dues)
    period_spent = _total(period_expenses)

    return {
        'total_income': total_income,
        'total_expenses': total_expenses,
        'balance': total_income - total_expenses,
        'unpaid_dues': {'amount': _total(unpaid_dues), 'count': unpaid_dues.count()},
        'pending_expenses': {'amount': _total(pending_expenses), 'count': pending_expenses.count()},
        'active_budgets_count': Budget.objects.filter(chapter=chapter, status=Budget.Status.ACTIVE).count(),
        'timeframe': {
            'period': timeframe,
            'start_date': start,
            'end_date': now,
            'income': period_income,
            'income_count': period_dues.count(),
            'expenses': period_spent,
            'expenses_count': period_expenses.count(),
            'balance': period_income - period_spent,
        },
    }


def dues_stats(queryset):
    stats = queryset.aggregate(
        total=Sum('amount'),
        paid=Sum('amount', filter=Q(paid_at__isnull=False)),
        count=Count('id'),
        paid_count=Count('id', filter=Q(paid_at__isnull=False)),
    )
    return {
        'total_amount': stats['total'] or Decimal('0.00'),
        'paid_amount': stats['paid'] or Decimal('0.00'),
        'unpaid_amount': (stats['total'] or Decimal('0.00')) - (stats['paid'] or Decimal('0.00')),
        'total_count': stats['count'],
        'paid_count': stats['paid_count'],
        'unpaid_count': stats['count'] - stats['paid_count'],
    }


def monthly_report(chapter, months=12):
    """Per-month ledger totals by transaction type."""
    since = timezone.now() - timedelta(days=31 * months)
    rows = (
        Transaction.objects
        .filter(chapter=chapter, created_at__gte=since)
        .annotate(month=TruncMonth('created_at'))
        .values('month', 'type')
        .annotate(total=Sum('amount'), count=Count('id'))
        .order_by('month', 'type')
    )
    report = {}
    for row in rows:
        key = row['month'].strftime('%Y-%m')
        bucket = report.setdefault(key, {'month': key, 'net': Decimal('0.00'), 'by_type': {}})
        bucket['by_type'][row['type']] = {'total': row['total'], 'count': row['count']}
        bucket['net'] += row['total']
    return list(report.values())


def create_dues_checkout_session(dues, base_url):
    """Stripe Checkout for a single dues payment."""
    chapter = dues.chapter
    if dues.is_paid:
        raise ValidationError('These dues have already been paid')
    if not chapter.stripe_customer_id:
        raise ValidationError('This chapter is not set up to accept online payments')

    session = stripe.checkout.Session.create(
        payment_method_types=['card'],
        customer_email=dues.user.email,
        line_items=[
            {
                'price_data': {
                    'currency': 'usd',
                    'product_data': {
                        'name': f"{chapter.name} dues",
                        'description': f"Due {dues.due_date:%Y-%m-%d}",
                    },
                    'unit_amount': int(dues.amount * 100),
                },
                'quantity': 1,
            },
        ],
        mode='payment',
        success_url=f"{base_url}/{chapter.slug}/portal/?dues=paid",
        cancel_url=f"{base_url}/{chapter.slug}/portal/?dues=canceled",
        metadata={
            'duesPaymentId': str(dues.id),
            'chapterId': str(chapter.id),
            'userId': str(dues.user_id),
        },
        payment_intent_data={
            'metadata': {
                'duesPaymentId': str(dues.id),
                'chapterId': str(chapter.id),
                'userId': str(dues.user_id),
            },
        },
    )
    logger.info(f"Created dues checkout session {session.id} for dues {dues.id}")
    return session
