"""
API Views for chapter finances.

Reads need an active membership and a plan with basic finance; writes need
an admin and a plan with expense tracking or dues collection.
"""
import logging

import stripe
from django.conf import settings
from django.contrib.auth import get_user_model
from django.shortcuts import get_object_or_404
from django.utils.dateparse import parse_date
from rest_framework import generics, permissions, status
from rest_framework.exceptions import PermissionDenied
from rest_framework.response import Response
from rest_framework.views import APIView

from apps.memberships.models import Membership, Role
from .models import Budget, DuesPayment, Expense, Transaction
from .permissions import FinanceAdminAccess, FinanceMemberAccess, FinanceOwnerAccess
from .serializers import (
    BudgetSerializer,
    DuesCreateSerializer,
    DuesPaymentSerializer,
    DuesUpdateSerializer,
    ExpenseApprovalSerializer,
    ExpenseSerializer,
    ManualTransactionSerializer,
    TransactionSerializer,
)
from .services import (
    create_dues,
    create_dues_checkout_session,
    dues_stats,
    finance_summary,
    mark_dues_paid,
    monthly_report,
    record_manual_transaction,
    update_expense,
)

logger = logging.getLogger(__name__)
User = get_user_model()


def is_admin(request):
    return Role.at_least(request.membership.role, Role.ADMIN)


class FinanceReadWriteMixin:
    def get_permissions(self):
        if self.request.method in permissions.SAFE_METHODS:
            return [permissions.IsAuthenticated(), FinanceMemberAccess()]
        return [permissions.IsAuthenticated(), FinanceAdminAccess()]

    def get_serializer_context(self):
        context = super().get_serializer_context()
        context['chapter'] = getattr(self.request, 'chapter', None)
        return context


# =============================================================================
# Budgets
# =============================================================================

class BudgetListCreateView(FinanceReadWriteMixin, generics.ListCreateAPIView):
    serializer_class = BudgetSerializer

    def get_queryset(self):
        return Budget.objects.filter(chapter=self.request.chapter)

    def perform_create(self, serializer):
        budget = serializer.save(chapter=self.request.chapter)
        logger.info(f"Budget {budget.pk} created in chapter {budget.chapter.slug}")


class BudgetDetailView(FinanceReadWriteMixin, generics.RetrieveUpdateDestroyAPIView):
    serializer_class = BudgetSerializer
    http_method_names = ['get', 'patch', 'delete']

    def get_queryset(self):
        return Budget.objects.filter(chapter=self.request.chapter)


# =============================================================================
# Expenses
# =============================================================================

class ExpenseListCreateView(FinanceReadWriteMixin, generics.ListCreateAPIView):
    serializer_class = ExpenseSerializer

    def get_queryset(self):
        queryset = (
            Expense.objects
            .filter(chapter=self.request.chapter)
            .select_related('submitted_by', 'approved_by')
        )
        expense_status = self.request.query_params.get('status')
        if expense_status in Expense.Status.values:
            queryset = queryset.filter(status=expense_status)
        budget_id = self.request.query_params.get('budget_id')
        if budget_id and budget_id.isdigit():
            queryset = queryset.filter(budget_id=budget_id)
        return queryset

    def perform_create(self, serializer):
        expense = serializer.save(chapter=self.request.chapter, submitted_by=self.request.user)
        logger.info(f"Expense {expense.pk} submitted in chapter {expense.chapter.slug}")


class ExpenseDetailView(APIView):
    """
    GET an expense, PATCH it (``?approve=true`` for the approval action),
    DELETE it while it is not yet paid.
    """

    def get_permissions(self):
        if self.request.method in permissions.SAFE_METHODS:
            return [permissions.IsAuthenticated(), FinanceMemberAccess()]
        if self.request.method == 'DELETE':
            return [permissions.IsAuthenticated(), FinanceAdminAccess()]
        # Submitters edit their own expenses; the service checks ownership
        return [permissions.IsAuthenticated(), FinanceMemberAccess()]

    def get_object(self, request, pk):
        return get_object_or_404(
            Expense.objects.select_related('submitted_by', 'approved_by', 'chapter'),
            pk=pk,
            chapter=request.chapter,
        )

    def get(self, request, slug, pk):
        expense = self.get_object(request, pk)
        return Response(ExpenseSerializer(expense).data)

    def patch(self, request, slug, pk):
        expense = self.get_object(request, pk)
        approve = request.query_params.get('approve') == 'true'

        if approve:
            serializer = ExpenseApprovalSerializer(data=request.data)
        else:
            serializer = ExpenseSerializer(
                expense, data=request.data, partial=True, context={'chapter': request.chapter}
            )
        serializer.is_valid(raise_exception=True)

        expense = update_expense(
            expense,
            request.user,
            is_admin(request),
            dict(serializer.validated_data),
            approve=approve,
        )
        return Response(ExpenseSerializer(expense).data)

    def delete(self, request, slug, pk):
        expense = self.get_object(request, pk)
        if expense.status == Expense.Status.PAID:
            return Response(
                {'error': 'Paid expenses cannot be deleted'},
                status=status.HTTP_400_BAD_REQUEST
            )
        expense.delete()
        return Response(status=status.HTTP_204_NO_CONTENT)


# =============================================================================
# Dues
# =============================================================================

class DuesListCreateView(FinanceReadWriteMixin, generics.ListAPIView):
    serializer_class = DuesPaymentSerializer

    def get_queryset(self):
        queryset = DuesPayment.objects.filter(chapter=self.request.chapter).select_related('user')
        if not is_admin(self.request):
            queryset = queryset.filter(user=self.request.user)
        else:
            user_id = self.request.query_params.get('user_id')
            if user_id and user_id.isdigit():
                queryset = queryset.filter(user_id=user_id)

        dues_status = self.request.query_params.get('status')
        if dues_status == 'paid':
            queryset = queryset.filter(paid_at__isnull=False)
        elif dues_status == 'unpaid':
            queryset = queryset.filter(paid_at__isnull=True)
        return queryset

    def list(self, request, *args, **kwargs):
        if request.query_params.get('stats') == 'true':
            return Response(dues_stats(self.get_queryset()))
        return super().list(request, *args, **kwargs)

    def post(self, request, slug):
        serializer = DuesCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        user_ids = data.get('member_ids') or [data['user_id']]
        members = list(
            Membership.objects
            .filter(chapter=request.chapter, user_id__in=user_ids)
            .active()
            .select_related('user')
        )
        if len(members) != len(set(user_ids)):
            return Response(
                {'error': 'Every user must be an active member of this chapter'},
                status=status.HTTP_400_BAD_REQUEST
            )

        dues = create_dues(request.chapter, [m.user for m in members], data['amount'], data['due_date'])
        logger.info(f"Created {len(dues)} dues payments in chapter {request.chapter.slug}")

        if len(dues) == 1 and not data.get('member_ids'):
            return Response(DuesPaymentSerializer(dues[0]).data, status=status.HTTP_201_CREATED)
        return Response({
            'count': len(dues),
            'results': DuesPaymentSerializer(dues, many=True).data,
        }, status=status.HTTP_201_CREATED)


class DuesDetailView(APIView):
    def get_permissions(self):
        if self.request.method in permissions.SAFE_METHODS:
            return [permissions.IsAuthenticated(), FinanceMemberAccess()]
        return [permissions.IsAuthenticated(), FinanceAdminAccess()]

    def get_object(self, request, pk):
        dues = get_object_or_404(
            DuesPayment.objects.select_related('user'), pk=pk, chapter=request.chapter
        )
        if dues.user_id != request.user.id and not is_admin(request):
            raise PermissionDenied('You can only view your own dues')
        return dues

    def get(self, request, slug, pk):
        return Response(DuesPaymentSerializer(self.get_object(request, pk)).data)

    def patch(self, request, slug, pk):
        dues = self.get_object(request, pk)
        serializer = DuesUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        if data.get('paid') is False and dues.is_paid:
            return Response(
                {'error': 'Paid dues cannot be marked unpaid'},
                status=status.HTTP_400_BAD_REQUEST
            )

        changed = [field for field in ('amount', 'due_date') if field in data]
        if changed:
            if dues.is_paid:
                return Response(
                    {'error': 'Paid dues cannot be changed'},
                    status=status.HTTP_400_BAD_REQUEST
                )
            for field in changed:
                setattr(dues, field, data[field])
            dues.save(update_fields=changed + ['updated_at'])

        if data.get('paid'):
            dues, _ = mark_dues_paid(dues.pk)

        return Response(DuesPaymentSerializer(dues).data)

    def delete(self, request, slug, pk):
        dues = self.get_object(request, pk)
        if dues.is_paid:
            return Response(
                {'error': 'Paid dues cannot be deleted'},
                status=status.HTTP_400_BAD_REQUEST
            )
        dues.delete()
        return Response(status=status.HTTP_204_NO_CONTENT)


class DuesCheckoutView(APIView):
    """Start a Stripe Checkout payment for one dues payment."""
    permission_classes = [permissions.IsAuthenticated, FinanceMemberAccess]

    def post(self, request, slug, pk):
        dues = get_object_or_404(
            DuesPayment.objects.select_related('user', 'chapter'), pk=pk, chapter=request.chapter
        )
        if dues.user_id != request.user.id and not is_admin(request):
            raise PermissionDenied('You can only pay your own dues')

        try:
            session = create_dues_checkout_session(dues, settings.APP_URL)
        except stripe.error.StripeError as e:
            logger.error(f"Stripe error creating dues checkout for {dues.pk}: {e}")
            return Response(
                {'error': 'Payment provider error, please try again later'},
                status=status.HTTP_500_INTERNAL_SERVER_ERROR
            )

        return Response({'session_id': session.id, 'url': session.url})


# =============================================================================
# Ledger
# =============================================================================

class TransactionListCreateView(FinanceReadWriteMixin, generics.ListAPIView):
    serializer_class = TransactionSerializer

    def get_queryset(self):
        params = self.request.query_params
        queryset = Transaction.objects.filter(chapter=self.request.chapter)

        start = parse_date(params.get('start_date') or '')
        if start:
            queryset = queryset.filter(created_at__date__gte=start)
        end = parse_date(params.get('end_date') or '')
        if end:
            queryset = queryset.filter(created_at__date__lte=end)
        if params.get('type') in Transaction.Type.values:
            queryset = queryset.filter(type=params['type'])
        return queryset

    def list(self, request, *args, **kwargs):
        limit = request.query_params.get('limit')
        if limit and limit.isdigit():
            rows = self.get_queryset()[:min(int(limit), 500)]
            return Response(self.get_serializer(rows, many=True).data)
        return super().list(request, *args, **kwargs)

    def post(self, request, slug):
        serializer = ManualTransactionSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        entry = record_manual_transaction(
            request.chapter, data['amount'], data['type'], data['description'], data['note'],
        )
        logger.info(f"Manual {entry.type} transaction {entry.pk} in chapter {request.chapter.slug}")
        return Response(TransactionSerializer(entry).data, status=status.HTTP_201_CREATED)


class FinanceSummaryView(APIView):
    permission_classes = [permissions.IsAuthenticated, FinanceMemberAccess]

    def get(self, request, slug):
        summary = finance_summary(request.chapter, request.query_params.get('timeframe', 'month'))
        recent = Transaction.objects.filter(chapter=request.chapter)[:5]
        summary['recent_transactions'] = TransactionSerializer(recent, many=True).data
        return Response(summary)


class FinanceReportView(APIView):
    """Monthly ledger totals. Owners on plans with advanced reporting."""
    permission_classes = [permissions.IsAuthenticated, FinanceOwnerAccess]

    def get(self, request, slug):
        months = request.query_params.get('months', '12')
        months = int(months) if months.isdigit() else 12
        return Response({
            'months': monthly_report(request.chapter, months=max(1, min(months, 36))),
        })
