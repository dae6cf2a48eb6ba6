from decimal import Decimal

from rest_framework import serializers

from apps.memberships.serializers import MemberUserSerializer
from .models import Budget, DuesPayment, Expense, Transaction

money = dict(max_digits=10, decimal_places=2)


class BudgetSerializer(serializers.ModelSerializer):
    amount = serializers.DecimalField(min_value=Decimal('0.00'), **money)

    class Meta:
        model = Budget
        fields = ['id', 'name', 'description', 'amount', 'start_date', 'end_date', 'status', 'created_at', 'updated_at']
        read_only_fields = ['id', 'created_at', 'updated_at']

    def validate(self, attrs):
        start = attrs.get('start_date', getattr(self.instance, 'start_date', None))
        end = attrs.get('end_date', getattr(self.instance, 'end_date', None))
        if start and end and end < start:
            raise serializers.ValidationError({'end_date': ['End date must be on or after the start date.']})
        return attrs


class ExpenseSerializer(serializers.ModelSerializer):
    amount = serializers.DecimalField(min_value=Decimal('0.01'), **money)
    budget_id = serializers.PrimaryKeyRelatedField(
        source='budget', queryset=Budget.objects.none(), required=False, allow_null=True
    )
    submitted_by = MemberUserSerializer(read_only=True)
    approved_by = MemberUserSerializer(read_only=True)

    class Meta:
        model = Expense
        fields = [
            'id', 'title', 'description', 'amount', 'receipt_url', 'budget_id', 'status',
            'submitted_by', 'approved_by', 'approved_at', 'paid_at', 'submitted_at', 'updated_at',
        ]
        read_only_fields = ['id', 'submitted_by', 'approved_by', 'approved_at', 'paid_at', 'submitted_at', 'updated_at']

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        chapter = self.context.get('chapter')
        if chapter is not None:
            self.fields['budget_id'].queryset = Budget.objects.filter(chapter=chapter)


class ExpenseApprovalSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=[
        Expense.Status.APPROVED, Expense.Status.DENIED, Expense.Status.PAID,
    ])


class DuesPaymentSerializer(serializers.ModelSerializer):
    user = MemberUserSerializer(read_only=True)
    is_paid = serializers.BooleanField(read_only=True)

    class Meta:
        model = DuesPayment
        fields = ['id', 'user', 'amount', 'due_date', 'paid_at', 'is_paid', 'stripe_payment_id', 'created_at']
        read_only_fields = fields


class DuesCreateSerializer(serializers.Serializer):
    """Single (``user_id``) or bulk (``member_ids``) dues creation."""
    amount = serializers.DecimalField(min_value=Decimal('0.01'), **money)
    due_date = serializers.DateField()
    user_id = serializers.IntegerField(required=False)
    member_ids = serializers.ListField(child=serializers.IntegerField(), required=False, allow_empty=False)

    def validate(self, attrs):
        if not attrs.get('user_id') and not attrs.get('member_ids'):
            raise serializers.ValidationError({'user_id': ['Provide user_id or member_ids.']})
        return attrs


class DuesUpdateSerializer(serializers.Serializer):
    amount = serializers.DecimalField(min_value=Decimal('0.01'), required=False, **money)
    due_date = serializers.DateField(required=False)
    paid = serializers.BooleanField(required=False)


class TransactionSerializer(serializers.ModelSerializer):
    class Meta:
        model = Transaction
        fields = [
            'id', 'amount', 'type', 'description', 'metadata', 'dues_payment',
            'expense', 'processed_at', 'created_at',
        ]
        read_only_fields = fields


class ManualTransactionSerializer(serializers.Serializer):
    amount = serializers.DecimalField(**money)
    type = serializers.ChoiceField(choices=Transaction.Type.choices)
    description = serializers.CharField(max_length=255)
    note = serializers.CharField(max_length=1000, required=False, allow_blank=True, default='')
