from django.contrib import admin
from .models import Budget, DuesPayment, Expense, Transaction

@admin.register(Budget)
class BudgetAdmin(admin.ModelAdmin):
    list_display = ('name', 'chapter', 'amount', 'start_date', 'end_date', 'status')
    list_filter = ('status',)
    search_fields = ('name', 'chapter__slug')

@admin.register(Expense)
class ExpenseAdmin(admin.ModelAdmin):
    list_display = ('title', 'chapter', 'amount', 'status', 'submitted_by', 'submitted_at')
    list_filter = ('status', 'submitted_at')
    search_fields = ('title', 'chapter__slug', 'submitted_by__email')
    readonly_fields = ('submitted_at', 'approved_at', 'paid_at')

@admin.register(DuesPayment)
class DuesPaymentAdmin(admin.ModelAdmin):
    list_display = ('user', 'chapter', 'amount', 'due_date', 'paid_at')
    list_filter = ('due_date',)
    search_fields = ('user__email', 'chapter__slug', 'stripe_payment_id')

@admin.register(Transaction)
class TransactionAdmin(admin.ModelAdmin):
    list_display = ('chapter', 'type', 'amount', 'description', 'created_at')
    list_filter = ('type', 'created_at')
    search_fields = ('description', 'chapter__slug')
    readonly_fields = ('created_at', 'processed_at')
