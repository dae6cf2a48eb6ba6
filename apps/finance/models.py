"""
Models for chapter finances: budgets, expenses, dues and the transaction ledger.
"""
from django.conf import settings
from django.db import models

from . import metadata


class Budget(models.Model):
    class Status(models.TextChoices):
        PLANNING = 'PLANNING', 'Planning'
        ACTIVE = 'ACTIVE', 'Active'
        COMPLETED = 'COMPLETED', 'Completed'
        CANCELED = 'CANCELED', 'Canceled'

    chapter = models.ForeignKey('chapters.Chapter', on_delete=models.CASCADE, related_name='budgets')
    name = models.CharField(max_length=100)
    description = models.TextField(blank=True)
    amount = models.DecimalField(max_digits=10, decimal_places=2)
    start_date = models.DateField()
    end_date = models.DateField()
    status = models.CharField(max_length=20, choices=Status.choices, default=Status.PLANNING)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['-start_date', '-id']

    def __str__(self):
        return f"{self.name} (${self.amount})"


class Expense(models.Model):
    class Status(models.TextChoices):
        PENDING = 'PENDING', 'Pending'
        APPROVED = 'APPROVED', 'Approved'
        DENIED = 'DENIED', 'Denied'
        PAID = 'PAID', 'Paid'

    chapter = models.ForeignKey('chapters.Chapter', on_delete=models.CASCADE, related_name='expenses')
    budget = models.ForeignKey(Budget, on_delete=models.SET_NULL, null=True, blank=True, related_name='expenses')

    title = models.CharField(max_length=100)
    description = models.TextField(blank=True)
    amount = models.DecimalField(max_digits=10, decimal_places=2)
    receipt_url = models.URLField(blank=True)
    status = models.CharField(max_length=20, choices=Status.choices, default=Status.PENDING)

    submitted_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        related_name='expenses_submitted'
    )
    approved_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='expenses_approved'
    )
    approved_at = models.DateTimeField(null=True, blank=True)
    paid_at = models.DateTimeField(null=True, blank=True)

    submitted_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['-submitted_at', '-id']

    def __str__(self):
        return f"{self.title} - ${self.amount} - {self.status}"


class DuesPayment(models.Model):
    chapter = models.ForeignKey('chapters.Chapter', on_delete=models.CASCADE, related_name='dues_payments')
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='dues_payments'
    )
    amount = models.DecimalField(max_digits=10, decimal_places=2)
    due_date = models.DateField()
    paid_at = models.DateTimeField(null=True, blank=True)

    # Stripe references
    stripe_payment_id = models.CharField(max_length=255, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['due_date', 'id']
        verbose_name = 'Dues Payment'
        verbose_name_plural = 'Dues Payments'

    def __str__(self):
        state = 'paid' if self.is_paid else 'unpaid'
        return f"{self.user.email} - ${self.amount} due {self.due_date} ({state})"

    @property
    def is_paid(self) -> bool:
        return self.paid_at is not None


class Transaction(models.Model):
    """Signed ledger entry. Income is positive, spending negative."""

    class Type(models.TextChoices):
        DUES_PAYMENT = 'DUES_PAYMENT', 'Dues payment'
        EXPENSE = 'EXPENSE', 'Expense'
        DONATION = 'DONATION', 'Donation'
        REFUND = 'REFUND', 'Refund'
        OTHER = 'OTHER', 'Other'

    chapter = models.ForeignKey('chapters.Chapter', on_delete=models.CASCADE, related_name='transactions')
    amount = models.DecimalField(max_digits=10, decimal_places=2)
    type = models.CharField(max_length=20, choices=Type.choices)
    description = models.CharField(max_length=255)
    metadata = models.JSONField(default=dict, blank=True)

    # At most one ledger row per paid dues payment or expense
    dues_payment = models.OneToOneField(
        DuesPayment,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='transaction'
    )
    expense = models.OneToOneField(
        Expense,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='transaction'
    )

    processed_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['-created_at', '-id']

    def __str__(self):
        return f"{self.get_type_display()}: {self.amount}"

    @property
    def details(self):
        return metadata.registry.load(self.metadata)
