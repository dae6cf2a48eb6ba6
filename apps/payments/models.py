"""
Models for chapter subscriptions and the plan catalogue.
"""
from django.db import models


class Plan(models.TextChoices):
    FREE = 'FREE', 'Free'
    BASIC = 'BASIC', 'Basic'
    PRO = 'PRO', 'Pro'


class SubscriptionPlan(models.Model):
    """Available subscription plans."""

    name = models.CharField(max_length=20, choices=Plan.choices, unique=True)
    display_name = models.CharField(max_length=100)
    description = models.TextField(blank=True)

    # Pricing
    price_monthly = models.DecimalField(max_digits=10, decimal_places=2, default=0)
    stripe_price_id = models.CharField(max_length=255, blank=True)

    is_active = models.BooleanField(default=True)
    sort_order = models.PositiveIntegerField(default=0)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['sort_order']
        verbose_name = 'Subscription Plan'
        verbose_name_plural = 'Subscription Plans'

    def __str__(self):
        return self.display_name


class Subscription(models.Model):
    """A chapter's plan, kept in sync with Stripe through webhooks."""

    class Status(models.TextChoices):
        ACTIVE = 'ACTIVE', 'Active'
        PAST_DUE = 'PAST_DUE', 'Past due'
        CANCELED = 'CANCELED', 'Canceled'
        TRIALING = 'TRIALING', 'Trialing'
        INCOMPLETE = 'INCOMPLETE', 'Incomplete'

    chapter = models.OneToOneField(
        'chapters.Chapter',
        on_delete=models.CASCADE,
        related_name='subscription'
    )
    plan = models.CharField(max_length=20, choices=Plan.choices, default=Plan.FREE)
    status = models.CharField(max_length=20, choices=Status.choices, default=Status.ACTIVE)

    # Stripe references
    stripe_subscription_id = models.CharField(max_length=255, blank=True, null=True, unique=True)
    current_period_end = models.DateTimeField(null=True, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"{self.chapter.slug} - {self.plan} ({self.status})"

    @property
    def effective_plan(self) -> str:
        """The plan whose features apply right now."""
        if self.status in (self.Status.ACTIVE, self.Status.TRIALING):
            return self.plan
        return Plan.FREE
