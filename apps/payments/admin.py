from django.contrib import admin
from .models import Subscription, SubscriptionPlan

@admin.register(SubscriptionPlan)
class SubscriptionPlanAdmin(admin.ModelAdmin):
    list_display = ('display_name', 'name', 'price_monthly', 'stripe_price_id', 'is_active', 'sort_order')
    list_filter = ('is_active',)
    search_fields = ('name', 'display_name')
    ordering = ('sort_order',)

@admin.register(Subscription)
class SubscriptionAdmin(admin.ModelAdmin):
    list_display = ('chapter', 'plan', 'status', 'current_period_end', 'updated_at')
    list_filter = ('plan', 'status')
    search_fields = ('chapter__slug', 'chapter__name', 'stripe_subscription_id')
    readonly_fields = ('created_at', 'updated_at')
