from django.urls import path
from .views import SubscriptionPlansView
from .webhooks import stripe_webhook

app_name = 'payments'

urlpatterns = [
    path('plans/', SubscriptionPlansView.as_view(), name='subscription-plans'),
    path('webhook/', stripe_webhook, name='stripe-webhook'),
]
