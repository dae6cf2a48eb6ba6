"""
Chapter billing routes, mounted under ``<slug>/``.
"""
from django.urls import path

from .views import BillingPortalView, BillingView

urlpatterns = [
    path('billing/', BillingView.as_view(), name='billing'),
    path('billing/portal/', BillingPortalView.as_view(), name='billing-portal'),
]
