"""
URL configuration for chapter finances, mounted under ``<slug>/finance/``.
"""
from django.urls import path

from . import views

app_name = 'finance'

urlpatterns = [
    path('budgets/', views.BudgetListCreateView.as_view(), name='budget-list'),
    path('budgets/<int:pk>/', views.BudgetDetailView.as_view(), name='budget-detail'),
    path('expenses/', views.ExpenseListCreateView.as_view(), name='expense-list'),
    path('expenses/<int:pk>/', views.ExpenseDetailView.as_view(), name='expense-detail'),
    path('dues/', views.DuesListCreateView.as_view(), name='dues-list'),
    path('dues/<int:pk>/', views.DuesDetailView.as_view(), name='dues-detail'),
    path('dues/<int:pk>/checkout/', views.DuesCheckoutView.as_view(), name='dues-checkout'),
    path('transactions/', views.TransactionListCreateView.as_view(), name='transaction-list'),
    path('summary/', views.FinanceSummaryView.as_view(), name='summary'),
    path('reports/', views.FinanceReportView.as_view(), name='reports'),
]
