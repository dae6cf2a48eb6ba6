"""
URL configuration for account APIs.
"""
from django.urls import path
from . import views

app_name = 'users'

urlpatterns = [
    path('register/', views.RegisterView.as_view(), name='register'),
    path('profile/', views.ProfileView.as_view(), name='profile'),
    path('change-password/', views.ChangePasswordView.as_view(), name='change-password'),
    path('forgot-password/', views.ForgotPasswordView.as_view(), name='forgot-password'),
    path('verify-reset-token/', views.VerifyResetTokenView.as_view(), name='verify-reset-token'),
    path('reset-password/', views.ResetPasswordView.as_view(), name='reset-password'),
    path('memberships/', views.MyMembershipsView.as_view(), name='memberships'),
]
