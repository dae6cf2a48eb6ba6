from django.urls import path

from . import views

app_name = 'invites'

urlpatterns = [
    path('validate/', views.ValidateInviteView.as_view(), name='validate'),
    path('accept/', views.AcceptInviteView.as_view(), name='accept'),
]
