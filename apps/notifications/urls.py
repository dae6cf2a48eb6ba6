from django.urls import path

from .views import BroadcastView

urlpatterns = [
    path('broadcasts/', BroadcastView.as_view(), name='broadcasts'),
]
