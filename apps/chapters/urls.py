"""
URL configuration for chapter-scoped APIs.
"""
from django.urls import include, path

from . import views

app_name = 'chapters'

urlpatterns = [
    path('check-slug/', views.CheckSlugView.as_view(), name='check-slug'),
    path('<slug:slug>/', views.ChapterPublicView.as_view(), name='detail'),
    path('<slug:slug>/join/', views.JoinChapterView.as_view(), name='join'),
    path('<slug:slug>/membership/', views.MembershipStatusView.as_view(), name='membership'),
    path('<slug:slug>/membership/phone/', views.PhoneSettingsView.as_view(), name='membership-phone'),
    path('<slug:slug>/settings/', views.ChapterSettingsView.as_view(), name='settings'),
    path('<slug:slug>/join-code/', views.RegenerateJoinCodeView.as_view(), name='regenerate-join-code'),

    path('<slug:slug>/', include('apps.memberships.urls')),
    path('<slug:slug>/', include('apps.events.urls')),
    path('<slug:slug>/finance/', include('apps.finance.urls')),
    path('<slug:slug>/', include('apps.payments.chapter_urls')),
    path('<slug:slug>/', include('apps.audit.urls')),
    path('<slug:slug>/', include('apps.notifications.urls')),
]
