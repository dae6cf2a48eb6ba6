from django.urls import path

from . import views

urlpatterns = [
    path('members/', views.MemberListView.as_view(), name='member-list'),
    path('members/pending/', views.PendingMemberListView.as_view(), name='member-pending'),
    path('members/<int:pk>/', views.MemberDetailView.as_view(), name='member-detail'),
    path('members/<int:pk>/approve/', views.ApproveMemberView.as_view(), name='member-approve'),
    path('members/<int:pk>/deny/', views.DenyMemberView.as_view(), name='member-deny'),
    path('members/<int:pk>/role/', views.MemberRoleView.as_view(), name='member-role'),
    path('invites/', views.InviteListCreateView.as_view(), name='invite-list'),
    path('invites/<int:pk>/', views.InviteDetailView.as_view(), name='invite-detail'),
    path('invites/<int:pk>/resend/', views.ResendInviteView.as_view(), name='invite-resend'),
]
