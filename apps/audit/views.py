"""
API Views for reading a chapter's audit log.
"""
from django.utils.dateparse import parse_date
from rest_framework import generics, permissions
from rest_framework.pagination import PageNumberPagination

from apps.memberships.permissions import IsChapterAdmin
from .models import AuditAction, AuditLog
from .serializers import AuditLogSerializer


class AuditLogPagination(PageNumberPagination):
    page_size = 20
    page_size_query_param = 'limit'
    max_page_size = 100


class AuditLogListView(generics.ListAPIView):
    """
    Newest first. Filters: ``user_id``, ``action``, ``target_type``, and
    ``from``/``to`` dates (inclusive).
    """
    serializer_class = AuditLogSerializer
    pagination_class = AuditLogPagination
    permission_classes = [permissions.IsAuthenticated, IsChapterAdmin]

    def get_queryset(self):
        params = self.request.query_params
        queryset = AuditLog.objects.filter(chapter=self.request.chapter).select_related('user')

        user_id = params.get('user_id')
        if user_id and user_id.isdigit():
            queryset = queryset.filter(user_id=user_id)
        if params.get('action') in AuditAction.values:
            queryset = queryset.filter(action=params['action'])
        if params.get('target_type'):
            queryset = queryset.filter(target_type=params['target_type'])

        since = parse_date(params.get('from') or '')
        if since:
            queryset = queryset.filter(created_at__date__gte=since)
        until = parse_date(params.get('to') or '')
        if until:
            queryset = queryset.filter(created_at__date__lte=until)
        return queryset
