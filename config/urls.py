"""
Main URL configuration for GreekDash.
"""
from django.contrib import admin
from django.urls import path, include
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import AllowAny
from rest_framework.response import Response

from apps.chapters import pages as chapter_pages
from apps.users import pages as account_pages
from apps.users.views import GoogleLoginView


@api_view(['GET'])
@permission_classes([AllowAny])
def api_root(request):
    """API root endpoint with available routes."""
    return Response({
        'message': 'Welcome to the GreekDash API',
        'version': '1.0.0',
        'endpoints': {
            'auth': {
                'login': '/api/auth/login/',
                'logout': '/api/auth/logout/',
                'user': '/api/auth/user/',
                'token_refresh': '/api/auth/token/refresh/',
                'google': '/api/auth/google/',
            },
            'account': '/api/account/',
            'chapters': '/api/chapters/',
            'invites': '/api/invites/',
            'payments': '/api/payments/',
            'admin': '/admin/',
        }
    })


urlpatterns = [
    # Admin
    path('admin/', admin.site.urls),

    # API Root
    path('api/', api_root, name='api-root'),

    # Authentication (dj-rest-auth)
    path('api/auth/', include('dj_rest_auth.urls')),
    path('api/auth/google/', GoogleLoginView.as_view(), name='google-login'),

    # App URLs
    path('api/account/', include('apps.users.urls', namespace='users')),
    path('api/chapters/', include('apps.chapters.urls', namespace='chapters')),
    path('api/invites/', include('apps.memberships.invite_urls', namespace='invites')),
    path('api/payments/', include('apps.payments.urls', namespace='payments')),

    # Pages
    path('', account_pages.home_page, name='home'),
    path('login/', account_pages.login_page, name='login'),
    path('logout/', account_pages.logout_page, name='logout'),
    path('signup/', account_pages.signup_page, name='signup'),
    path('forgot-password/', account_pages.forgot_password_page, name='forgot-password'),
    path('reset-password/', account_pages.reset_password_page, name='reset-password'),
    path('<slug:slug>/', chapter_pages.landing_page, name='chapter-landing'),
    path('<slug:slug>/join/', chapter_pages.join_page, name='chapter-join'),
    path('<slug:slug>/pending/', chapter_pages.pending_page, name='chapter-pending'),
    path('<slug:slug>/portal/', chapter_pages.portal_page, name='chapter-portal'),
    path('<slug:slug>/admin/', chapter_pages.admin_page, name='chapter-admin'),
    path('<slug:slug>/admin/billing/', chapter_pages.billing_page, name='chapter-billing'),
]
