"""
Server-rendered account pages. Sign-in stores the JWT pair in the same
cookies the API reads.
"""
import logging

from dj_rest_auth.jwt_auth import set_jwt_cookies, unset_jwt_cookies
from django.conf import settings
from django.contrib.auth import authenticate
from django.shortcuts import redirect, render
from django.utils.http import url_has_allowed_host_and_scheme
from rest_framework_simplejwt.exceptions import TokenError
from rest_framework_simplejwt.tokens import RefreshToken

from apps.memberships.access import select_default_chapter
from apps.memberships.models import Membership
from .passwords import complete_password_reset, find_reset_token, request_password_reset
from .serializers import RegisterChapterSerializer, ResetPasswordSerializer
from .sessions import resolve_session
from .tokens import issue_tokens
from .views import RESET_REQUESTED_MESSAGE, create_chapter_with_owner

logger = logging.getLogger(__name__)


def default_landing(user_id) -> str:
    memberships = Membership.objects.filter(user_id=user_id).select_related('chapter')
    return select_default_chapter(memberships)


def signed_in_redirect(user, target):
    """Redirect to ``target`` with fresh JWT cookies for ``user``."""
    access, refresh = issue_tokens(user)
    response = redirect(target)
    set_jwt_cookies(response, str(access), str(refresh))
    return response


def _safe_next(request, value):
    if value and url_has_allowed_host_and_scheme(value, allowed_hosts={request.get_host()}):
        return value
    return None


def first_error(errors):
    for messages in errors.values():
        return messages[0]
    return 'Please check the form and try again'


def home_page(request):
    session = resolve_session(request)
    if session is None:
        return redirect('/login/')
    return redirect(default_landing(session.id))


def login_page(request):
    next_url = _safe_next(request, request.GET.get('next') or request.POST.get('next'))

    if request.method == "GET":
        if resolve_session(request) is not None and next_url:
            return redirect(next_url)
        return render(request, "pages/login.html", {"next": next_url or ''})

    email = (request.POST.get("email") or '').strip().lower()
    password = request.POST.get("password") or ''
    user = authenticate(request, email=email, password=password)

    if user is None:
        return render(
            request,
            "pages/login.html",
            {"error": "Invalid email or password", "email": email, "next": next_url or ''},
            status=400,
        )

    logger.info(f"User {user.pk} signed in")
    return signed_in_redirect(user, next_url or default_landing(user.pk))


def logout_page(request):
    response = redirect('/login/')
    raw = request.COOKIES.get(settings.REST_AUTH['JWT_AUTH_REFRESH_COOKIE'])
    if raw:
        try:
            RefreshToken(raw).blacklist()
        except TokenError:
            pass  # already expired or blacklisted
    unset_jwt_cookies(response)
    return response


def signup_page(request):
    if request.method == "GET":
        return render(request, "pages/signup.html")

    serializer = RegisterChapterSerializer(data=request.POST)
    if not serializer.is_valid():
        return render(
            request,
            "pages/signup.html",
            {"error": first_error(serializer.errors), "form": request.POST},
            status=400,
        )

    data = serializer.validated_data
    user, chapter, _ = create_chapter_with_owner(
        data['full_name'], data['email'], data['password'], data['chapter_slug'],
    )
    logger.info(f"Chapter {chapter.slug} created by {user.email}")
    return signed_in_redirect(user, f"/{chapter.slug}/admin/")


def forgot_password_page(request):
    if request.method == "GET":
        return render(request, "pages/forgot_password.html")

    email = (request.POST.get("email") or '').strip()
    if not email:
        return render(request, "pages/forgot_password.html", {"error": "Email is required"}, status=400)

    request_password_reset(email)
    return render(request, "pages/forgot_password.html", {"message": RESET_REQUESTED_MESSAGE})


def reset_password_page(request):
    token = request.GET.get("token") or request.POST.get("token") or ''

    if request.method == "GET":
        return render(
            request,
            "pages/reset_password.html",
            {"token": token, "valid": find_reset_token(token) is not None},
        )

    serializer = ResetPasswordSerializer(data=request.POST)
    if not serializer.is_valid():
        return render(
            request,
            "pages/reset_password.html",
            {"token": token, "valid": True, "error": first_error(serializer.errors)},
            status=400,
        )

    user = complete_password_reset(token, serializer.validated_data['password'])
    if user is None:
        return render(request, "pages/reset_password.html", {"token": token, "valid": False}, status=400)
    return redirect('/login/?reset=1')
