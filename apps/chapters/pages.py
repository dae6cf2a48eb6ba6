"""
Server-rendered chapter pages.

Each guarded page resolves the session from the JWT cookie and runs the
same access decision as the API; a denied decision becomes a redirect.
"""
import logging
from functools import wraps
from urllib.parse import quote

from django.contrib.auth import get_user_model
from django.http import Http404
from django.shortcuts import get_object_or_404, redirect, render
from django.utils import timezone
from rest_framework.exceptions import NotFound, ValidationError

from apps.events.models import Event
from apps.finance.models import DuesPayment
from apps.memberships.access import check_access
from apps.memberships.models import Invite, Membership, Role
from apps.memberships.services import accept_invite, find_open_invite
from apps.payments.models import SubscriptionPlan
from apps.payments.plans import chapter_plan, finance_features
from apps.payments.services import get_or_create_subscription
from apps.users.pages import first_error, signed_in_redirect
from apps.users.sessions import resolve_session
from .models import Chapter
from .serializers import JoinChapterSerializer
from .services import join_chapter

logger = logging.getLogger(__name__)
User = get_user_model()


def chapter_page(required=Role.MEMBER, allow_pending=False):
    def decorator(view_func):
        @wraps(view_func)
        def _wrapped(request, slug, *args, **kwargs):
            session = resolve_session(request)
            try:
                lookup, decision = check_access(
                    session, slug,
                    required=required,
                    allow_pending=allow_pending,
                    next_path=quote(request.get_full_path()),
                )
            except Chapter.DoesNotExist:
                raise Http404("Chapter not found")

            if not decision.allowed:
                return redirect(decision.redirect_to)

            request.session_user = session
            request.chapter = lookup.chapter
            request.membership = lookup.membership
            return view_func(request, slug, *args, **kwargs)

        return _wrapped
    return decorator


def _message(exc):
    detail = exc.detail
    if isinstance(detail, list):
        return str(detail[0])
    return str(detail)


def _accept_invite_from_page(request, chapter, context):
    token = request.POST.get("invite_token")
    try:
        membership = accept_invite(
            token,
            request.POST.get("email") or '',
            request.POST.get("password") or '',
            (request.POST.get("full_name") or '').strip(),
        )
    except (NotFound, ValidationError) as e:
        context.update(error=_message(e), form=request.POST)
        return render(request, "pages/join.html", context, status=400)
    return signed_in_redirect(membership.user, f"/{membership.chapter.slug}/portal/")


def landing_page(request, slug):
    chapter = get_object_or_404(Chapter, slug=slug)
    return render(request, "pages/landing.html", {"chapter": chapter})


def join_page(request, slug):
    chapter = get_object_or_404(Chapter, slug=slug)
    session = resolve_session(request)
    context = {"chapter": chapter, "session": session, "join_code": request.POST.get("join_code", "")}

    if request.method == "GET":
        context["join_code"] = request.GET.get("code", "")
        token = request.GET.get("token")
        if token:
            try:
                context["invite"] = find_open_invite(token, chapter.slug)
            except (NotFound, ValidationError) as e:
                context["error"] = _message(e)
        return render(request, "pages/join.html", context)

    if request.POST.get("invite_token"):
        return _accept_invite_from_page(request, chapter, context)

    user = User.objects.filter(pk=session.id).first() if session is not None else None
    if user is not None:
        # Signed in: only the join code is needed
        values = {
            'full_name': user.name,
            'email': user.email,
            'password': None,
            'join_code': (request.POST.get("join_code") or '').strip(),
        }
    else:
        serializer = JoinChapterSerializer(data=request.POST)
        if not serializer.is_valid():
            context.update(error=first_error(serializer.errors), form=request.POST)
            return render(request, "pages/join.html", context, status=400)
        values = serializer.validated_data

    try:
        membership = join_chapter(
            chapter,
            values['full_name'],
            values['email'],
            values['password'],
            values['join_code'],
            user=user,
        )
    except ValidationError as e:
        context.update(error=_message(e), form=request.POST)
        return render(request, "pages/join.html", context, status=400)

    if user is None:
        return signed_in_redirect(membership.user, f"/{slug}/pending/")
    return redirect(f"/{slug}/pending/")


@chapter_page(allow_pending=True)
def pending_page(request, slug):
    if request.membership.role != Role.PENDING_MEMBER:
        return redirect(f"/{slug}/portal/")
    return render(request, "pages/pending.html", {"chapter": request.chapter})


@chapter_page(required=Role.MEMBER)
def portal_page(request, slug):
    chapter = request.chapter
    upcoming = (
        Event.objects
        .filter(chapter=chapter, start_date__gte=timezone.now())
        .exclude(status=Event.Status.CANCELED)[:5]
    )
    dues = DuesPayment.objects.filter(chapter=chapter, user_id=request.membership.user_id, paid_at__isnull=True)
    return render(request, "pages/portal.html", {
        "chapter": chapter,
        "membership": request.membership,
        "is_admin": Role.at_least(request.membership.role, Role.ADMIN),
        "events": upcoming,
        "unpaid_dues": dues,
    })


@chapter_page(required=Role.ADMIN)
def admin_page(request, slug):
    chapter = request.chapter
    memberships = Membership.objects.filter(chapter=chapter).select_related('user')
    return render(request, "pages/admin.html", {
        "chapter": chapter,
        "membership": request.membership,
        "is_owner": request.membership.role == Role.OWNER,
        "pending": memberships.pending(),
        "members": memberships.active(),
        "invites": Invite.objects.filter(chapter=chapter).active(),
        "plan": chapter_plan(chapter),
    })


@chapter_page(required=Role.OWNER)
def billing_page(request, slug):
    chapter = request.chapter
    return render(request, "pages/billing.html", {
        "chapter": chapter,
        "subscription": get_or_create_subscription(chapter),
        "plan": chapter_plan(chapter),
        "features": finance_features(chapter),
        "plans": SubscriptionPlan.objects.filter(is_active=True),
        "success": request.GET.get("success") == "true",
        "canceled": request.GET.get("canceled") == "true",
    })
