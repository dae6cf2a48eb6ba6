"""
API error envelope.

Every error response has the shape ``{"error": "<message>"}``; validation
failures also carry ``{"errors": {field: [messages]}}``.
"""
import logging

import stripe
from django.db import IntegrityError
from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import exception_handler

logger = logging.getLogger(__name__)


def _first_message(detail):
    if isinstance(detail, dict):
        for value in detail.values():
            return _first_message(value)
        return 'Invalid input'
    if isinstance(detail, (list, tuple)):
        return _first_message(detail[0]) if detail else 'Invalid input'
    return str(detail)


def api_exception_handler(exc, context):
    response = exception_handler(exc, context)

    if response is None:
        view = context.get('view')
        view_name = view.__class__.__name__ if view else 'unknown view'
        if isinstance(exc, IntegrityError):
            logger.warning(f"Integrity error in {view_name}: {exc}")
            return Response(
                {'error': 'This record conflicts with an existing one'},
                status=status.HTTP_400_BAD_REQUEST,
            )
        if isinstance(exc, stripe.error.StripeError):
            logger.error(f"Stripe error in {view_name}: {exc}")
            return Response(
                {'error': 'Payment provider error, please try again later'},
                status=status.HTTP_500_INTERNAL_SERVER_ERROR,
            )
        logger.exception(f"Unhandled error in {view_name}: {exc}")
        return Response(
            {'error': 'Internal server error'},
            status=status.HTTP_500_INTERNAL_SERVER_ERROR,
        )

    detail = response.data
    if isinstance(detail, dict) and set(detail) == {'detail'}:
        response.data = {'error': str(detail['detail'])}
    else:
        response.data = {'error': _first_message(detail), 'errors': detail}
    return response
