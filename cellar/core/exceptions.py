import logging

from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import exception_handler

logger = logging.getLogger(__name__)


def api_exception_handler(exc, context):
    """
    DRF exception handler.

    DRF's own exceptions (authentication, permission, 404, parse errors) keep
    their standard responses. Anything else escaping a view is logged and
    answered with a generic 500 body instead of an HTML debug page.
    """
    response = exception_handler(exc, context)
    if response is not None:
        return response

    view = context.get('view')
    view_name = view.__class__.__name__ if view is not None else 'unknown view'
    logger.error(f"Unhandled error in {view_name}: {str(exc)}", exc_info=exc)
    return Response(
        {'error': 'Internal server error'},
        status=status.HTTP_500_INTERNAL_SERVER_ERROR
    )
