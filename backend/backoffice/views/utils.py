"""Utility helpers shared across API view modules."""

import logging

from django.db.models import ProtectedError
from django.http import HttpResponse
from django.utils.dateparse import parse_date
from rest_framework import status
from rest_framework.exceptions import ValidationError as DRFValidationError
from rest_framework.response import Response
from rest_framework.views import exception_handler

from ..services.exceptions import (
    AuthError,
    CashSyncError,
    InvalidStateError,
    StoreError,
    ValidationError,
)

logger = logging.getLogger(__name__)

XLSX_CONTENT_TYPE = 'application/vnd.openxmlformats-officedocument.spreadsheetml.sheet'

LEDGER_ERROR_STATUS = (
    (ValidationError, status.HTTP_400_BAD_REQUEST),
    (AuthError, status.HTTP_401_UNAUTHORIZED),
    (InvalidStateError, status.HTTP_409_CONFLICT),
    (CashSyncError, status.HTTP_503_SERVICE_UNAVAILABLE),
    (StoreError, status.HTTP_503_SERVICE_UNAVAILABLE),
)


def ledger_exception_handler(exc, context):
    """Translate ledger service errors into API responses.

    Deleting a row that invoices still reference is a 409.  Anything else
    that is not a ledger error falls through to DRF's handler.
    """

    if isinstance(exc, ProtectedError):
        return Response({'detail': protected_message(exc)}, status=status.HTTP_409_CONFLICT)
    for error_class, status_code in LEDGER_ERROR_STATUS:
        if isinstance(exc, error_class):
            if status_code >= 500:
                logger.error("Ledger request failed: %s", exc)
            return Response({'detail': str(exc)}, status=status_code)
    return exception_handler(exc, context)


def protected_message(exc):
    referenced_by = sorted({str(obj._meta.verbose_name_plural) for obj in exc.protected_objects})
    return f"Cannot delete this record while {', '.join(referenced_by)} still reference it."


def get_export_format(request):
    export_format = request.query_params.get('export_format')
    if not export_format:
        export_format = request.query_params.get('format')
    return (export_format or '').lower()


def file_response(content, filename, content_type):
    response = HttpResponse(content, content_type=content_type)
    response['Content-Disposition'] = f'attachment; filename="{filename}"'
    return response


def parse_date_param(request, name):
    """Return the ``YYYY-MM-DD`` query parameter *name* as a date, or ``None``."""

    raw = request.query_params.get(name)
    if not raw:
        return None
    try:
        value = parse_date(raw)
    except ValueError:
        value = None
    if value is None:
        raise DRFValidationError({name: 'Use the YYYY-MM-DD format.'})
    return value
