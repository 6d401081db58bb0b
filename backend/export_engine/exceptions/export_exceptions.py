"""
Export Exceptions

Errors raised while building, serializing and delivering export files.
"""

from fastapi import status
from .base import AppException


class EmptySelectionError(AppException):
    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY
    detail = "Please select at least one item to export."


class SerializationFault(AppException):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    detail = "Could not export data. Please try again."


class DeliveryNotSupportedError(AppException):
    status_code = status.HTTP_501_NOT_IMPLEMENTED
    detail = "Scheduled and emailed exports are not available."


class SessionBusyError(AppException):
    status_code = status.HTTP_409_CONFLICT
    detail = "Another scan or export is still running."


class ExportCancelledError(AppException):
    status_code = status.HTTP_409_CONFLICT
    detail = "The export was cancelled."


class InvalidChartImageError(AppException):
    status_code = status.HTTP_400_BAD_REQUEST
    detail = "A chart image could not be decoded."
