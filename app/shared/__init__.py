"""Shared utilities used across features."""

from app.shared.models import CreatedAtMixin
from app.shared.schemas import ApiResponse, CamelModel
from app.shared.utils import success_response

__all__ = [
    "ApiResponse",
    "CamelModel",
    "CreatedAtMixin",
    "success_response",
]
