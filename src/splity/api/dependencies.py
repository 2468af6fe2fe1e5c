"""FastAPI dependencies for injection."""
from fastapi import Request

from splity.core.auth import get_current_user, get_session_resolver, get_token_validator
from splity.core.config import Settings
from splity.db.session import get_async_session
from splity.services.receipts import ReceiptAnalyzer
from splity.services.storage import ObjectStorage


def get_app_settings(request: Request) -> Settings:
    """Get the settings the application was created with."""
    return request.app.state.settings


def get_object_storage(request: Request) -> ObjectStorage:
    """Get the receipt image storage built in the application lifespan."""
    return request.app.state.object_storage


def get_receipt_analyzer(request: Request) -> ReceiptAnalyzer:
    """Get the receipt OCR client built in the application lifespan."""
    return request.app.state.receipt_analyzer


__all__ = [
    "get_app_settings",
    "get_async_session",
    "get_current_user",
    "get_object_storage",
    "get_receipt_analyzer",
    "get_session_resolver",
    "get_token_validator",
]
