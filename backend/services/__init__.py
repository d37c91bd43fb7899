from .auth_service import validate_token
from .preview_service import PreviewService

__all__ = [
    'PreviewService',
    'validate_token'
]
