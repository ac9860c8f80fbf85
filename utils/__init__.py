from .errors import AppError
from .security import hash_password, verify_password, create_access_token, verify_token
from .dependencies import authenticate, optional_auth, require_role, get_current_user
from .responses import error_response

__all__ = [
    "AppError",
    "hash_password",
    "verify_password",
    "create_access_token",
    "verify_token",
    "authenticate",
    "optional_auth",
    "require_role",
    "get_current_user",
    "error_response",
]
