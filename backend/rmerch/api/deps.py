from typing import Dict

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from rmerch.errors import AuthenticationError, PermissionDeniedError
from rmerch.utils.security import decode_token

security = HTTPBearer(auto_error=False)


def get_current_user(creds: HTTPAuthorizationCredentials = Depends(security)) -> Dict:
    """Token claims {id, email, role}; the user row itself is not loaded."""
    if not creds:
        raise AuthenticationError("Not authorized. Token required")
    return decode_token(creds.credentials)


def require_role(required: str):
    def _checker(user: Dict = Depends(get_current_user)):
        if user.get("role") != required:
            raise PermissionDeniedError("Access denied")
        return user

    return _checker
