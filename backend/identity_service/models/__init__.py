from identity_service.models.enums import AuthProvider, ProviderType, TokenStatus
from identity_service.models.refresh_token import RefreshToken
from identity_service.models.user import User

__all__ = [
    "AuthProvider",
    "ProviderType",
    "RefreshToken",
    "TokenStatus",
    "User",
]
