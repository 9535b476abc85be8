"""セッショントークン・シークレット・認可"""

from .admin_auth import AdminAuthorizer
from .client import ClientIdentity, resolve_client_ip
from .encryption import SecretBox, generate_encryption_key
from .secret import SecretProvider
from .session_token import (
    SessionTokenCodec,
    TokenVerification,
    generate_fingerprint,
)

__all__ = [
    "AdminAuthorizer",
    "ClientIdentity",
    "resolve_client_ip",
    "SecretBox",
    "generate_encryption_key",
    "SecretProvider",
    "SessionTokenCodec",
    "TokenVerification",
    "generate_fingerprint",
]
