"""
ミドルウェア
"""

from .error_handler import error_response_middleware
from .gateway import AdmissionDecision, AdmissionMiddleware, normalize_api_path
from .security_headers import CorsPolicy, build_csp, security_headers

__all__ = [
    "AdmissionDecision",
    "AdmissionMiddleware",
    "CorsPolicy",
    "build_csp",
    "error_response_middleware",
    "normalize_api_path",
    "security_headers",
]
