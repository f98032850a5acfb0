"""
Runway Gen-2 Service

Client for Runway's browser-session web API:
- Serialized Gen-2 job submission
- Three-phase image upload (reserve, transfer, commit)
- Task polling to a downloaded VideoAsset
"""

from .client import RunwayClient, new_runway_client
from .credentials import parse_credentials, resolve_credential
from .errors import (
    AuthMismatchError,
    GenerationError,
    InvalidInputError,
    NetworkError,
    RunwayError,
    TaskFailureError,
    UploadError,
)
from .fingerprint import FingerprintProvider, RandomFingerprint, StaticFingerprint
from .models import (
    GenerationRequest,
    Pending,
    ProxyEndpoint,
    ServiceCredential,
    SubmitResult,
    TaskHandle,
    VideoAsset,
)
from .serializer import SerialTaskQueue

__all__ = [
    "RunwayClient",
    "new_runway_client",
    "parse_credentials",
    "resolve_credential",
    "AuthMismatchError",
    "GenerationError",
    "InvalidInputError",
    "NetworkError",
    "RunwayError",
    "TaskFailureError",
    "UploadError",
    "FingerprintProvider",
    "RandomFingerprint",
    "StaticFingerprint",
    "GenerationRequest",
    "Pending",
    "ProxyEndpoint",
    "ServiceCredential",
    "SubmitResult",
    "TaskHandle",
    "VideoAsset",
    "SerialTaskQueue",
]
