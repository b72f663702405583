"""
Builds and sends declarative API requests: parameter resolution, URL template
expansion, and ``multipart/related`` media uploads.
"""

from ._constants import VERSION as __version__
from .client_types import UploadProgress
from .context import ApiContext, ClientOptions, RequestDescriptor, build_root_context
from .credentials import ApiKey, BearerTokenAuth, Capability, Credential
from .errors import APIError, ApiRequestError, MissingParametersError, TransportError
from .options import FinalOptions, UserAgentDirective
from .params import ResolvedRequest, resolve_parameters
from .request import create_api_request, create_api_request_sync, dispatch, materialize
from .transport import DefaultTransporter
from .uploads import MediaSpec, MultipartRelatedStream

__all__ = [
    "ApiContext",
    "ClientOptions",
    "RequestDescriptor",
    "build_root_context",
    "ApiKey",
    "BearerTokenAuth",
    "Capability",
    "Credential",
    "APIError",
    "ApiRequestError",
    "MissingParametersError",
    "TransportError",
    "FinalOptions",
    "UserAgentDirective",
    "UploadProgress",
    "ResolvedRequest",
    "resolve_parameters",
    "create_api_request",
    "create_api_request_sync",
    "dispatch",
    "materialize",
    "DefaultTransporter",
    "MediaSpec",
    "MultipartRelatedStream",
    "__version__",
]
