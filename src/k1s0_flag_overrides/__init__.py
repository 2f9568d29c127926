"""k1s0 flag overrides service."""

from .app import create_app
from .config import FlagServiceConfig, LogSettings, ServerSettings
from .exceptions import (
    ConfigurationError,
    FlagServiceError,
    FlagServiceErrorCodes,
    RequestValidationError,
    UpstreamAuthError,
    UpstreamFetchError,
)
from .fetcher import FlagFetcher, HttpFlagFetcher, InMemoryFlagFetcher
from .handler import FeatureFlagsHandler, HandlerResponse
from .logger import configure_logging
from .models import (
    BearerToken,
    FlagFetchFailure,
    FlagFetchResult,
    FlagFetchSuccess,
    FlagMap,
    FlagScope,
    FlagValue,
    OverrideMap,
    ScopeKind,
)
from .overrides import compute_overrides
from .token_provider import HttpTokenProvider, TokenProvider

__all__ = [
    "BearerToken",
    "ConfigurationError",
    "FeatureFlagsHandler",
    "FlagFetchFailure",
    "FlagFetchResult",
    "FlagFetchSuccess",
    "FlagFetcher",
    "FlagMap",
    "FlagScope",
    "FlagServiceConfig",
    "FlagServiceError",
    "FlagServiceErrorCodes",
    "FlagValue",
    "HandlerResponse",
    "HttpFlagFetcher",
    "HttpTokenProvider",
    "InMemoryFlagFetcher",
    "LogSettings",
    "OverrideMap",
    "RequestValidationError",
    "ScopeKind",
    "ServerSettings",
    "TokenProvider",
    "UpstreamAuthError",
    "UpstreamFetchError",
    "compute_overrides",
    "configure_logging",
    "create_app",
]
