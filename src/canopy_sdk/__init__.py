"""Python SDK for building Canopy vault and staking transactions on Movement."""

from .client import CanopyClient
from .domain import EntryFunctionPayload
from .errors import CanopyError, ErrorCode
from .settings import CanopySettings

__all__ = [
    "CanopyClient",
    "CanopyError",
    "CanopySettings",
    "EntryFunctionPayload",
    "ErrorCode",
]
