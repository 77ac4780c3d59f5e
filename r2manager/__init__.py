"""Async client for Cloudflare R2, OVH Object Storage and other S3-compatible services."""

from r2manager.exceptions import ConfigurationError, R2ManagerError
from r2manager.storage import (
    DeriveFromBucket,
    EndpointSpec,
    ExplicitUrl,
    R2Manager,
    is_not_found,
    resolve_endpoint,
)

__version__ = "0.1.0"

__all__ = [
    "ConfigurationError",
    "DeriveFromBucket",
    "EndpointSpec",
    "ExplicitUrl",
    "R2Manager",
    "R2ManagerError",
    "is_not_found",
    "resolve_endpoint",
]
