"""Endpoint selection for S3-compatible storage.

An endpoint is either an explicit base URL (Cloudflare R2, OVH, MinIO, ...)
or left to the SDK, which derives the regional AWS endpoint from the bucket
and region.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Union

from r2manager.exceptions import ConfigurationError

# R2 aliases this to "auto": https://developers.cloudflare.com/r2/api/s3/api/
DEFAULT_REGION = "us-east-1"


@dataclass(frozen=True)
class ExplicitUrl:
    """Full base URI such as ``https://<account>.r2.cloudflarestorage.com``."""

    url: str


@dataclass(frozen=True)
class DeriveFromBucket:
    """Let the SDK build the virtual-hosted or path-style AWS endpoint."""


EndpointSpec = Union[ExplicitUrl, DeriveFromBucket]


@dataclass(frozen=True)
class ResolvedEndpoint:
    endpoint_url: str | None  # None: no override, SDK default
    region: str


def resolve_endpoint(endpoint: EndpointSpec, region: str | None = None) -> ResolvedEndpoint:
    """Turn an endpoint spec and optional region into client configuration.

    Args:
        endpoint: Explicit URL or derive-from-bucket marker.
        region: Region name. Unset or empty falls back to ``us-east-1``.

    Returns:
        ResolvedEndpoint with the base URL override (or None) and region.

    Raises:
        ConfigurationError: If an explicit URL is empty.
        TypeError: If ``endpoint`` is not an EndpointSpec variant.
    """
    effective_region = region or DEFAULT_REGION

    if isinstance(endpoint, ExplicitUrl):
        if not endpoint.url:
            raise ConfigurationError("Explicit endpoint URL must not be empty")
        return ResolvedEndpoint(endpoint_url=endpoint.url, region=effective_region)
    if isinstance(endpoint, DeriveFromBucket):
        return ResolvedEndpoint(endpoint_url=None, region=effective_region)
    raise TypeError(f"Unsupported endpoint spec: {endpoint!r}")


__all__ = [
    "DEFAULT_REGION",
    "ExplicitUrl",
    "DeriveFromBucket",
    "EndpointSpec",
    "ResolvedEndpoint",
    "resolve_endpoint",
]
