"""Storage abstraction over S3-compatible object storage."""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from botocore.exceptions import ClientError

from r2manager.storage.endpoint import (
    DEFAULT_REGION,
    DeriveFromBucket,
    EndpointSpec,
    ExplicitUrl,
    ResolvedEndpoint,
    resolve_endpoint,
)
from r2manager.storage.manager import R2Manager

NOT_FOUND_CODES = frozenset({"NoSuchKey", "NoSuchBucket", "NotFound", "404"})


@runtime_checkable
class ObjectStorage(Protocol):
    async def create_bucket(self, name: str | None = None) -> None:
        ...

    async def delete_bucket(self, name: str | None = None) -> None:
        ...

    async def upload(
        self,
        key: str,
        body: bytes,
        cache_control: str | None = None,
        content_type: str | None = None,
    ) -> None:
        ...

    async def get(self, key: str) -> bytes:
        ...

    async def delete(self, key: str) -> None:
        ...


def is_not_found(exc: BaseException) -> bool:
    """Return True if ``exc`` is the service reporting a missing key or bucket."""
    if not isinstance(exc, ClientError):
        return False
    code = str(exc.response.get("Error", {}).get("Code", ""))
    return code in NOT_FOUND_CODES


__all__ = [
    "DEFAULT_REGION",
    "DeriveFromBucket",
    "EndpointSpec",
    "ExplicitUrl",
    "NOT_FOUND_CODES",
    "ObjectStorage",
    "R2Manager",
    "ResolvedEndpoint",
    "is_not_found",
    "resolve_endpoint",
]
