"""Async manager for a single S3-compatible bucket (Cloudflare R2, OVH, AWS S3)."""

from __future__ import annotations

from contextlib import AsyncExitStack, asynccontextmanager
from typing import TYPE_CHECKING, Any, AsyncIterator

import aioboto3
from botocore.exceptions import BotoCoreError, ClientError
from loguru import logger

from r2manager.exceptions import ConfigurationError
from r2manager.storage.endpoint import DEFAULT_REGION, EndpointSpec, resolve_endpoint

if TYPE_CHECKING:
    from r2manager.settings import StorageSettings


class R2Manager:
    """Bucket and object operations over one shared S3 client.

    Build instances with :meth:`create` (or :meth:`open` / :meth:`from_settings`).
    The manager is read-only after construction, so any number of tasks can
    await its operations concurrently. Errors from the service or transport
    are logged and re-raised unchanged.

    Usage:
        async with R2Manager.open(
            "my-bucket",
            ExplicitUrl("https://<account>.r2.cloudflarestorage.com"),
            "<access key id>",
            "<secret access key>",
        ) as manager:
            await manager.upload("test", b"Hello world", "max-age=60", "text/plain")
            data = await manager.get("test")
    """

    def __init__(
        self,
        bucket_name: str,
        client: Any,
        *,
        region: str = DEFAULT_REGION,
        endpoint_url: str | None = None,
        exit_stack: AsyncExitStack | None = None,
    ) -> None:
        self._bucket_name = bucket_name
        self._client = client
        self._region = region
        self._endpoint_url = endpoint_url
        self._exit_stack = exit_stack

    @classmethod
    async def create(
        cls,
        bucket_name: str,
        endpoint: EndpointSpec,
        access_key: str,
        secret_key: str,
        region: str | None = None,
        *,
        session: Any | None = None,
    ) -> "R2Manager":
        """Resolve the endpoint and open the S3 client.

        No request is sent; credentials are only checked by the first
        operation.

        Args:
            bucket_name: Bucket that object operations target.
            endpoint: ``ExplicitUrl(...)`` or ``DeriveFromBucket()``.
            access_key: Access key id.
            secret_key: Secret access key.
            region: Region name, ``us-east-1`` when unset.
            session: Optional pre-built ``aioboto3.Session``.

        Raises:
            ConfigurationError: If the bucket name or endpoint is unusable.
        """
        if not bucket_name:
            raise ConfigurationError("Bucket name must not be empty")

        resolved = resolve_endpoint(endpoint, region)

        if session is None:
            session = aioboto3.Session(
                aws_access_key_id=access_key,
                aws_secret_access_key=secret_key,
                region_name=resolved.region,
            )

        client_kwargs: dict[str, Any] = {"region_name": resolved.region}
        if resolved.endpoint_url is not None:
            client_kwargs["endpoint_url"] = resolved.endpoint_url

        exit_stack = AsyncExitStack()
        try:
            client = await exit_stack.enter_async_context(session.client("s3", **client_kwargs))
        except ValueError as exc:
            await exit_stack.aclose()
            raise ConfigurationError(
                f"Could not create S3 client: {exc}",
                {"endpoint_url": resolved.endpoint_url or "", "region": resolved.region},
            ) from exc

        logger.info(
            f"Opened storage client for {bucket_name} "
            f"(endpoint={resolved.endpoint_url or 'default'}, region={resolved.region})"
        )
        return cls(
            bucket_name,
            client,
            region=resolved.region,
            endpoint_url=resolved.endpoint_url,
            exit_stack=exit_stack,
        )

    @classmethod
    @asynccontextmanager
    async def open(
        cls,
        bucket_name: str,
        endpoint: EndpointSpec,
        access_key: str,
        secret_key: str,
        region: str | None = None,
        *,
        session: Any | None = None,
    ) -> AsyncIterator["R2Manager"]:
        manager = await cls.create(
            bucket_name, endpoint, access_key, secret_key, region, session=session
        )
        try:
            yield manager
        finally:
            await manager.close()

    @classmethod
    async def from_settings(cls, settings: "StorageSettings", *, session: Any | None = None) -> "R2Manager":
        """Build a manager from the ``storage`` section of the configuration."""
        return await cls.create(
            settings.bucket,
            settings.endpoint,
            settings.access_key,
            settings.secret_key,
            settings.region,
            session=session,
        )

    async def close(self) -> None:
        """Release the client's connection pool. Safe to call more than once."""
        if self._exit_stack is not None:
            exit_stack, self._exit_stack = self._exit_stack, None
            await exit_stack.aclose()
            logger.debug(f"Closed storage client for {self._bucket_name}")

    async def __aenter__(self) -> "R2Manager":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    def __repr__(self) -> str:
        return (
            f"R2Manager(bucket_name={self._bucket_name!r}, "
            f"endpoint_url={self._endpoint_url!r}, region={self._region!r})"
        )

    @property
    def bucket_name(self) -> str:
        return self._bucket_name

    @property
    def region(self) -> str:
        return self._region

    @property
    def endpoint_url(self) -> str | None:
        return self._endpoint_url

    async def create_bucket(self, name: str | None = None) -> None:
        """Create ``name`` (default: the manager's bucket)."""
        bucket = name if name is not None else self._bucket_name
        params: dict[str, Any] = {"Bucket": bucket}
        # AWS rejects an explicit us-east-1 location constraint
        if self._endpoint_url is None and self._region != DEFAULT_REGION:
            params["CreateBucketConfiguration"] = {"LocationConstraint": self._region}

        try:
            response = await self._client.create_bucket(**params)
        except (ClientError, BotoCoreError) as exc:
            logger.error(f"Creation of {bucket} failed: {exc}")
            raise
        logger.debug(f"create_bucket response: {response}")
        logger.info(f"Created successfully {bucket}")

    async def delete_bucket(self, name: str | None = None) -> None:
        """Delete ``name`` (default: the manager's bucket).

        Most services refuse to delete a bucket that still holds objects.
        """
        bucket = name if name is not None else self._bucket_name
        try:
            response = await self._client.delete_bucket(Bucket=bucket)
        except (ClientError, BotoCoreError) as exc:
            logger.error(f"Deletion of {bucket} failed: {exc}")
            raise
        logger.debug(f"delete_bucket response: {response}")
        logger.info(f"Deleted successfully {bucket}")

    async def upload(
        self,
        key: str,
        body: bytes,
        cache_control: str | None = None,
        content_type: str | None = None,
    ) -> None:
        """Upload ``body`` under ``key`` in a single request.

        Args:
            key: Object key.
            body: Object content.
            cache_control: Cache-Control header value, e.g. ``max-age=60``.
            content_type: Content-Type header value, e.g. ``text/plain``.
        """
        params: dict[str, Any] = {"Bucket": self._bucket_name, "Key": key, "Body": body}
        if cache_control is not None:
            params["CacheControl"] = cache_control
        if content_type is not None:
            params["ContentType"] = content_type

        logger.debug(
            f"put_object {self._bucket_name}/{key} ({len(body)} bytes, "
            f"cache_control={cache_control}, content_type={content_type})"
        )
        try:
            response = await self._client.put_object(**params)
        except (ClientError, BotoCoreError) as exc:
            logger.error(f"Upload of {key} to {self._bucket_name} failed: {exc}")
            raise
        logger.debug(f"put_object response: {response}")
        logger.info(f"Uploaded successfully {key} to {self._bucket_name}")

    async def get(self, key: str) -> bytes:
        """Download the whole object stored under ``key``.

        Raises:
            botocore.exceptions.ClientError: ``NoSuchKey`` when the key does
                not exist, other codes for permission or server failures.
        """
        try:
            response = await self._client.get_object(Bucket=self._bucket_name, Key=key)
            async with response["Body"] as stream:
                data = await stream.read()
        except (ClientError, BotoCoreError) as exc:
            logger.error(f"Unable to get {key} from {self._bucket_name}: {exc}")
            raise
        logger.debug(f"get_object {self._bucket_name}/{key}: {len(data)} bytes")
        logger.info(f"Got successfully {key} from {self._bucket_name}")
        return data

    async def delete(self, key: str) -> None:
        """Delete ``key``. Missing keys are not an error on S3."""
        try:
            response = await self._client.delete_object(Bucket=self._bucket_name, Key=key)
        except (ClientError, BotoCoreError) as exc:
            logger.error(f"Deletion of {key} from {self._bucket_name} failed: {exc}")
            raise
        logger.debug(f"delete_object response: {response}")
        logger.info(f"Deleted successfully {key} from {self._bucket_name}")


__all__ = ["R2Manager"]
