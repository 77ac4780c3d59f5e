"""In-memory stand-ins for an aioboto3 session and its S3 client."""

from __future__ import annotations

import asyncio
from typing import Any

import pytest
from botocore.exceptions import ClientError

HEADER_PARAMS = ("CacheControl", "ContentType")


def client_error(code: str, operation: str, status: int = 404) -> ClientError:
    return ClientError(
        {
            "Error": {"Code": code, "Message": f"{code} raised by fake"},
            "ResponseMetadata": {"HTTPStatusCode": status},
        },
        operation,
    )


class FakeBody:
    def __init__(self, data: bytes) -> None:
        self._data = data
        self.released = False

    async def __aenter__(self) -> "FakeBody":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        self.released = True

    async def read(self) -> bytes:
        return self._data


class FakeS3Client:
    """Keeps buckets in dicts and records every call as (operation, params)."""

    def __init__(self, buckets: tuple[str, ...] = ()) -> None:
        self.buckets: dict[str, dict[str, dict[str, Any]]] = {name: {} for name in buckets}
        self.calls: list[tuple[str, dict[str, Any]]] = []
        self.bodies: list[FakeBody] = []
        # raised by every call when set, e.g. a transport failure
        self.error: Exception | None = None

    def _record(self, operation: str, params: dict[str, Any]) -> None:
        self.calls.append((operation, params))
        if self.error is not None:
            raise self.error

    def _bucket(self, name: str, operation: str) -> dict[str, dict[str, Any]]:
        if name not in self.buckets:
            raise client_error("NoSuchBucket", operation)
        return self.buckets[name]

    async def create_bucket(self, **params: Any) -> dict[str, Any]:
        self._record("CreateBucket", params)
        if params["Bucket"] in self.buckets:
            raise client_error("BucketAlreadyOwnedByYou", "CreateBucket", 409)
        self.buckets[params["Bucket"]] = {}
        return {"Location": f"/{params['Bucket']}"}

    async def delete_bucket(self, **params: Any) -> dict[str, Any]:
        self._record("DeleteBucket", params)
        if self._bucket(params["Bucket"], "DeleteBucket"):
            raise client_error("BucketNotEmpty", "DeleteBucket", 409)
        del self.buckets[params["Bucket"]]
        return {}

    async def put_object(self, **params: Any) -> dict[str, Any]:
        self._record("PutObject", params)
        bucket = self._bucket(params["Bucket"], "PutObject")
        # let concurrent callers interleave
        await asyncio.sleep(0)
        bucket[params["Key"]] = {
            "Body": bytes(params["Body"]),
            **{name: params[name] for name in HEADER_PARAMS if name in params},
        }
        return {"ETag": '"fake"'}

    async def get_object(self, **params: Any) -> dict[str, Any]:
        self._record("GetObject", params)
        stored = self._bucket(params["Bucket"], "GetObject").get(params["Key"])
        if stored is None:
            raise client_error("NoSuchKey", "GetObject")
        body = FakeBody(stored["Body"])
        self.bodies.append(body)
        return {**stored, "Body": body, "ContentLength": len(stored["Body"])}

    async def head_object(self, **params: Any) -> dict[str, Any]:
        self._record("HeadObject", params)
        stored = self._bucket(params["Bucket"], "HeadObject").get(params["Key"])
        if stored is None:
            raise client_error("404", "HeadObject")
        return {key: value for key, value in stored.items() if key != "Body"}

    async def delete_object(self, **params: Any) -> dict[str, Any]:
        self._record("DeleteObject", params)
        self._bucket(params["Bucket"], "DeleteObject").pop(params["Key"], None)
        return {}


class FakeClientContext:
    def __init__(self, session: "FakeSession") -> None:
        self._session = session

    async def __aenter__(self) -> FakeS3Client:
        if self._session.client_error is not None:
            raise self._session.client_error
        self._session.open_clients += 1
        return self._session.s3

    async def __aexit__(self, exc_type, exc, tb) -> None:
        self._session.open_clients -= 1


class FakeSession:
    def __init__(self, buckets: tuple[str, ...] = ("my-bucket",)) -> None:
        self.s3 = FakeS3Client(buckets)
        self.session_kwargs: dict[str, Any] = {}
        self.client_calls: list[tuple[str, dict[str, Any]]] = []
        self.client_error: Exception | None = None
        self.open_clients = 0

    def __call__(self, **kwargs: Any) -> "FakeSession":
        # stands in for the aioboto3.Session constructor
        self.session_kwargs = kwargs
        return self

    def client(self, service_name: str, **kwargs: Any) -> FakeClientContext:
        self.client_calls.append((service_name, kwargs))
        return FakeClientContext(self)


@pytest.fixture
def fake_session() -> FakeSession:
    return FakeSession()


@pytest.fixture
def patched_session(monkeypatch: pytest.MonkeyPatch, fake_session: FakeSession) -> FakeSession:
    """Route every aioboto3.Session() built by the manager to ``fake_session``."""
    monkeypatch.setattr("r2manager.storage.manager.aioboto3.Session", fake_session)
    return fake_session
