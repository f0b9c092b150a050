"""Pytest configuration and fixtures for the s3mover tests."""

import threading
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import pytest
from botocore.exceptions import ClientError

from s3mover.config import Settings
from s3mover.services.transporter import TEST_OBJECT_KEY, Transporter


@dataclass
class StoredObject:
    """An object recorded by FakeS3Client."""

    bucket: str
    key: str
    size: int
    content: bytes


class FakeS3Client:
    """In-memory stand-in for a boto3 S3 client's put_object."""

    def __init__(self) -> None:
        self.objects: dict[str, StoredObject] = {}
        self.probes: list[str] = []
        self.fail_names: set[str] = set()
        self.fail_all = False
        self.on_put: Callable[[str], None] | None = None
        self._lock = threading.Lock()

    def put_object(self, **kwargs: Any) -> dict[str, Any]:
        key: str = kwargs["Key"]
        if TEST_OBJECT_KEY in key:
            with self._lock:
                self.probes.append(key)
            if self.fail_all:
                raise _client_error("AccessDenied")
            return {}

        if self.on_put is not None:
            self.on_put(key)
        if self.fail_all or key.rsplit("/", 1)[-1].removesuffix(".gz") in self.fail_names:
            raise _client_error("InternalError")

        content = kwargs["Body"].read()
        with self._lock:
            self.objects[key] = StoredObject(
                bucket=kwargs["Bucket"],
                key=key,
                size=kwargs["ContentLength"],
                content=content,
            )
        return {}


def _client_error(code: str) -> ClientError:
    return ClientError({"Error": {"Code": code, "Message": code}}, "PutObject")


@pytest.fixture
def fake_s3() -> FakeS3Client:
    """Create an empty fake S3 client."""
    return FakeS3Client()


@pytest.fixture
def src_dir(tmp_path: Path) -> Path:
    """Create an empty source directory."""
    path = tmp_path / "src"
    path.mkdir()
    return path


@pytest.fixture
def make_settings(src_dir: Path) -> Callable[..., Settings]:
    """Return a factory for validated settings pointing at src_dir."""

    def factory(**overrides: Any) -> Settings:
        values: dict[str, Any] = {
            "src_dir": str(src_dir),
            "bucket": "testbucket",
            "prefix": "test/run",
            "max_parallels": 2,
            "stats_port": 0,
        }
        values.update(overrides)
        return Settings(**values).validate()

    return factory


@pytest.fixture
def make_transporter(
    make_settings: Callable[..., Settings], fake_s3: FakeS3Client
) -> Callable[..., Transporter]:
    """Return a factory for transporters backed by fake_s3."""

    def factory(**overrides: Any) -> Transporter:
        return Transporter(make_settings(**overrides), s3_client=fake_s3)  # type: ignore[arg-type]

    return factory


@pytest.fixture
def raw_file(tmp_path: Path) -> Path:
    """Create a 401-byte compressible text file."""
    path = tmp_path / "raw.txt"
    path.write_bytes(b"0123456789abcdef" * 25 + b"\n")
    return path
