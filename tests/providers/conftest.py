"""Provider test fixtures: an in-process S3 endpoint."""

from __future__ import annotations

import socket
import uuid
from typing import TYPE_CHECKING

import pytest

from blobvfs._auth import StaticUserAuthenticator
from blobvfs._config import BlobFileSystemConfig, FileSystemOptions

if TYPE_CHECKING:
    from collections.abc import Callable, Iterator

    from blobvfs._manager import FileSystemManager
    from blobvfs._object import FileObject

REGION = "us-east-1"


def _s3_available() -> bool:
    try:
        import boto3  # noqa: F401
        import moto  # noqa: F401
        import s3fs  # noqa: F401

        return True
    except ImportError:
        return False


def _free_port() -> int:
    with socket.socket() as s:
        s.bind(("", 0))
        return s.getsockname()[1]


@pytest.fixture(scope="session")
def moto_server() -> Iterator[str | None]:
    """Start a moto HTTP server for the test session.

    Uses server mode instead of mock_aws() because s3fs talks to the
    endpoint through aiobotocore.
    """
    if not _s3_available():
        yield None
        return
    from moto.moto_server.threaded_moto_server import ThreadedMotoServer

    port = _free_port()
    server = ThreadedMotoServer(ip_address="127.0.0.1", port=port, verbose=False)
    server.start()
    yield f"127.0.0.1:{port}"
    server.stop()


@pytest.fixture
def s3_boto(moto_server: str | None) -> object:
    """A boto3 client against the moto endpoint, for seeding and inspecting buckets."""
    if moto_server is None:
        pytest.skip("moto/s3fs not installed")
    import boto3

    return boto3.client(
        "s3",
        endpoint_url=f"http://{moto_server}",
        aws_access_key_id="testing",
        aws_secret_access_key="testing",
        region_name=REGION,
    )


@pytest.fixture
def make_bucket(s3_boto: object) -> Callable[[], str]:
    def _make() -> str:
        bucket = f"test-{uuid.uuid4().hex[:8]}"
        s3_boto.create_bucket(Bucket=bucket)  # type: ignore[attr-defined]
        return bucket

    return _make


def make_s3_options(upload_block_size_mb: int = 3) -> FileSystemOptions:
    return FileSystemOptions(
        authenticator=StaticUserAuthenticator("testing", "testing"),
        config=BlobFileSystemConfig(
            upload_block_size_mb=upload_block_size_mb,
            endpoint_protocol="http",
            region_name=REGION,
        ),
    )


@pytest.fixture
def s3_options() -> FileSystemOptions:
    return make_s3_options()


@pytest.fixture
def resolve_s3(
    moto_server: str | None, manager: FileSystemManager, s3_options: FileSystemOptions
) -> Callable[..., FileObject]:
    """Resolve ``s3://<moto endpoint>/<path>`` handles through the manager."""

    def _resolve(path: str, options: FileSystemOptions | None = None) -> FileObject:
        return manager.resolve_file(f"s3://{moto_server}/{path.lstrip('/')}", options or s3_options)

    return _resolve
