"""Azure client adapter tests with the SDK mocked out.

Requires: azure-storage-blob. Skipped if it is not installed.
"""

from __future__ import annotations

from datetime import datetime, timezone
from types import SimpleNamespace
from typing import Any
from unittest.mock import MagicMock, patch

import pytest

pytest.importorskip("azure.storage.blob", reason="azure-storage-blob not installed")

from azure.core.exceptions import AzureError, ResourceNotFoundError  # noqa: E402
from azure.storage.blob import BlobPrefix  # noqa: E402

from blobvfs._config import MEGABYTES_TO_BYTES, BlobFileSystemConfig  # noqa: E402
from blobvfs._errors import CopyError, VfsError  # noqa: E402
from blobvfs._name import FileName  # noqa: E402
from blobvfs.clients._azure import (  # noqa: E402
    AZURE_ERRORS,
    AzureBlob,
    AzureBlobClientFactory,
    AzureClient,
    AzureContainer,
    _BlockBlobWriter,
)
from blobvfs.clients._base import BlobItem, BlobKind, Credentials  # noqa: E402
from blobvfs.providers._blob import BlobFileProvider  # noqa: E402
from tests.fakes import MemoryBlob, MemoryClientFactory  # noqa: E402

ROOT = FileName.parse("azsb://acct.blob.core.windows.net/")


def _properties(size: int, content_type: str | None = "text/plain", copy_status: str | None = None) -> Any:
    return SimpleNamespace(
        size=size,
        last_modified=datetime(2024, 1, 1, tzinfo=timezone.utc),
        content_settings=SimpleNamespace(content_type=content_type),
        etag='"0x8D"',
        copy=SimpleNamespace(status=copy_status),
    )


@pytest.fixture
def container() -> AzureContainer:
    service = MagicMock()
    client = AzureClient(service, "acct", BlobFileSystemConfig(upload_block_size_mb=1, parallel_upload_threads=3))
    return client.container_ref("data")


def _blob(container: AzureContainer, key: str) -> tuple[AzureBlob, MagicMock]:
    sdk_blob = MagicMock()
    sdk_blob.url = f"https://acct.blob.core.windows.net/data/{key}"
    with patch.object(container._container_client, "get_blob_client", return_value=sdk_blob):
        blob = container.blob_ref(key)
    return blob, sdk_blob


class TestAzureBlobClientFactory:
    def test_account_key(self) -> None:
        config = BlobFileSystemConfig(upload_block_size_mb=4, single_upload_threshold_mb=16, enable_remote_logging=True)
        with patch("blobvfs.clients._azure.BlobServiceClient") as service:
            client = AzureBlobClientFactory().with_credentials(ROOT, Credentials("acct", "key"), config)
        service.assert_called_once_with(
            account_url="https://acct.blob.core.windows.net",
            credential={"account_name": "acct", "account_key": "key"},
            max_block_size=4 * MEGABYTES_TO_BYTES,
            logging_enable=True,
            max_single_put_size=16 * MEGABYTES_TO_BYTES,
        )
        assert client.account_name == "acct"

    def test_sas_token(self) -> None:
        with patch("blobvfs.clients._azure.BlobServiceClient") as service:
            client = AzureBlobClientFactory().with_credentials(
                ROOT, Credentials(password="sv=2024&sig=abc"), BlobFileSystemConfig()
            )
        assert service.call_args.kwargs["credential"] == "sv=2024&sig=abc"
        assert "max_single_put_size" not in service.call_args.kwargs
        assert client.account_name == "acct"

    def test_anonymous(self) -> None:
        with patch("blobvfs.clients._azure.BlobServiceClient") as service:
            AzureBlobClientFactory().with_credentials(ROOT, Credentials(), BlobFileSystemConfig())
        assert service.call_args.kwargs["credential"] is None

    def test_endpoint_protocol_and_port(self) -> None:
        root = FileName.parse("azsb://127.0.0.1:10000/")
        with patch("blobvfs.clients._azure.BlobServiceClient") as service:
            AzureBlobClientFactory().with_credentials(
                root, Credentials("devstoreaccount1", "key"), BlobFileSystemConfig(endpoint_protocol="http")
            )
        assert service.call_args.kwargs["account_url"] == "http://127.0.0.1:10000"

    def test_missing_host(self) -> None:
        with pytest.raises(ValueError):
            AzureBlobClientFactory().with_credentials(FileName.parse("azsb:///c"), Credentials(), BlobFileSystemConfig())


class TestAzureClient:
    def test_container_ref_round_trips(self) -> None:
        service = MagicMock()
        AzureClient(service, "acct", BlobFileSystemConfig()).container_ref("data")
        service.get_container_client.assert_called_once_with("data")
        service.get_container_client.return_value.get_container_properties.assert_called_once_with()

    def test_container_ref_failure_propagates(self) -> None:
        service = MagicMock()
        service.get_container_client.return_value.get_container_properties.side_effect = ResourceNotFoundError("gone")
        with pytest.raises(ResourceNotFoundError):
            AzureClient(service, "acct", BlobFileSystemConfig()).container_ref("data")

    def test_close(self) -> None:
        service = MagicMock()
        AzureClient(service, "acct", BlobFileSystemConfig()).close()
        service.close.assert_called_once_with()

    def test_list_blobs(self, container: AzureContainer) -> None:
        prefix = MagicMock(spec=BlobPrefix)
        prefix.name = "dir1/sub/"
        walk = container._container_client.walk_blobs
        walk.return_value = iter([SimpleNamespace(name="dir1/fileA"), prefix])
        assert list(container.list_blobs("dir1/")) == [
            BlobItem("dir1/fileA", BlobKind.BLOB),
            BlobItem("dir1/sub", BlobKind.PREFIX),
        ]
        walk.assert_called_once_with(name_starts_with="dir1/", delimiter="/")

    def test_list_blobs_at_root(self, container: AzureContainer) -> None:
        walk = container._container_client.walk_blobs
        walk.return_value = iter([])
        assert list(container.list_blobs("")) == []
        walk.assert_called_once_with(name_starts_with=None, delimiter="/")

    def test_list_blobs_skips_folder_marker(self, container: AzureContainer) -> None:
        walk = container._container_client.walk_blobs
        walk.return_value = iter([SimpleNamespace(name="dir1/"), SimpleNamespace(name="dir1/f")])
        assert list(container.list_blobs("dir1/")) == [BlobItem("dir1/f", BlobKind.BLOB)]


class TestAzureBlob:
    def test_exists(self, container: AzureContainer) -> None:
        blob, sdk = _blob(container, "a")
        sdk.exists.return_value = False
        assert blob.exists() is False

    def test_delete_missing_is_ignored(self, container: AzureContainer) -> None:
        blob, sdk = _blob(container, "a")
        sdk.delete_blob.side_effect = ResourceNotFoundError("missing")
        blob.delete_if_exists()
        sdk.delete_blob.assert_called_once_with(delete_snapshots="include")

    def test_get_properties(self, container: AzureContainer) -> None:
        blob, sdk = _blob(container, "a")
        sdk.get_blob_properties.return_value = _properties(42, "video/mp4")
        props = blob.get_properties()
        assert props.size == 42
        assert props.content_type == "video/mp4"
        assert props.etag == '"0x8D"'
        assert blob.properties is props

    def test_set_properties(self, container: AzureContainer) -> None:
        blob, sdk = _blob(container, "a")
        blob.properties.content_type = "text/csv"
        blob.set_properties()
        assert sdk.set_http_headers.call_args.kwargs["content_settings"].content_type == "text/csv"

    def test_open_read_is_ranged_and_seekable(self, container: AzureContainer) -> None:
        blob, sdk = _blob(container, "a")
        data = b"0123456789"
        sdk.get_blob_properties.return_value = _properties(len(data))

        def download(offset: int, length: int) -> Any:
            return SimpleNamespace(readall=lambda: data[offset : offset + length])

        sdk.download_blob.side_effect = download
        with blob.open_read() as stream:
            assert stream.seekable()
            stream.seek(6)
            assert stream.read() == b"6789"
            stream.seek(0)
            assert stream.read(3) == b"012"

    def test_full_read_is_one_request(self, container: AzureContainer) -> None:
        blob, sdk = _blob(container, "big")
        data = bytes(range(256)) * 4096
        sdk.get_blob_properties.return_value = _properties(len(data))

        def download(offset: int, length: int) -> Any:
            return SimpleNamespace(readall=lambda: data[offset : offset + length])

        sdk.download_blob.side_effect = download
        with blob.open_read() as stream:
            assert stream.read() == data
        sdk.download_blob.assert_called_once_with(offset=0, length=len(data))

    def test_upload(self, container: AzureContainer) -> None:
        blob, sdk = _blob(container, "a")
        blob.properties.content_type = "text/plain"
        stream = MagicMock()
        blob.upload(stream, 5)
        kwargs = sdk.upload_blob.call_args.kwargs
        assert sdk.upload_blob.call_args.args == (stream,)
        assert kwargs["length"] == 5
        assert kwargs["overwrite"] is True
        assert kwargs["max_concurrency"] == 3
        assert kwargs["content_settings"].content_type == "text/plain"

    def test_server_side_copy_polls(self, container: AzureContainer) -> None:
        source, _ = _blob(container, "src")
        target, sdk = _blob(container, "dst")
        sdk.get_blob_properties.side_effect = [
            _properties(1, copy_status="pending"),
            _properties(1, copy_status="success"),
        ]
        with patch("blobvfs.clients._azure.time.sleep") as sleep:
            target.start_copy_from(source)
        sdk.start_copy_from_url.assert_called_once_with(source.url)
        sleep.assert_called_once()

    def test_server_side_copy_failure(self, container: AzureContainer) -> None:
        source, _ = _blob(container, "src")
        target, sdk = _blob(container, "dst")
        sdk.get_blob_properties.return_value = _properties(1, copy_status="failed")
        with pytest.raises(VfsError, match="failed"):
            target.start_copy_from(source)

    def test_server_side_copy_needs_azure_source(self, container: AzureContainer) -> None:
        target, _ = _blob(container, "dst")
        with pytest.raises(TypeError):
            target.start_copy_from(MagicMock())


class TestBlockBlobWriter:
    def test_stages_blocks_and_commits(self) -> None:
        sdk = MagicMock()
        settings = MagicMock()
        writer = _BlockBlobWriter(sdk, block_size=4, max_workers=2, content_settings=settings)
        with writer:
            writer.write(b"0123456")
            writer.write(b"789")
        # Blocks stage on worker threads; the commit list carries the write order.
        staged = dict(c.args for c in sdk.stage_block.call_args_list)
        assert len(staged) == 3
        blocks = sdk.commit_block_list.call_args.args[0]
        assert [staged[b.id] for b in blocks] == [b"0123", b"4567", b"89"]
        assert sdk.commit_block_list.call_args.kwargs["content_settings"] is settings

    def test_exception_discards_staged_blocks(self) -> None:
        sdk = MagicMock()
        writer = _BlockBlobWriter(sdk, block_size=4, max_workers=2, content_settings=None)
        with pytest.raises(OSError):
            with writer:
                writer.write(b"partial data")
                raise OSError("source failed")
        sdk.commit_block_list.assert_not_called()
        assert writer.closed

    def test_failed_upload_through_blob_is_not_committed(self, container: AzureContainer) -> None:
        blob, sdk = _blob(container, "a")
        with pytest.raises(OSError):
            with blob.open_write() as out:
                out.write(b"partial")
                raise OSError("source failed")
        sdk.commit_block_list.assert_not_called()

    def test_empty_commit(self) -> None:
        sdk = MagicMock()
        _BlockBlobWriter(sdk, block_size=4, max_workers=1, content_settings=None).close()
        sdk.stage_block.assert_not_called()
        assert sdk.commit_block_list.call_args.args[0] == []

    def test_write_after_close(self) -> None:
        writer = _BlockBlobWriter(MagicMock(), block_size=4, max_workers=1, content_settings=None)
        writer.close()
        with pytest.raises(ValueError):
            writer.write(b"x")


class TestAzureErrorsInCopy:
    def test_sdk_errors_become_copy_errors(self) -> None:
        factory = MemoryClientFactory()
        factory.store("account").put("data", "a/1", b"one")
        factory.store("account").containers["other"] = {}
        provider = BlobFileProvider(factory, copy_errors=AZURE_ERRORS)

        def failing_upload(self: MemoryBlob, stream: Any, length: int | None = None) -> None:
            raise AzureError("throttled")

        source = provider.find_file(FileName.parse("mem://account/data/a"))
        destination = provider.find_file(FileName.parse("mem://account/other/b"))
        with patch.object(MemoryBlob, "upload", failing_upload):
            with pytest.raises(CopyError) as exc_info:
                destination.copy_from(source)
        assert isinstance(exc_info.value.__cause__, AzureError)
        provider.close()
