"""Tests for BlobFileSystemConfig and FileSystemOptions."""

from __future__ import annotations

import dataclasses

import pytest

from blobvfs._auth import StaticUserAuthenticator
from blobvfs._config import MEGABYTES_TO_BYTES, BlobFileSystemConfig, FileSystemOptions


class TestBlobFileSystemConfig:
    def test_defaults(self) -> None:
        config = BlobFileSystemConfig()
        assert config.upload_block_size_mb == 3
        assert config.parallel_upload_threads == 2
        assert config.single_upload_threshold_mb is None
        assert config.enable_remote_logging is False
        assert config.endpoint_protocol == "https"

    def test_byte_conversions(self) -> None:
        config = BlobFileSystemConfig(upload_block_size_mb=4, single_upload_threshold_mb=8)
        assert config.upload_block_size == 4 * MEGABYTES_TO_BYTES
        assert config.single_upload_threshold == 8 * MEGABYTES_TO_BYTES
        assert BlobFileSystemConfig().single_upload_threshold is None

    def test_frozen(self) -> None:
        config = BlobFileSystemConfig()
        with pytest.raises(dataclasses.FrozenInstanceError):
            config.upload_block_size_mb = 10  # type: ignore[misc]

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"upload_block_size_mb": 0},
            {"single_upload_threshold_mb": -1},
            {"parallel_upload_threads": 0},
            {"endpoint_protocol": "ftp"},
        ],
    )
    def test_invalid_values_rejected(self, kwargs: dict[str, object]) -> None:
        with pytest.raises(ValueError):
            BlobFileSystemConfig(**kwargs)  # type: ignore[arg-type]

    def test_from_dict(self) -> None:
        config = BlobFileSystemConfig.from_dict({"upload_block_size_mb": 8, "enable_remote_logging": True})
        assert config.upload_block_size_mb == 8
        assert config.enable_remote_logging is True

    def test_from_dict_unknown_keys(self) -> None:
        with pytest.raises(TypeError, match="Unknown config keys"):
            BlobFileSystemConfig.from_dict({"block_size": 8})

    def test_from_env(self) -> None:
        config = BlobFileSystemConfig.from_env(
            {
                "BLOBVFS_UPLOAD_BLOCK_SIZE_MB": "6",
                "BLOBVFS_PARALLEL_UPLOAD_THREADS": "4",
                "BLOBVFS_SINGLE_UPLOAD_THRESHOLD_MB": "32",
                "BLOBVFS_ENABLE_REMOTE_LOGGING": "yes",
                "BLOBVFS_ENDPOINT_PROTOCOL": "HTTP",
                "BLOBVFS_REGION_NAME": "eu-west-1",
            }
        )
        assert config == BlobFileSystemConfig(
            upload_block_size_mb=6,
            single_upload_threshold_mb=32,
            parallel_upload_threads=4,
            enable_remote_logging=True,
            endpoint_protocol="http",
            region_name="eu-west-1",
        )

    def test_from_env_empty(self) -> None:
        assert BlobFileSystemConfig.from_env({}) == BlobFileSystemConfig()

    def test_from_env_unparseable_numbers_fall_back(self) -> None:
        config = BlobFileSystemConfig.from_env(
            {"BLOBVFS_UPLOAD_BLOCK_SIZE_MB": "lots", "BLOBVFS_PARALLEL_UPLOAD_THREADS": "-3"}
        )
        assert config.upload_block_size_mb == 3
        assert config.parallel_upload_threads == 2

    def test_from_env_reads_process_environment(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("BLOBVFS_UPLOAD_BLOCK_SIZE_MB", "9")
        assert BlobFileSystemConfig.from_env().upload_block_size_mb == 9


class TestFileSystemOptions:
    def test_defaults(self) -> None:
        options = FileSystemOptions()
        assert options.authenticator is None
        assert options.config == BlobFileSystemConfig()

    def test_equal_options_hash_alike(self) -> None:
        auth = StaticUserAuthenticator("u", "p")
        a = FileSystemOptions(authenticator=auth, config=BlobFileSystemConfig(upload_block_size_mb=5))
        b = FileSystemOptions(authenticator=auth, config=BlobFileSystemConfig(upload_block_size_mb=5))
        assert a == b
        assert hash(a) == hash(b)

    def test_different_config_differs(self) -> None:
        assert FileSystemOptions() != FileSystemOptions(config=BlobFileSystemConfig(parallel_upload_threads=8))
