"""
Tests for the blob store backends.

The local store runs for real; Azure and S3 run against mocked SDK
clients.
"""

from __future__ import annotations

import io
from pathlib import Path
from unittest.mock import MagicMock

import boto3
import pytest
from azure.core.exceptions import (
    ResourceExistsError,
    ResourceNotFoundError,
    ServiceRequestError,
)
from botocore.exceptions import ClientError, EndpointConnectionError
from botocore.stub import Stubber

from conftest import SAVE_BLOB
from savesync.errors import ConfigurationInvalid, RemoteUnavailable
from savesync.models import RemoteBackendType, RemoteSettings, SyncAction
from savesync.stores import create_store
from savesync.stores.azure import AzureBlobStore
from savesync.stores.base import staged_replace
from savesync.stores.local import LocalBlobStore
from savesync.stores.s3 import S3BlobStore


def _client_error(code: str, op: str = "HeadObject") -> ClientError:
    return ClientError({"Error": {"Code": code, "Message": code}}, op)


class TestStagedReplace:
    """Tests for the .part staging helper."""

    def test_replaces_on_success(self, tmp_path: Path):
        target = tmp_path / "save.sav"
        target.write_bytes(b"old")
        with staged_replace(target) as part:
            part.write_bytes(b"new")
        assert target.read_bytes() == b"new"
        assert not part.exists()

    def test_keeps_original_on_failure(self, tmp_path: Path):
        target = tmp_path / "save.sav"
        target.write_bytes(b"old")
        with pytest.raises(RuntimeError):
            with staged_replace(target) as part:
                part.write_bytes(b"half")
                raise RuntimeError("connection dropped")
        assert target.read_bytes() == b"old"
        assert not part.exists()


class TestLocalBlobStore:
    """Tests for the directory backend."""

    def test_round_trip(self, tmp_path: Path):
        store = LocalBlobStore(tmp_path / "remote", "saves")
        store.ensure_container()
        src = tmp_path / "in.sav"
        src.write_bytes(b"payload")

        store.upload_file("cloud.sav", src)
        store.upload_text("cloud.md5", "abc")
        dest = tmp_path / "out.sav"
        store.download_to_file("cloud.sav", dest)

        assert dest.read_bytes() == b"payload"
        assert store.read_text("cloud.md5") == "abc"
        assert store.exists("cloud.sav")
        assert (tmp_path / "remote" / "saves" / "cloud.sav").is_file()

    def test_missing_blob(self, tmp_path: Path):
        store = LocalBlobStore(tmp_path, "saves")
        store.ensure_container()
        assert store.read_text("nope") is None
        assert store.exists("nope") is False
        with pytest.raises(RemoteUnavailable):
            store.download_to_file("nope", tmp_path / "out.sav")

    def test_unreachable_root(self, tmp_path: Path):
        blocker = tmp_path / "file"
        blocker.write_text("x")
        store = LocalBlobStore(blocker, "saves")
        with pytest.raises(RemoteUnavailable):
            store.ensure_container()
        with pytest.raises(RemoteUnavailable):
            store.upload_text("cloud.md5", "abc")


class TestAzureBlobStore:
    """Tests for the Azure backend against a mocked service client."""

    def _store(self):
        service = MagicMock()
        container = service.get_container_client.return_value
        blob = container.get_blob_client.return_value
        return AzureBlobStore("unused", "saves", service_client=service), container, blob

    def test_ensure_container_tolerates_existing(self):
        store, container, _ = self._store()
        container.create_container.side_effect = ResourceExistsError("exists")
        store.ensure_container()
        container.create_container.assert_called_once()

    def test_read_text(self):
        store, container, blob = self._store()
        blob.download_blob.return_value.readall.return_value = "abc"
        assert store.read_text("cloud.md5") == "abc"
        container.get_blob_client.assert_called_with("cloud.md5")
        blob.download_blob.assert_called_with(encoding="utf-8")

    def test_read_text_missing(self):
        store, _, blob = self._store()
        blob.download_blob.side_effect = ResourceNotFoundError("gone")
        assert store.read_text("cloud.md5") is None

    def test_network_failure_maps_to_remote_unavailable(self):
        store, _, blob = self._store()
        blob.upload_blob.side_effect = ServiceRequestError("no route")
        with pytest.raises(RemoteUnavailable) as exc_info:
            store.upload_text("cloud.md5", "abc")
        assert exc_info.value.blob_name == "cloud.md5"

    def test_upload_overwrites(self, tmp_path: Path):
        store, _, blob = self._store()
        src = tmp_path / "in.sav"
        src.write_bytes(b"payload")
        store.upload_file("cloud.sav", src)
        assert blob.upload_blob.call_args.kwargs["overwrite"] is True

    def test_download_writes_through_part(self, tmp_path: Path):
        store, _, blob = self._store()
        blob.download_blob.return_value.readinto.side_effect = lambda f: f.write(b"remote")
        dest = tmp_path / "save.sav"
        dest.write_bytes(b"local")

        store.download_to_file("cloud.sav", dest)

        assert dest.read_bytes() == b"remote"
        assert not (tmp_path / "save.sav.part").exists()

    def test_failed_download_keeps_local(self, tmp_path: Path):
        store, _, blob = self._store()
        blob.download_blob.side_effect = ServiceRequestError("timeout")
        dest = tmp_path / "save.sav"
        dest.write_bytes(b"local")

        with pytest.raises(RemoteUnavailable):
            store.download_to_file("cloud.sav", dest)
        assert dest.read_bytes() == b"local"


class TestS3BlobStore:
    """Tests for the S3 backend against a mocked boto3 client."""

    def test_ensure_container_creates_missing_bucket(self):
        client = MagicMock()
        client.head_bucket.side_effect = _client_error("404", "HeadBucket")
        store = S3BlobStore("saves", region="eu-west-1", client=client)

        store.ensure_container()

        client.create_bucket.assert_called_once_with(
            Bucket="saves",
            CreateBucketConfiguration={"LocationConstraint": "eu-west-1"},
        )

    def test_ensure_container_existing(self):
        client = MagicMock()
        S3BlobStore("saves", client=client).ensure_container()
        client.create_bucket.assert_not_called()

    def test_ensure_container_denied(self):
        client = MagicMock()
        client.head_bucket.side_effect = _client_error("403", "HeadBucket")
        with pytest.raises(RemoteUnavailable):
            S3BlobStore("saves", client=client).ensure_container()

    def test_read_text(self):
        client = MagicMock()
        client.get_object.return_value = {"Body": io.BytesIO(b"abc")}
        assert S3BlobStore("saves", client=client).read_text("cloud.md5") == "abc"

    def test_read_text_missing(self):
        client = MagicMock()
        client.get_object.side_effect = _client_error("NoSuchKey", "GetObject")
        assert S3BlobStore("saves", client=client).read_text("cloud.md5") is None

    def test_exists(self):
        client = MagicMock()
        store = S3BlobStore("saves", client=client)
        assert store.exists("cloud.sav") is True
        client.head_object.side_effect = _client_error("404")
        assert store.exists("cloud.sav") is False

    def test_connection_failure(self):
        client = MagicMock()
        client.put_object.side_effect = EndpointConnectionError(endpoint_url="http://nowhere")
        with pytest.raises(RemoteUnavailable):
            S3BlobStore("saves", client=client).upload_text("cloud.md5", "abc")

    def test_download_staged(self, tmp_path: Path):
        client = MagicMock()
        client.download_file.side_effect = lambda b, k, p: Path(p).write_bytes(b"remote")
        dest = tmp_path / "save.sav"
        dest.write_bytes(b"local")

        S3BlobStore("saves", client=client).download_to_file("cloud.sav", dest)

        assert dest.read_bytes() == b"remote"
        client.download_file.assert_called_once_with("saves", "cloud.sav", str(dest) + ".part")


def _stubbed_s3():
    """Real boto3 S3 client with its responses queued through Stubber."""
    client = boto3.client(
        "s3",
        region_name="us-east-1",
        aws_access_key_id="testing",
        aws_secret_access_key="testing",
    )
    return client, Stubber(client)


class TestS3WithRealClient:
    """S3 failures as a real boto3 client raises them."""

    def test_upload_file_failure_is_remote_unavailable(self, tmp_path: Path):
        client, stubber = _stubbed_s3()
        stubber.add_client_error("put_object", "AccessDenied", http_status_code=403)
        src = tmp_path / "in.sav"
        src.write_bytes(b"payload")

        with stubber:
            with pytest.raises(RemoteUnavailable) as exc_info:
                S3BlobStore("saves", client=client).upload_file(SAVE_BLOB, src)

        assert exc_info.value.blob_name == SAVE_BLOB

    def test_failed_payload_still_writes_hash_record(self, make_engine, cache, save_file):
        client, stubber = _stubbed_s3()
        stubber.add_response("head_bucket", {})
        stubber.add_client_error("get_object", "NoSuchKey", http_status_code=404)
        stubber.add_client_error("put_object", "AccessDenied", http_status_code=403)
        stubber.add_response("put_object", {})

        with stubber:
            result = make_engine(store=S3BlobStore("saves", client=client)).synchronize()
            stubber.assert_no_pending_responses()

        assert result.action == SyncAction.ERROR
        assert SAVE_BLOB in result.message
        assert cache.read() is None


class TestCreateStore:
    """Tests for the backend factory."""

    def test_local_default_root(self, tmp_path: Path):
        store = create_store(
            RemoteSettings(backend=RemoteBackendType.LOCAL, container="saves"),
            home=tmp_path,
        )
        assert isinstance(store, LocalBlobStore)
        assert store.container_dir == tmp_path / "remote" / "saves"

    def test_local_relative_root(self, tmp_path: Path):
        store = create_store(
            RemoteSettings(backend=RemoteBackendType.LOCAL, container="saves", path=Path("shared")),
            home=tmp_path,
        )
        assert store.container_dir == tmp_path / "shared" / "saves"

    def test_bad_azure_connection_string(self):
        with pytest.raises(ConfigurationInvalid):
            create_store(
                RemoteSettings(
                    backend=RemoteBackendType.AZURE,
                    container="saves",
                    connection_string="not a connection string",
                )
            )

    def test_s3(self):
        store = create_store(
            RemoteSettings(backend=RemoteBackendType.S3, container="saves", region="us-east-1")
        )
        assert isinstance(store, S3BlobStore)
        assert store.name == "s3"
