"""
S3-compatible backend (AWS S3, MinIO, Cloudflare R2, ...).

Expects credentials via the usual boto3 chain: environment,
~/.aws/credentials, or an instance profile.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Any, Iterator, Optional

import boto3
from boto3.exceptions import Boto3Error
from botocore.exceptions import BotoCoreError, ClientError

from ..errors import RemoteUnavailable
from .base import BlobStore, PathLike, staged_replace

logger = logging.getLogger("savesync.stores.s3")

_MISSING_CODES = {"404", "NoSuchKey", "NoSuchBucket", "NotFound"}


def _is_missing(exc: ClientError) -> bool:
    return str(exc.response.get("Error", {}).get("Code", "")) in _MISSING_CODES


@contextmanager
def _s3_errors(action: str, blob_name: Optional[str] = None) -> Iterator[None]:
    """Re-raise boto failures as RemoteUnavailable."""
    try:
        yield
    except (Boto3Error, BotoCoreError, ClientError) as exc:
        target = f" {blob_name}" if blob_name else ""
        raise RemoteUnavailable(
            f"S3 {action}{target} failed: {exc}", blob_name
        ) from exc


class S3BlobStore(BlobStore):
    """Blob store on an S3 bucket.

    Args:
        bucket: Bucket name.
        region: Region for the client and for bucket creation.
        endpoint_url: Custom endpoint for S3-compatible services.
        client: Pre-built boto3 S3 client (tests).
    """

    def __init__(
        self,
        bucket: str,
        region: Optional[str] = None,
        endpoint_url: Optional[str] = None,
        client: Any = None,
    ):
        self.bucket = bucket
        self.region = region
        self._client = client or boto3.client(
            "s3", region_name=region, endpoint_url=endpoint_url
        )

    @property
    def name(self) -> str:
        return "s3"

    def ensure_container(self) -> None:
        try:
            self._client.head_bucket(Bucket=self.bucket)
            return
        except ClientError as exc:
            if not _is_missing(exc):
                raise RemoteUnavailable(
                    f"S3 head bucket {self.bucket} failed: {exc}"
                ) from exc
        except BotoCoreError as exc:
            raise RemoteUnavailable(
                f"S3 head bucket {self.bucket} failed: {exc}"
            ) from exc

        kwargs: dict = {"Bucket": self.bucket}
        if self.region and self.region != "us-east-1":
            kwargs["CreateBucketConfiguration"] = {
                "LocationConstraint": self.region
            }
        with _s3_errors("create bucket"):
            self._client.create_bucket(**kwargs)
        logger.info("Created bucket %s", self.bucket)

    def exists(self, blob_name: str) -> bool:
        try:
            self._client.head_object(Bucket=self.bucket, Key=blob_name)
            return True
        except ClientError as exc:
            if _is_missing(exc):
                return False
            raise RemoteUnavailable(
                f"S3 exists {blob_name} failed: {exc}", blob_name
            ) from exc
        except BotoCoreError as exc:
            raise RemoteUnavailable(
                f"S3 exists {blob_name} failed: {exc}", blob_name
            ) from exc

    def read_text(self, blob_name: str) -> Optional[str]:
        try:
            response = self._client.get_object(Bucket=self.bucket, Key=blob_name)
        except ClientError as exc:
            if _is_missing(exc):
                return None
            raise RemoteUnavailable(
                f"S3 read {blob_name} failed: {exc}", blob_name
            ) from exc
        except BotoCoreError as exc:
            raise RemoteUnavailable(
                f"S3 read {blob_name} failed: {exc}", blob_name
            ) from exc
        with _s3_errors("read", blob_name):
            return response["Body"].read().decode("utf-8")

    def upload_file(self, blob_name: str, local_path: PathLike) -> None:
        with _s3_errors("upload", blob_name):
            self._client.upload_file(str(local_path), self.bucket, blob_name)

    def upload_text(self, blob_name: str, content: str) -> None:
        with _s3_errors("upload", blob_name):
            self._client.put_object(
                Bucket=self.bucket, Key=blob_name, Body=content.encode("utf-8")
            )

    def download_to_file(self, blob_name: str, local_path: PathLike) -> None:
        with _s3_errors("download", blob_name):
            with staged_replace(local_path) as part:
                self._client.download_file(self.bucket, blob_name, str(part))
