"""
S3 object storage for session artifacts.

Thin synchronous wrapper over a boto3 S3 client; async callers run these
methods in a worker thread.
"""

import json
import logging

import boto3
from botocore.exceptions import BotoCoreError, ClientError, EndpointConnectionError

from core.config import AWS_ACCESS_KEY_ID, AWS_BUCKET_NAME, AWS_REGION, AWS_SECRET_ACCESS_KEY
from core.errors import ProviderError, ProviderUnavailableError

logger = logging.getLogger(__name__)

MISSING_KEY_CODES = {"NoSuchKey", "404", "NotFound"}


def to_provider_error(exc: Exception, action: str) -> ProviderError:
    """Map a boto3 failure to a ProviderError carrying the S3 status."""
    if isinstance(exc, EndpointConnectionError):
        return ProviderUnavailableError(f"Object storage unreachable: {exc}")
    if isinstance(exc, ClientError):
        status_code = exc.response.get("ResponseMetadata", {}).get("HTTPStatusCode") or 500
        message = exc.response.get("Error", {}).get("Message") or str(exc)
        return ProviderError(f"Failed to {action}: {message}", status_code)
    return ProviderError(f"Failed to {action}: {exc}", 500)


class ObjectStorage:
    """One S3 bucket."""

    def __init__(self, bucket: str = AWS_BUCKET_NAME, region: str = AWS_REGION, client=None):
        self.bucket = bucket
        self.region = region
        self._client = client

    @property
    def client(self):
        if self._client is None:
            self._client = boto3.client(
                "s3",
                region_name=self.region,
                aws_access_key_id=AWS_ACCESS_KEY_ID or None,
                aws_secret_access_key=AWS_SECRET_ACCESS_KEY or None,
            )
        return self._client

    def _require_bucket(self) -> None:
        if not self.bucket:
            raise ProviderError("Object storage not configured: AWS_BUCKET_NAME", 500)

    def url_for(self, key: str) -> str:
        return f"https://{self.bucket}.s3.{self.region}.amazonaws.com/{key}"

    def put_object(self, key: str, body: bytes | str, content_type: str) -> str:
        """Upload an object and return its URL."""
        self._require_bucket()
        if isinstance(body, str):
            body = body.encode("utf-8")
        try:
            self.client.put_object(
                Bucket=self.bucket, Key=key, Body=body, ContentType=content_type
            )
        except (BotoCoreError, ClientError) as e:
            logger.error("S3 upload failed", extra={"key": key, "error": str(e)})
            raise to_provider_error(e, f"upload {key}")
        logger.debug("Uploaded object", extra={"key": key, "size": len(body)})
        return self.url_for(key)

    def get_json(self, key: str) -> dict | None:
        """Read a JSON object; None when it does not exist."""
        self._require_bucket()
        try:
            response = self.client.get_object(Bucket=self.bucket, Key=key)
        except ClientError as e:
            if e.response.get("Error", {}).get("Code") in MISSING_KEY_CODES:
                return None
            raise to_provider_error(e, f"read {key}")
        except BotoCoreError as e:
            raise to_provider_error(e, f"read {key}")
        return json.loads(response["Body"].read())

    def list_folders(self, prefix: str) -> list[str]:
        """Immediate 'folder' prefixes under a prefix (S3 CommonPrefixes)."""
        self._require_bucket()
        folders = []
        try:
            paginator = self.client.get_paginator("list_objects_v2")
            for page in paginator.paginate(Bucket=self.bucket, Prefix=prefix, Delimiter="/"):
                for common in page.get("CommonPrefixes", []):
                    folders.append(common["Prefix"])
        except (BotoCoreError, ClientError) as e:
            raise to_provider_error(e, f"list {prefix}")
        return folders
