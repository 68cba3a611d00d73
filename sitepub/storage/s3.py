"""S3 storage backend (AWS S3 and S3-compatible endpoints)."""

import json
from concurrent.futures import ThreadPoolExecutor
from typing import Any

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from sitepub.errors import PolicyConflictError, StorageError, ThrottledError
from sitepub.storage.base import PolicyRecord, PublicAccessBlock, RemoteObject, StorageService
from sitepub.utils.hashing import document_hash

FINGERPRINT_METADATA_KEY = "sha256"

THROTTLE_CODES = frozenset(
    {
        "SlowDown",
        "Throttling",
        "ThrottlingException",
        "RequestLimitExceeded",
        "RequestThrottled",
        "TooManyRequests",
        "TooManyRequestsException",
    }
)


def translate_error(error: Exception, operation: str) -> StorageError:
    """Map a botocore error onto the storage error taxonomy."""
    if isinstance(error, ClientError):
        code = error.response.get("Error", {}).get("Code", "")
        message = error.response.get("Error", {}).get("Message", str(error))
        status = error.response.get("ResponseMetadata", {}).get("HTTPStatusCode")
        if code in THROTTLE_CODES or status == 503:
            return ThrottledError(f"{operation} throttled: {message}", code=code)
        return StorageError(f"{operation} failed ({code}): {message}", code=code)
    return StorageError(f"{operation} failed: {error}")


def policy_revision(policy_text: str | None) -> str:
    """Revision token for a bucket policy, independent of JSON formatting."""
    if not policy_text:
        return ""
    try:
        normalized = json.dumps(json.loads(policy_text), sort_keys=True)
    except ValueError:
        normalized = policy_text
    return document_hash(normalized)


class S3Storage(StorageService):
    """
    Storage service for an S3 bucket.

    Fingerprints are stored as ``x-amz-meta-sha256`` object metadata, so a
    listing needs one HEAD request per object; those run on a bounded pool.
    S3 has no conditional bucket-policy write, so put_policy compares the
    revision of the live policy immediately before writing.
    """

    def __init__(
        self,
        bucket: str,
        *,
        region: str | None = None,
        endpoint_url: str | None = None,
        head_workers: int = 8,
        client: Any = None,
    ):
        self._bucket = bucket
        self._head_workers = max(1, head_workers)

        if client is None:
            kwargs: dict = {
                "config": Config(
                    region_name=region,
                    signature_version="s3v4",
                    retries={"total_max_attempts": 1, "mode": "standard"},
                ),
            }
            if endpoint_url:
                kwargs["endpoint_url"] = endpoint_url
            client = boto3.client("s3", **kwargs)
        self._client = client

    @property
    def resource_name(self) -> str:
        return f"s3:{self._bucket}"

    def list(self, prefix: str = "") -> list[RemoteObject]:
        keys: list[str] = []
        try:
            paginator = self._client.get_paginator("list_objects_v2")
            for page in paginator.paginate(Bucket=self._bucket, Prefix=prefix):
                for obj in page.get("Contents", []):
                    keys.append(obj["Key"])
        except (ClientError, BotoCoreError) as e:
            raise translate_error(e, "ListObjectsV2") from e

        if not keys:
            return []

        with ThreadPoolExecutor(max_workers=min(self._head_workers, len(keys))) as pool:
            return list(pool.map(self._head, keys))

    def _head(self, key: str) -> RemoteObject:
        try:
            response = self._client.head_object(Bucket=self._bucket, Key=key)
        except (ClientError, BotoCoreError) as e:
            raise translate_error(e, f"HeadObject {key}") from e

        return RemoteObject(
            key=key,
            content_type=response.get("ContentType"),
            fingerprint=response.get("Metadata", {}).get(FINGERPRINT_METADATA_KEY),
            revision=response.get("ETag", "").strip('"') or None,
            size=response.get("ContentLength", 0),
        )

    def put(self, key: str, body: bytes, content_type: str, fingerprint: str) -> RemoteObject:
        try:
            response = self._client.put_object(
                Bucket=self._bucket,
                Key=key,
                Body=body,
                ContentType=content_type,
                Metadata={FINGERPRINT_METADATA_KEY: fingerprint},
            )
        except (ClientError, BotoCoreError) as e:
            raise translate_error(e, f"PutObject {key}") from e

        return RemoteObject(
            key=key,
            content_type=content_type,
            fingerprint=fingerprint,
            revision=response.get("VersionId") or response.get("ETag", "").strip('"') or None,
            size=len(body),
        )

    def set_public_access_block(self, all_blocked: bool) -> PublicAccessBlock:
        configuration = {
            "BlockPublicAcls": all_blocked,
            "IgnorePublicAcls": all_blocked,
            "BlockPublicPolicy": all_blocked,
            "RestrictPublicBuckets": all_blocked,
        }
        try:
            self._client.put_public_access_block(
                Bucket=self._bucket,
                PublicAccessBlockConfiguration=configuration,
            )
            response = self._client.get_public_access_block(Bucket=self._bucket)
        except (ClientError, BotoCoreError) as e:
            raise translate_error(e, "PutPublicAccessBlock") from e

        effective = response.get("PublicAccessBlockConfiguration", {})
        return PublicAccessBlock(
            block_public_acls=effective.get("BlockPublicAcls", False),
            ignore_public_acls=effective.get("IgnorePublicAcls", False),
            block_public_policy=effective.get("BlockPublicPolicy", False),
            restrict_public_buckets=effective.get("RestrictPublicBuckets", False),
        )

    def _policy_text(self) -> str | None:
        try:
            response = self._client.get_bucket_policy(Bucket=self._bucket)
        except ClientError as e:
            if e.response.get("Error", {}).get("Code") == "NoSuchBucketPolicy":
                return None
            raise translate_error(e, "GetBucketPolicy") from e
        except BotoCoreError as e:
            raise translate_error(e, "GetBucketPolicy") from e
        return response.get("Policy")

    def get_policy(self) -> PolicyRecord:
        text = self._policy_text()
        document = json.loads(text) if text else None
        return PolicyRecord(document=document, revision=policy_revision(text))

    def put_policy(self, document: dict[str, Any], expected_revision: str) -> str:
        current = policy_revision(self._policy_text())
        if current != expected_revision:
            raise PolicyConflictError(
                f"Bucket policy of {self._bucket} changed (expected {expected_revision or 'none'}, "
                f"found {current or 'none'})"
            )

        text = json.dumps(document)
        try:
            self._client.put_bucket_policy(Bucket=self._bucket, Policy=text)
        except (ClientError, BotoCoreError) as e:
            raise translate_error(e, "PutBucketPolicy") from e
        return policy_revision(text)
