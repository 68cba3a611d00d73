"""CloudFront CDN backend."""

import time
import uuid
from collections.abc import Iterable, Sequence
from typing import Any, Optional

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from sitepub.errors import CdnError
from sitepub.publish.routing import ErrorRoute, custom_error_responses
from sitepub.storage.base import CdnService

# CloudFront rejects invalidation batches above this many paths
MAX_INVALIDATION_PATHS = 1000
WILDCARD_PATH = "/*"


def invalidation_paths(keys: Iterable[str]) -> list[str]:
    """CloudFront paths for *keys*, collapsed to a wildcard when too many."""
    paths = sorted({"/" + key.lstrip("/") for key in keys})
    if len(paths) > MAX_INVALIDATION_PATHS:
        return [WILDCARD_PATH]
    return paths


class CloudFrontCdn(CdnService):
    """CDN service for one CloudFront distribution, given by id or by alias."""

    def __init__(
        self,
        distribution_id: Optional[str] = None,
        alias: Optional[str] = None,
        *,
        client: Any = None,
    ):
        if not distribution_id and not alias:
            raise CdnError("CloudFront needs a distribution_id or an alias")
        self._distribution_id = distribution_id
        self._alias = alias
        self._client = client or boto3.client("cloudfront")

    def _fail(self, error: Exception, operation: str) -> CdnError:
        if isinstance(error, ClientError):
            code = error.response.get("Error", {}).get("Code", "")
            message = error.response.get("Error", {}).get("Message", str(error))
            return CdnError(f"{operation} failed ({code}): {message}")
        return CdnError(f"{operation} failed: {error}")

    def get_distribution_identifier(self) -> str:
        if self._distribution_id:
            return self._distribution_id

        try:
            paginator = self._client.get_paginator("list_distributions")
            for page in paginator.paginate():
                for summary in page.get("DistributionList", {}).get("Items", []):
                    aliases = summary.get("Aliases", {}).get("Items", [])
                    if self._alias in aliases or summary.get("DomainName") == self._alias:
                        self._distribution_id = summary["Id"]
                        return self._distribution_id
        except (ClientError, BotoCoreError) as e:
            raise self._fail(e, "ListDistributions") from e

        raise CdnError(f"No CloudFront distribution serves alias {self._alias}")

    def invalidate(self, keys: Sequence[str]) -> str:
        paths = invalidation_paths(keys)
        if not paths:
            return ""

        distribution_id = self.get_distribution_identifier()
        caller_reference = f"sitepub-{int(time.time())}-{uuid.uuid4().hex[:8]}"
        try:
            response = self._client.create_invalidation(
                DistributionId=distribution_id,
                InvalidationBatch={
                    "Paths": {"Quantity": len(paths), "Items": paths},
                    "CallerReference": caller_reference,
                },
            )
        except (ClientError, BotoCoreError) as e:
            raise self._fail(e, "CreateInvalidation") from e

        return response["Invalidation"]["Id"]

    def apply_error_routes(self, routes: Sequence[ErrorRoute]) -> bool:
        distribution_id = self.get_distribution_identifier()
        try:
            response = self._client.get_distribution_config(Id=distribution_id)
            config = response["DistributionConfig"]
            config["CustomErrorResponses"] = custom_error_responses(routes)
            self._client.update_distribution(
                Id=distribution_id,
                IfMatch=response["ETag"],
                DistributionConfig=config,
            )
        except (ClientError, BotoCoreError) as e:
            raise self._fail(e, "UpdateDistribution") from e
        return True
