# Tests for sitepub.storage.cloudfront
# CloudFront CDN backend against a mocked boto3 client

from unittest.mock import MagicMock

import pytest
from botocore.exceptions import ClientError

from sitepub.errors import CdnError
from sitepub.publish.routing import ErrorRoute
from sitepub.storage.cloudfront import MAX_INVALIDATION_PATHS, CloudFrontCdn, invalidation_paths


@pytest.fixture
def client() -> MagicMock:
    client = MagicMock()
    client.create_invalidation.return_value = {"Invalidation": {"Id": "I2J3K4", "Status": "InProgress"}}
    return client


class TestInvalidationPaths:
    """Tests for invalidation_paths."""

    def test_leading_slash(self):
        """Test paths get a leading slash."""
        assert invalidation_paths(["index.html", "img/logo.png"]) == ["/img/logo.png", "/index.html"]

    def test_deduplicated(self):
        """Test duplicate keys are collapsed."""
        assert invalidation_paths(["index.html", "/index.html"]) == ["/index.html"]

    def test_collapses_to_wildcard(self):
        """Test too many paths collapse to a wildcard."""
        keys = [f"page-{i}.html" for i in range(MAX_INVALIDATION_PATHS + 1)]
        assert invalidation_paths(keys) == ["/*"]

    def test_at_limit(self):
        """Test exactly the limit keeps every path."""
        keys = [f"page-{i}.html" for i in range(MAX_INVALIDATION_PATHS)]
        assert len(invalidation_paths(keys)) == MAX_INVALIDATION_PATHS


class TestCloudFrontCdn:
    """Tests for CloudFrontCdn."""

    def test_requires_id_or_alias(self, client):
        """Test construction without id or alias."""
        with pytest.raises(CdnError):
            CloudFrontCdn(client=client)

    def test_explicit_id(self, client):
        """Test an explicit id needs no lookup."""
        assert CloudFrontCdn("E123ABC", client=client).get_distribution_identifier() == "E123ABC"
        client.get_paginator.assert_not_called()

    def test_resolves_alias(self, client):
        """Test resolving the distribution by alias."""
        client.get_paginator.return_value.paginate.return_value = [
            {"DistributionList": {"Items": [{"Id": "EOTHER", "DomainName": "d1.cloudfront.net", "Aliases": {}}]}},
            {
                "DistributionList": {
                    "Items": [
                        {
                            "Id": "E123ABC",
                            "DomainName": "d2.cloudfront.net",
                            "Aliases": {"Quantity": 1, "Items": ["www.example.com"]},
                        }
                    ]
                }
            },
        ]

        cdn = CloudFrontCdn(alias="www.example.com", client=client)

        assert cdn.get_distribution_identifier() == "E123ABC"
        assert cdn.get_distribution_identifier() == "E123ABC"
        client.get_paginator.assert_called_once_with("list_distributions")

    def test_unknown_alias(self, client):
        """Test an alias no distribution serves."""
        client.get_paginator.return_value.paginate.return_value = [{"DistributionList": {"Items": []}}]
        with pytest.raises(CdnError, match="www.example.com"):
            CloudFrontCdn(alias="www.example.com", client=client).get_distribution_identifier()

    def test_invalidate(self, client):
        """Test creating an invalidation."""
        invalidation_id = CloudFrontCdn("E123ABC", client=client).invalidate(["index.html", "img/logo.png"])

        assert invalidation_id == "I2J3K4"
        kwargs = client.create_invalidation.call_args.kwargs
        assert kwargs["DistributionId"] == "E123ABC"
        assert kwargs["InvalidationBatch"]["Paths"] == {"Quantity": 2, "Items": ["/img/logo.png", "/index.html"]}

    def test_unique_caller_reference(self, client):
        """Test each invalidation gets its own caller reference."""
        cdn = CloudFrontCdn("E123ABC", client=client)
        cdn.invalidate(["index.html"])
        cdn.invalidate(["index.html"])

        references = [c.kwargs["InvalidationBatch"]["CallerReference"] for c in client.create_invalidation.call_args_list]
        assert references[0] != references[1]

    def test_invalidate_nothing(self, client):
        """Test no request is made for an empty key list."""
        assert CloudFrontCdn("E123ABC", client=client).invalidate([]) == ""
        client.create_invalidation.assert_not_called()

    def test_invalidate_error(self, client):
        """Test client errors become CdnError."""
        client.create_invalidation.side_effect = ClientError(
            {"Error": {"Code": "TooManyInvalidationsInProgress", "Message": "slow down"}}, "CreateInvalidation"
        )
        with pytest.raises(CdnError, match="TooManyInvalidationsInProgress"):
            CloudFrontCdn("E123ABC", client=client).invalidate(["index.html"])

    def test_apply_error_routes(self, client):
        """Test pushing error routes with the config ETag."""
        client.get_distribution_config.return_value = {
            "ETag": "ETAG1",
            "DistributionConfig": {"Comment": "site", "CustomErrorResponses": {"Quantity": 0}},
        }

        applied = CloudFrontCdn("E123ABC", client=client).apply_error_routes([ErrorRoute(404, "error.html")])

        assert applied
        kwargs = client.update_distribution.call_args.kwargs
        assert kwargs["Id"] == "E123ABC"
        assert kwargs["IfMatch"] == "ETAG1"
        assert kwargs["DistributionConfig"]["Comment"] == "site"
        assert kwargs["DistributionConfig"]["CustomErrorResponses"]["Items"][0]["ResponsePagePath"] == "/error.html"
