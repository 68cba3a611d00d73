# SITEPUB Default Configuration
# Full default configuration as Python dict and YAML generator

from typing import Any

import yaml

DEFAULT_CONFIG: dict[str, Any] = {
    "site": {
        "root": "./public",
    },
    "storage": {
        "backend": "s3",
        "bucket": "my-site-bucket",
        "prefix": "",
        "region": "us-east-1",
        "partition": "aws",
    },
    "cdn": {
        "backend": "cloudfront",
        "invalidate": True,
        "apply_error_routes": False,
    },
    "scan": {
        "exclude": [
            ".DS_Store",
            "Thumbs.db",
            ".git/**",
        ],
        "workers": 4,
    },
    "upload": {
        "max_concurrency": 8,
        "retry_ceiling": 5,
        "backoff_base": 0.5,
        "backoff_max": 8.0,
    },
    "policy": {
        "max_attempts": 5,
        "backoff_base": 0.2,
    },
    "content_types": {},
    "error_routes": [
        {"status_code": 404, "document": "error.html", "response_code": 404, "cache_ttl": 10},
        {"status_code": 403, "document": "error.html", "response_code": 404, "cache_ttl": 10},
    ],
    "output": {
        "verbose": False,
        "colored": True,
    },
}

# Sections merged key by key with the defaults; everything else is replaced
MERGED_SECTIONS = ("site", "storage", "cdn", "scan", "upload", "policy", "output")


def generate_default_config() -> str:
    """Generate default configuration as YAML string with comments."""
    header = """# SITEPUB - Static Site Publisher Configuration
# Version: 1.0
#
# Publishes a local directory of built site assets to object storage,
# restricts read access to a single CDN distribution and invalidates
# changed paths on the CDN.
#
# Storage backends:
#   - s3: AWS S3 or an S3-compatible endpoint (endpoint_url)
#   - local: a local directory (local_path), useful for previews
#
# CDN backends:
#   - cloudfront: set distribution_id, or alias to look it up
#   - none: no CDN; pass --distribution-id when publishing
#
# storage.account_id (12 digits) is required to scope bucket access
# to the distribution.

"""
    return header + yaml.dump(DEFAULT_CONFIG, default_flow_style=False, sort_keys=False, allow_unicode=True)
