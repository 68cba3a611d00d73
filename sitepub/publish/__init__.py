# SITEPUB Publish Module
# Scanning, planning, upload, access binding and orchestration

from sitepub.publish.actions import ActionType, ObjectSyncPlanner, SyncAction, SyncPlan, determine_action, plan_sync
from sitepub.publish.apply import ActionResult, Uploader
from sitepub.publish.asset import Asset, build_assets, load_asset
from sitepub.publish.binder import AccessBinder, AccessGrant, has_public_principal
from sitepub.publish.content_types import (
    CONTENT_TYPES,
    DEFAULT_CONTENT_TYPE,
    ContentTypeResolver,
    resolve_content_type,
)
from sitepub.publish.orchestrator import (
    PublishIssue,
    PublishOrchestrator,
    PublishResult,
    PublishState,
    publish,
    publish_from_config,
)
from sitepub.publish.routing import DEFAULT_ERROR_ROUTES, ErrorRoute, ErrorRoutingTable, routes_from_config
from sitepub.publish.scanner import FileSetScanner, ignore_patterns, scan_paths

__all__ = [
    # Scanning
    "FileSetScanner",
    "scan_paths",
    "ignore_patterns",
    # Content types
    "ContentTypeResolver",
    "resolve_content_type",
    "CONTENT_TYPES",
    "DEFAULT_CONTENT_TYPE",
    # Assets
    "Asset",
    "build_assets",
    "load_asset",
    # Planning
    "ActionType",
    "SyncAction",
    "SyncPlan",
    "ObjectSyncPlanner",
    "determine_action",
    "plan_sync",
    # Apply
    "ActionResult",
    "Uploader",
    # Binding
    "AccessBinder",
    "AccessGrant",
    "has_public_principal",
    # Routing
    "ErrorRoute",
    "ErrorRoutingTable",
    "DEFAULT_ERROR_ROUTES",
    "routes_from_config",
    # Orchestration
    "PublishOrchestrator",
    "PublishResult",
    "PublishState",
    "PublishIssue",
    "publish",
    "publish_from_config",
]
