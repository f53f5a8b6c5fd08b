"""
Pydantic models for github-utils.

Provides data models for:
- Repository references identifying a tarball
- GitHub webhook delivery headers
"""

from github_utils.models.github import (
    HEADER_GITHUB_DELIVERY,
    HEADER_GITHUB_EVENT,
    HEADER_GITHUB_HOOK_ID,
    HEADER_GITHUB_HOOK_INSTALLATION_TARGET_ID,
    HEADER_GITHUB_HOOK_INSTALLATION_TARGET_TYPE,
    HEADER_HUB_SIGNATURE,
    HEADER_HUB_SIGNATURE_256,
    RepositoryRef,
    WebhookDelivery,
)

__all__ = [
    "HEADER_GITHUB_DELIVERY",
    "HEADER_GITHUB_EVENT",
    "HEADER_GITHUB_HOOK_ID",
    "HEADER_GITHUB_HOOK_INSTALLATION_TARGET_ID",
    "HEADER_GITHUB_HOOK_INSTALLATION_TARGET_TYPE",
    "HEADER_HUB_SIGNATURE",
    "HEADER_HUB_SIGNATURE_256",
    "RepositoryRef",
    "WebhookDelivery",
]
