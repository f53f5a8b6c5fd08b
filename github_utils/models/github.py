"""
Pydantic models for GitHub repository references and webhook deliveries.

These models provide type-safe construction of the values passed into the
tarball client and of the headers GitHub attaches to webhook deliveries.
"""

from collections.abc import Mapping
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

HEADER_GITHUB_HOOK_ID = "X-GitHub-Hook-ID"
HEADER_GITHUB_EVENT = "X-GitHub-Event"
HEADER_GITHUB_DELIVERY = "X-GitHub-Delivery"
HEADER_HUB_SIGNATURE = "X-Hub-Signature"
HEADER_HUB_SIGNATURE_256 = "X-Hub-Signature-256"
HEADER_GITHUB_HOOK_INSTALLATION_TARGET_TYPE = "X-GitHub-Hook-Installation-Target-Type"
HEADER_GITHUB_HOOK_INSTALLATION_TARGET_ID = "X-GitHub-Hook-Installation-Target-ID"


class RepositoryRef(BaseModel):
    """
    Identifies the tarball to fetch: a repository and a branch, tag or SHA.

    All three parts must be non-empty. Parts are escaped individually when
    the request URL is built, so ``/`` inside a branch name is allowed.
    """

    owner: str = Field(..., min_length=1, max_length=256, description="Repository owner")
    name: str = Field(..., min_length=1, max_length=256, description="Repository name")
    branch: str = Field(..., min_length=1, max_length=1024, description="Branch, tag or commit SHA")

    @field_validator("owner", "name", "branch")
    @classmethod
    def reject_dot_segments(cls, v: str) -> str:
        # "." and ".." would be collapsed away by URL normalization
        if v in (".", ".."):
            raise ValueError(f"'{v}' is not a valid path segment")
        return v

    @property
    def full_name(self) -> str:
        return f"{self.owner}/{self.name}"

    def __str__(self) -> str:
        return f"{self.owner}/{self.name}@{self.branch}"

    model_config = ConfigDict(
        frozen=True,
        json_schema_extra={
            "examples": [
                {"owner": "octo-org", "name": "octo-repo", "branch": "main"},
            ]
        },
    )


class WebhookDelivery(BaseModel):
    """
    The GitHub-specific headers of a webhook delivery.

    Only ``signature_256`` is used for verification; the other fields are
    carried for logging and for callers that dispatch on the event.
    """

    model_config = ConfigDict(frozen=True)

    hook_id: Optional[str] = Field(None, description=HEADER_GITHUB_HOOK_ID)
    event: Optional[str] = Field(None, description=HEADER_GITHUB_EVENT)
    delivery: Optional[str] = Field(None, description=HEADER_GITHUB_DELIVERY)
    signature: Optional[str] = Field(None, description=f"{HEADER_HUB_SIGNATURE} (legacy SHA-1)")
    signature_256: Optional[str] = Field(None, description=HEADER_HUB_SIGNATURE_256)
    hook_installation_target_type: Optional[str] = Field(
        None, description=HEADER_GITHUB_HOOK_INSTALLATION_TARGET_TYPE
    )
    hook_installation_target_id: Optional[str] = Field(
        None, description=HEADER_GITHUB_HOOK_INSTALLATION_TARGET_ID
    )

    @classmethod
    def from_headers(cls, headers: Mapping[str, str]) -> "WebhookDelivery":
        """
        Build a delivery from request headers.

        Header lookup is case-insensitive; missing headers become None.
        """
        lowered = {key.lower(): value for key, value in headers.items()}

        def get(name: str) -> Optional[str]:
            return lowered.get(name.lower()) or None

        return cls(
            hook_id=get(HEADER_GITHUB_HOOK_ID),
            event=get(HEADER_GITHUB_EVENT),
            delivery=get(HEADER_GITHUB_DELIVERY),
            signature=get(HEADER_HUB_SIGNATURE),
            signature_256=get(HEADER_HUB_SIGNATURE_256),
            hook_installation_target_type=get(HEADER_GITHUB_HOOK_INSTALLATION_TARGET_TYPE),
            hook_installation_target_id=get(HEADER_GITHUB_HOOK_INSTALLATION_TARGET_ID),
        )
