"""
Integrations module for external service clients.

Provides the GitHub repository tarball client.
"""

from github_utils.integrations.tarball_client import (
    EXPECTED_TARBALL_CONTENT_TYPE,
    ClientStats,
    FetchResult,
    TarballClient,
    build_http_client,
    build_request_headers,
    build_tarball_url,
    get_tarball_prefix,
    open_tarball_stream,
)

__all__ = [
    "EXPECTED_TARBALL_CONTENT_TYPE",
    "ClientStats",
    "FetchResult",
    "TarballClient",
    "build_http_client",
    "build_request_headers",
    "build_tarball_url",
    "get_tarball_prefix",
    "open_tarball_stream",
]
