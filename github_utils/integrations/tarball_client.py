"""
GitHub repository tarball client.

Downloads the source snapshot of a repository ref through the REST API
(``GET /repos/{owner}/{repo}/tarball/{ref}``), checks the response is a
gzip tarball, unpacks it into an in-memory Archive and strips the single
``<owner>-<repo>-<sha>/`` directory GitHub wraps every tarball in.

The pipeline is exposed stage by stage:

    get_tarball                 -> FetchResult (raw bytes + headers)
    get_tarball_reader          -> gzip stream over the body
    get_tar_archive             -> Archive with the prefix directory
    get_unprefixed_tar_archive  -> Archive rooted at the repository root

An empty response body short-circuits every stage with None and no error.

Usage:
    from github_utils.integrations.tarball_client import TarballClient

    with TarballClient.from_settings(get_settings()) as client:
        archive = client.get_unprefixed_tar_archive("octo-org", "octo-repo", "main", token)
        readme = archive.read("README.md")
"""

import gzip
import io
import posixpath
import threading
import zlib
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional, Union
from urllib.parse import quote

import httpx
from pydantic import ValidationError as PydanticValidationError

from github_utils.config.settings import (
    DEFAULT_API_VERSION,
    DEFAULT_REPOS_BASE_URL,
    AppSettings,
)
from github_utils.errors import (
    EmptyArchiveError,
    EmptyContentDispositionFilenameError,
    EmptyValueError,
    GitHubUtilsError,
    MissingContentDispositionError,
    PrefixMismatchError,
    TarballDecodeError,
    TransportError,
    UnexpectedContentTypeError,
    ValidationError,
)
from github_utils.models.github import RepositoryRef
from github_utils.utils.archive import Archive, make_archive_from_reader
from github_utils.utils.content_disposition import parse_content_disposition
from github_utils.utils.logging import get_logger

logger = get_logger(__name__)

EXPECTED_TARBALL_CONTENT_TYPE = "application/x-gzip"
GITHUB_ACCEPT = "application/vnd.github+json"


# ========================
# Data Classes
# ========================


@dataclass(frozen=True)
class FetchResult:
    """Raw tarball response returned by get_tarball."""

    body: bytes
    headers: httpx.Headers
    status_code: int
    url: str


@dataclass
class ClientStats:
    """Tracks client usage statistics."""

    requests: int = 0
    bytes_downloaded: int = 0
    empty_responses: int = 0
    errors: int = 0
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False, compare=False)

    def record(self, **increments: int) -> None:
        """Add to one or more counters; safe to call from several threads."""
        with self._lock:
            for name, amount in increments.items():
                setattr(self, name, getattr(self, name) + amount)


# ========================
# Request / Response Helpers
# ========================


def build_request_headers(token: str, api_version: str = DEFAULT_API_VERSION) -> dict[str, str]:
    """The headers sent with every tarball request."""
    return {
        "Accept": GITHUB_ACCEPT,
        "Authorization": f"Bearer {token}",
        "X-GitHub-Api-Version": api_version,
    }


def build_tarball_url(base_url: httpx.URL, ref: RepositoryRef) -> httpx.URL:
    """
    Build ``{base}/{owner}/{name}/tarball/{branch}``.

    Each part is escaped as a single path segment, so a ``/`` inside a part
    becomes ``%2F`` instead of adding a segment.
    """
    segments = [
        quote(segment, safe="")
        for segment in (ref.owner, ref.name, "tarball", ref.branch)
    ]
    return httpx.URL(str(base_url).rstrip("/") + "/" + "/".join(segments))


def open_tarball_stream(result: FetchResult) -> gzip.GzipFile:
    """
    Open a gzip decompression stream over a tarball response body.

    The Content-Type must be exactly ``application/x-gzip``; otherwise no
    decompression is attempted. The gzip header is read eagerly so a
    malformed body fails here; the rest of the body is decompressed lazily
    as the stream is read.

    The stream is single-pass and cannot be rewound. The caller owns it and
    must close it (it is a context manager) on every path.

    Raises:
        UnexpectedContentTypeError: The response is not a gzip tarball.
        TarballDecodeError: The body is not a gzip stream.
    """
    content_type = httpx.Headers(result.headers).get("Content-Type")
    if content_type != EXPECTED_TARBALL_CONTENT_TYPE:
        raise UnexpectedContentTypeError(content_type, EXPECTED_TARBALL_CONTENT_TYPE)

    stream = gzip.GzipFile(fileobj=io.BytesIO(result.body), mode="rb")
    try:
        stream.peek(1)
    except (OSError, EOFError, zlib.error) as e:
        stream.close()
        raise TarballDecodeError(
            "An error occurred when creating the tarball gzip reader.",
            body_size=len(result.body),
        ) from e
    return stream


def get_tarball_prefix(headers: Mapping[str, str]) -> str:
    """
    Derive the tarball's top-level directory from Content-Disposition.

    ``attachment; filename=octo-repo-abc123.tar.gz`` -> ``octo-repo-abc123``

    Raises:
        MissingContentDispositionError: The header is absent or empty.
        ContentDispositionParseError: The header cannot be parsed.
        EmptyContentDispositionFilenameError: There is no usable filename.
    """
    value = httpx.Headers(headers).get("Content-Disposition")
    if not value:
        raise MissingContentDispositionError()

    content_disposition = parse_content_disposition(value)
    if not content_disposition.filename:
        raise EmptyContentDispositionFilenameError(value)

    filename = posixpath.basename(content_disposition.filename)
    prefix, _, _ = filename.partition(".")
    if not prefix:
        raise EmptyContentDispositionFilenameError(value)

    return prefix


def build_http_client(settings: AppSettings) -> httpx.Client:
    """Build an httpx client configured from application settings."""
    return httpx.Client(timeout=settings.http_timeout_seconds)


def _make_ref(owner: str, name: str, branch: str) -> RepositoryRef:
    for field_name, value in (("owner", owner), ("name", name), ("branch", branch)):
        if not value:
            raise EmptyValueError(field_name)
    try:
        return RepositoryRef(owner=owner, name=name, branch=branch)
    except PydanticValidationError as e:
        first = e.errors()[0]
        field_name = str(first["loc"][0]) if first.get("loc") else None
        raise ValidationError(
            f"invalid repository reference: {first['msg']}", field=field_name
        ) from e


# ========================
# Tarball Client
# ========================


class TarballClient:
    """
    Downloads and unpacks GitHub repository tarballs.

    The HTTP client is injected; timeouts, proxies and retries are its
    concern. The repos base URL is parsed once, here, so an invalid URL
    fails at startup rather than on the first request.

    Args:
        http_client: httpx client used to send requests.
        base_url: Repos API base URL (default: https://api.github.com/repos/).
        api_version: Value of the X-GitHub-Api-Version header.
        owns_client: Close ``http_client`` when this client is closed.
    """

    def __init__(
        self,
        http_client: httpx.Client,
        base_url: Union[httpx.URL, str] = DEFAULT_REPOS_BASE_URL,
        api_version: str = DEFAULT_API_VERSION,
        owns_client: bool = False,
    ):
        if http_client is None:
            raise ValidationError("nil http client", field="http_client")

        try:
            self._base_url = httpx.URL(base_url)
        except httpx.InvalidURL as e:
            raise ValueError(f"Invalid repos base URL: {base_url}") from e
        if self._base_url.scheme not in ("http", "https") or not self._base_url.host:
            raise ValueError(f"Invalid repos base URL: {base_url}")

        self._http = http_client
        self._api_version = api_version
        self._owns_client = owns_client
        self._stats = ClientStats()

        logger.debug("tarball_client_initialized", base_url=str(self._base_url))

    @classmethod
    def from_settings(
        cls,
        settings: AppSettings,
        http_client: Optional[httpx.Client] = None,
    ) -> "TarballClient":
        """Build a client from settings, creating an owned httpx client if none is given."""
        owns_client = http_client is None
        return cls(
            http_client or build_http_client(settings),
            base_url=settings.repos_base_url,
            api_version=settings.github_api_version,
            owns_client=owns_client,
        )

    # ========================
    # Pipeline Stages
    # ========================

    def get_tarball(
        self,
        owner: str,
        name: str,
        branch: str,
        token: str,
    ) -> Optional[FetchResult]:
        """
        Download the tarball of ``owner/name`` at ``branch``.

        Returns:
            FetchResult with the raw body, or None if the body is empty.

        Raises:
            ValidationError: An argument is empty or not a valid path segment.
            TransportError: The request failed or returned a non-2xx status.
        """
        ref = _make_ref(owner, name, branch)
        if not token:
            raise EmptyValueError("token")

        method = "GET"
        url = build_tarball_url(self._base_url, ref)
        url_string = str(url)

        self._stats.record(requests=1)
        try:
            response = self._http.request(
                method,
                url,
                headers=build_request_headers(token, self._api_version),
                follow_redirects=True,
            )
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            self._stats.record(errors=1)
            raise TransportError(
                "The HTTP response has an unexpected status.",
                method=method,
                url=url_string,
                status_code=e.response.status_code,
            ) from e
        except httpx.HTTPError as e:
            self._stats.record(errors=1)
            raise TransportError(
                "An error occurred when sending the request.",
                method=method,
                url=url_string,
            ) from e

        body = response.content
        if not body:
            self._stats.record(empty_responses=1)
            logger.info("tarball_empty", repository=ref.full_name, branch=ref.branch)
            return None

        self._stats.record(bytes_downloaded=len(body))
        logger.info(
            "tarball_fetched",
            repository=ref.full_name,
            branch=ref.branch,
            status_code=response.status_code,
            size=len(body),
        )
        return FetchResult(
            body=body,
            headers=response.headers,
            status_code=response.status_code,
            url=str(response.url),
        )

    def get_tarball_reader(
        self,
        owner: str,
        name: str,
        branch: str,
        token: str,
    ) -> tuple[Optional[gzip.GzipFile], Optional[FetchResult]]:
        """
        Download the tarball and open a gzip stream over it.

        The caller owns the returned stream and must close it.

        Returns:
            (stream, result), or (None, None) if the body is empty.
        """
        context = {"owner": owner, "name": name, "branch": branch}
        try:
            result = self.get_tarball(owner, name, branch, token)
        except GitHubUtilsError as e:
            raise e.wrap("An error occurred when getting the tarball.", stage="fetch", **context) from e
        if result is None:
            return None, None

        try:
            stream = open_tarball_stream(result)
        except GitHubUtilsError as e:
            self._stats.record(errors=1)
            raise e.wrap("An error occurred when opening the tarball.", stage="decode", **context) from e

        return stream, result

    def get_tar_archive(
        self,
        owner: str,
        name: str,
        branch: str,
        token: str,
    ) -> tuple[Optional[Archive], Optional[FetchResult]]:
        """
        Download the tarball and read it into an Archive.

        Entry paths still carry GitHub's ``<owner>-<repo>-<sha>/`` prefix.

        Returns:
            (archive, result), or (None, None) if the body is empty.
        """
        context = {"owner": owner, "name": name, "branch": branch}
        try:
            stream, result = self.get_tarball_reader(owner, name, branch, token)
        except GitHubUtilsError as e:
            raise e.wrap("An error occurred when obtaining the tarball reader.", **context) from e
        if stream is None:
            return None, None

        with stream:
            try:
                archive = make_archive_from_reader(stream)
            except GitHubUtilsError as e:
                self._stats.record(errors=1)
                raise e.wrap(
                    "An error occurred when making an archive from the tarball reader.",
                    stage="archive",
                    **context,
                ) from e

        logger.debug("tar_archive_built", repository=f"{owner}/{name}", entries=len(archive))
        return archive, result

    def get_unprefixed_tar_archive(
        self,
        owner: str,
        name: str,
        branch: str,
        token: str,
    ) -> Optional[Archive]:
        """
        Download the tarball and return it rooted at the repository root.

        The prefix directory is derived from the Content-Disposition filename
        and stripped from every entry. If any entry is outside that directory
        the whole operation fails; nothing partial is returned.

        Returns:
            The unprefixed Archive, or None if the body is empty.

        Raises:
            EmptyArchiveError: The tarball holds no entries.
            PrefixMismatchError: An entry lies outside the prefix directory.
            GitHubUtilsError: Any earlier stage failed.
        """
        context = {"owner": owner, "name": name, "branch": branch}
        try:
            archive, result = self.get_tar_archive(owner, name, branch, token)
        except GitHubUtilsError as e:
            raise e.wrap(
                "An error occurred when obtaining the repository tar archive.", **context
            ) from e
        if archive is None or result is None:
            return None

        if len(archive) == 0:
            self._stats.record(errors=1)
            raise EmptyArchiveError().wrap(
                "The repository tar archive has no entries.", stage="normalize", **context
            )

        try:
            prefix = get_tarball_prefix(result.headers)
        except GitHubUtilsError as e:
            self._stats.record(errors=1)
            raise e.wrap(
                "An error occurred when obtaining the GitHub repository tarball prefix.",
                stage="normalize",
                **context,
            ) from e

        unprefixed = archive.set_directory(prefix)
        if unprefixed is None:
            self._stats.record(errors=1)
            raise PrefixMismatchError(prefix).wrap(
                "An error occurred when setting the archive directory.",
                stage="normalize",
                **context,
            )

        logger.info(
            "tar_archive_unprefixed",
            repository=f"{owner}/{name}",
            branch=branch,
            prefix=prefix,
            entries=len(unprefixed),
        )
        return unprefixed

    # ========================
    # Client Management
    # ========================

    @property
    def base_url(self) -> httpx.URL:
        return self._base_url

    @property
    def stats(self) -> ClientStats:
        """Get client usage statistics."""
        return self._stats

    def close(self) -> None:
        """Close the underlying HTTP client if this client owns it."""
        if self._owns_client:
            self._http.close()
        logger.debug(
            "tarball_client_closed",
            requests=self._stats.requests,
            bytes_downloaded=self._stats.bytes_downloaded,
            errors=self._stats.errors,
        )

    def __enter__(self) -> "TarballClient":
        return self

    def __exit__(self, *args: object) -> None:
        self.close()
