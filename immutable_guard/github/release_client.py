"""
GitHub releases API client.

Looks up the release published for a tag and reports whether GitHub has
marked it immutable. Failures come back as values, never as exceptions:
a missing release is `ReleaseNotFound`, anything else is `LookupFault`.
"""

import logging
import time
from dataclasses import dataclass
from typing import Optional, Protocol, Union
from urllib.parse import quote

import requests

logger = logging.getLogger(__name__)

DEFAULT_API_URL = "https://api.github.com"
DEFAULT_TIMEOUT = 10.0
API_VERSION = "2022-11-28"


@dataclass(frozen=True)
class Release:
    """A published release. `immutable` is None when the API omits the field."""
    tag: str
    immutable: Optional[bool] = None


@dataclass(frozen=True)
class ReleaseNotFound:
    """No release exists for the tag (branches, short SHAs, bare tags)."""


@dataclass(frozen=True)
class LookupFault:
    """The lookup failed for some other reason (network, rate limit, server error)."""
    detail: str


LookupResult = Union[Release, ReleaseNotFound, LookupFault]


class ReleaseLookup(Protocol):
    def get_release_by_tag(self, owner: str, repo: str, tag: str) -> LookupResult:
        ...


class GitHubReleaseClient:
    """ReleaseLookup backed by the GitHub REST API."""

    def __init__(
        self,
        token: str,
        api_url: str = DEFAULT_API_URL,
        timeout: float = DEFAULT_TIMEOUT,
        session: Optional[requests.Session] = None,
    ):
        self.api_url = api_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.headers.update({
            "Accept": "application/vnd.github+json",
            "Authorization": f"Bearer {token}",
            "X-GitHub-Api-Version": API_VERSION,
        })

    def _release_url(self, owner: str, repo: str, tag: str) -> str:
        return "{}/repos/{}/{}/releases/tags/{}".format(
            self.api_url,
            quote(owner, safe=""),
            quote(repo, safe=""),
            quote(tag, safe=""),
        )

    def get_release_by_tag(self, owner: str, repo: str, tag: str) -> LookupResult:
        url = self._release_url(owner, repo, tag)
        logger.debug("GET %s", url)

        t0 = time.monotonic()
        try:
            response = self.session.get(url, timeout=self.timeout)
        except requests.RequestException as e:
            return LookupFault(detail=str(e) or type(e).__name__)
        elapsed_ms = (time.monotonic() - t0) * 1000
        logger.debug(
            "%s/%s@%s: HTTP %d in %.0fms",
            owner, repo, tag, response.status_code, elapsed_ms,
        )

        if response.status_code == 404:
            return ReleaseNotFound()

        try:
            data = response.json()
        except ValueError:
            data = None

        if not response.ok:
            message = data.get("message") if isinstance(data, dict) else None
            return LookupFault(detail=message or f"HTTP {response.status_code} {response.reason}")

        if not isinstance(data, dict):
            return LookupFault(detail="Malformed release response")

        immutable = data.get("immutable")
        return Release(
            tag=str(data.get("tag_name", tag)),
            immutable=immutable if isinstance(immutable, bool) else None,
        )
