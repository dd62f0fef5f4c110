"""
Resolve whether a single action reference points at an immutable release.
"""

import logging
from dataclasses import dataclass

from immutable_guard.classifier import is_full_sha
from immutable_guard.github.release_client import (
    LookupFault,
    LookupResult,
    Release,
    ReleaseLookup,
    ReleaseNotFound,
)

logger = logging.getLogger(__name__)

MSG_FULL_SHA = "Immutable (full SHA reference)"
MSG_IMMUTABLE_RELEASE = "Immutable release"
MSG_MUTABLE_RELEASE = "Mutable release"
MSG_NO_RELEASE = "No release found for this reference"
MSG_API_ERROR = "API error: {}"


@dataclass(frozen=True)
class ResolutionOutcome:
    """Result of resolving one reference."""
    immutable: bool
    release_found: bool
    message: str


class ImmutabilityResolver:
    """
    Classifies owner/repo@ref via a ReleaseLookup.

    Full commit SHAs short-circuit without a lookup. Every other ref costs
    exactly one call to the lookup. resolve() never raises: failures become
    a mutable outcome whose message starts with "API error: ".
    """

    def __init__(self, lookup: ReleaseLookup):
        self.lookup = lookup

    def resolve(self, owner: str, repo: str, ref: str) -> ResolutionOutcome:
        if is_full_sha(ref):
            return ResolutionOutcome(immutable=True, release_found=False, message=MSG_FULL_SHA)

        try:
            result: LookupResult = self.lookup.get_release_by_tag(owner, repo, ref)
        except Exception as e:  # noqa: BLE001  # a lookup bug must not abort the run
            result = LookupFault(detail=str(e) or type(e).__name__)

        if isinstance(result, Release):
            if result.immutable is True:
                return ResolutionOutcome(immutable=True, release_found=True, message=MSG_IMMUTABLE_RELEASE)
            return ResolutionOutcome(immutable=False, release_found=True, message=MSG_MUTABLE_RELEASE)

        if isinstance(result, ReleaseNotFound):
            return ResolutionOutcome(immutable=False, release_found=False, message=MSG_NO_RELEASE)

        if isinstance(result, LookupFault):
            detail = result.detail
        else:
            detail = f"unexpected lookup result {result!r}"
        logger.warning("API error checking %s/%s@%s: %s", owner, repo, ref, detail)
        return ResolutionOutcome(immutable=False, release_found=False, message=MSG_API_ERROR.format(detail))
