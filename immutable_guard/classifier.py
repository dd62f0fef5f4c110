"""
Reference classification that needs no network access.

First-party owners already publish immutable releases and are exempt from
checking. A full commit SHA is bound to fixed content, so it is immutable
without asking the API.
"""

import re
from typing import AbstractSet

TRUSTED_OWNERS: frozenset[str] = frozenset({"actions", "github", "octokit"})

_FULL_SHA = re.compile(r"[0-9a-fA-F]{40}")


def is_exempt(owner: str, trusted_owners: AbstractSet[str] = TRUSTED_OWNERS) -> bool:
    """True if the owner is trusted (case-sensitive)."""
    return owner in trusted_owners


def is_full_sha(ref: str) -> bool:
    """True if ref is exactly 40 hex characters."""
    return bool(_FULL_SHA.fullmatch(ref))
