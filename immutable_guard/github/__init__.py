from .release_client import (
    GitHubReleaseClient,
    LookupFault,
    LookupResult,
    Release,
    ReleaseLookup,
    ReleaseNotFound,
)

__all__ = [
    "GitHubReleaseClient",
    "LookupFault",
    "LookupResult",
    "Release",
    "ReleaseLookup",
    "ReleaseNotFound",
]
