"""
Aggregation engine: deduplicates action references, resolves each unique one
once, and groups the results per workflow file.
"""

import logging
import time
from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import AbstractSet, Any, Iterable, Optional

from immutable_guard.classifier import TRUSTED_OWNERS, is_exempt
from immutable_guard.parser.workflow_parser import ExternalReference
from immutable_guard.resolver import ImmutabilityResolver, ResolutionOutcome

logger = logging.getLogger(__name__)

MSG_FIRST_PARTY = "First-party action"


class Category(Enum):
    FIRST_PARTY = "first-party"
    IMMUTABLE = "immutable"
    MUTABLE = "mutable"


@dataclass(frozen=True)
class ClassifiedReference:
    """An ExternalReference annotated with its classification."""
    raw_specifier: str
    owner: str
    repo: str
    ref: str
    source_file: str
    job_name: str
    step_name: str
    line_number: Optional[int]
    category: Category
    immutable: bool
    message: str
    release_found: bool

    @classmethod
    def build(
        cls,
        reference: ExternalReference,
        category: Category,
        outcome: ResolutionOutcome,
    ) -> "ClassifiedReference":
        return cls(
            raw_specifier=reference.raw_specifier,
            owner=reference.owner,
            repo=reference.repo,
            ref=reference.ref,
            source_file=reference.source_file,
            job_name=reference.job_name,
            step_name=reference.step_name,
            line_number=reference.line_number,
            category=category,
            immutable=outcome.immutable,
            message=outcome.message,
            release_found=outcome.release_found,
        )

    @property
    def display_name(self) -> str:
        return f"{self.owner}/{self.repo}@{self.ref}"

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["category"] = self.category.value
        return data


@dataclass(frozen=True)
class FileReport:
    """Classified references of one workflow file, unique within the file."""
    mutable: tuple[ClassifiedReference, ...] = ()
    immutable: tuple[ClassifiedReference, ...] = ()
    first_party: tuple[ClassifiedReference, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        return {
            "mutable": [r.to_dict() for r in self.mutable],
            "immutable": [r.to_dict() for r in self.immutable],
            "first_party": [r.to_dict() for r in self.first_party],
        }


@dataclass(frozen=True)
class AggregatedReport:
    """Result of one run. Flat lists are unique across all files."""
    mutable: tuple[ClassifiedReference, ...] = ()
    immutable: tuple[ClassifiedReference, ...] = ()
    first_party: tuple[ClassifiedReference, ...] = ()
    by_file: dict[str, FileReport] = field(default_factory=dict)

    @property
    def all_passed(self) -> bool:
        return len(self.mutable) == 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "mutable": [r.to_dict() for r in self.mutable],
            "immutable": [r.to_dict() for r in self.immutable],
            "first_party": [r.to_dict() for r in self.first_party],
            "by_file": {name: fr.to_dict() for name, fr in self.by_file.items()},
        }


class ResolutionCache:
    """Run-scoped map from raw specifier to (category, outcome). Write-once per key."""

    def __init__(self) -> None:
        self._entries: dict[str, tuple[Category, ResolutionOutcome]] = {}

    def __contains__(self, key: str) -> bool:
        return key in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def put(self, key: str, category: Category, outcome: ResolutionOutcome) -> None:
        if key in self._entries:
            raise ValueError(f"Resolution for {key!r} already recorded")
        self._entries[key] = (category, outcome)

    def get(self, key: str) -> tuple[Category, ResolutionOutcome]:
        return self._entries[key]


def _unique(references: Iterable[ExternalReference]) -> list[ExternalReference]:
    """Keep the first reference for each raw specifier, preserving order."""
    seen: dict[str, ExternalReference] = {}
    for ref in references:
        seen.setdefault(ref.raw_specifier, ref)
    return list(seen.values())


class AggregationEngine:
    """
    Turns parsed references into an AggregatedReport.

    Trusted owners are reported as first-party without any lookup. Every other
    unique raw specifier is resolved exactly once per aggregate() call, and
    the result is reused for every file and step that references it.
    """

    def __init__(
        self,
        resolver: ImmutabilityResolver,
        trusted_owners: AbstractSet[str] = TRUSTED_OWNERS,
    ):
        self.resolver = resolver
        self.trusted_owners = trusted_owners

    def aggregate(self, references: Iterable[ExternalReference]) -> AggregatedReport:
        references = list(references)
        t0 = time.monotonic()
        cache = ResolutionCache()

        exempt = [r for r in references if is_exempt(r.owner, self.trusted_owners)]
        checked = [r for r in references if not is_exempt(r.owner, self.trusted_owners)]

        first_party = []
        first_party_outcome = ResolutionOutcome(immutable=True, release_found=False, message=MSG_FIRST_PARTY)
        for ref in _unique(exempt):
            cache.put(ref.raw_specifier, Category.FIRST_PARTY, first_party_outcome)
            first_party.append(ClassifiedReference.build(ref, Category.FIRST_PARTY, first_party_outcome))

        mutable = []
        immutable = []
        unique_checked = _unique(checked)
        logger.info(
            "Resolving %d unique third-party reference(s) (%d total, %d first-party)",
            len(unique_checked), len(checked), len(first_party),
        )
        for ref in unique_checked:
            logger.info("Checking %s/%s@%s...", ref.owner, ref.repo, ref.ref)
            outcome = self.resolver.resolve(ref.owner, ref.repo, ref.ref)
            category = Category.IMMUTABLE if outcome.immutable else Category.MUTABLE
            cache.put(ref.raw_specifier, category, outcome)
            classified = ClassifiedReference.build(ref, category, outcome)
            if outcome.immutable:
                immutable.append(classified)
            else:
                mutable.append(classified)

        by_file = self._group_by_file(references, cache)

        total_ms = (time.monotonic() - t0) * 1000
        logger.info(
            "Completed: %d mutable, %d immutable, %d first-party across %d file(s) in %.1fms",
            len(mutable), len(immutable), len(first_party), len(by_file), total_ms,
        )
        return AggregatedReport(
            mutable=tuple(mutable),
            immutable=tuple(immutable),
            first_party=tuple(first_party),
            by_file=by_file,
        )

    @staticmethod
    def _group_by_file(
        references: list[ExternalReference],
        cache: ResolutionCache,
    ) -> dict[str, FileReport]:
        grouped: dict[str, list[ExternalReference]] = {}
        for ref in references:
            grouped.setdefault(ref.source_file, []).append(ref)

        by_file = {}
        for source_file, file_refs in grouped.items():
            lists: dict[Category, list[ClassifiedReference]] = {c: [] for c in Category}
            for ref in _unique(file_refs):
                category, outcome = cache.get(ref.raw_specifier)
                lists[category].append(ClassifiedReference.build(ref, category, outcome))
            by_file[source_file] = FileReport(
                mutable=tuple(lists[Category.MUTABLE]),
                immutable=tuple(lists[Category.IMMUTABLE]),
                first_party=tuple(lists[Category.FIRST_PARTY]),
            )
        return by_file
