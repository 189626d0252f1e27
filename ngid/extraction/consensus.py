"""Frequency and dominant-prefix consensus over identifier candidates.

A single label OCR'd many times converges on one true identifier while
misreads scatter. Candidates are tallied, grouped by their five
character prefix (``NG`` + first three digits), and only those that are
both frequent and inside the dominant prefix group are accepted. When no
prefix dominates, a higher frequency floor applies instead.
"""

from collections import Counter
from collections.abc import Iterable
from dataclasses import dataclass, field

from ngid.utils.config import ConsensusConfig, DominancePolicy
from ngid.utils.logger import get_logger

from .normalizer import normalize_lines

logger = get_logger(__name__)

PREFIX_LENGTH = 5


@dataclass(frozen=True)
class ConsensusThresholds:
    """Thresholds resolved for one aggregation call."""

    dominance_ratio: float
    min_count: int
    fallback_count: int


@dataclass
class ConsensusResult:
    """Everything the aggregator decided for one aggregation scope."""

    accepted: frozenset[str]
    tally: Counter[str]
    prefix_groups: dict[str, int]
    dominant_prefix: str | None
    thresholds: ConsensusThresholds
    rejected: list[str] = field(default_factory=list)

    def sorted_ids(self) -> list[str]:
        """Accepted identifiers in lexicographic order."""
        return sorted(self.accepted)


def resolve_thresholds(
    per_image: bool, strict: bool, config: ConsensusConfig | None = None
) -> ConsensusThresholds:
    """Pick the dominance ratio and count floors for a scope and tier.

    Args:
        per_image: Whether the candidates come from a single image.
        strict: Whether the stricter count tier applies.
        config: Consensus configuration; defaults when omitted.
    """
    config = config or ConsensusConfig()
    ratio = config.per_image_ratio if per_image else config.global_ratio
    if strict:
        return ConsensusThresholds(
            ratio, config.strict_min_count, config.strict_fallback_count
        )
    return ConsensusThresholds(ratio, config.min_count, config.fallback_count)


def tally_candidates(candidates: Iterable[str]) -> Counter[str]:
    """Count occurrences of each distinct candidate."""
    return Counter(candidates)


def group_prefixes(tally: Counter[str]) -> dict[str, int]:
    """Count distinct candidates per prefix, in first-seen order."""
    groups: dict[str, int] = {}
    for candidate in tally:
        prefix = candidate[:PREFIX_LENGTH]
        groups[prefix] = groups.get(prefix, 0) + 1
    return groups


def find_dominant_prefix(
    prefix_groups: dict[str, int],
    total_distinct: int,
    ratio: float,
    policy: DominancePolicy = DominancePolicy.HIGHEST,
) -> str | None:
    """Find the prefix shared by a large enough share of distinct candidates.

    ``HIGHEST`` takes the largest group (earliest seen on ties) and checks
    it against the ratio. ``FIRST`` takes the earliest seen group that
    reaches the ratio. For ratios of 0.5 and above both agree.

    Args:
        prefix_groups: Distinct-candidate count per prefix.
        total_distinct: Number of distinct candidates.
        ratio: Minimum share of distinct candidates.
        policy: Selection policy.

    Returns:
        The dominant prefix, or ``None``.
    """
    if not prefix_groups or total_distinct == 0:
        return None

    if policy == DominancePolicy.FIRST:
        for prefix, count in prefix_groups.items():
            if count / total_distinct >= ratio:
                return prefix
        return None

    prefix, count = max(prefix_groups.items(), key=lambda item: item[1])
    if count / total_distinct >= ratio:
        return prefix
    return None


def build_consensus(
    candidates: Iterable[str],
    per_image: bool = True,
    strict: bool = False,
    config: ConsensusConfig | None = None,
) -> ConsensusResult:
    """Aggregate candidates and keep the detailed decision.

    Args:
        candidates: Candidate multiset for one aggregation scope.
        per_image: Whether the scope is a single source image.
        strict: Whether the stricter count tier applies.
        config: Consensus configuration; defaults when omitted.

    Returns:
        Tally, prefix groups, dominant prefix and the accepted set.
    """
    config = config or ConsensusConfig()
    thresholds = resolve_thresholds(per_image, strict, config)
    tally = tally_candidates(candidates)
    groups = group_prefixes(tally)
    dominant = find_dominant_prefix(
        groups, len(tally), thresholds.dominance_ratio, config.policy
    )

    accepted: set[str] = set()
    rejected: list[str] = []
    for candidate, count in tally.items():
        if dominant is not None:
            keep = candidate.startswith(dominant) and count >= thresholds.min_count
        else:
            keep = count >= thresholds.fallback_count
        if keep:
            accepted.add(candidate)
        else:
            rejected.append(candidate)

    logger.debug(
        "Consensus over %d candidates (%d distinct): dominant=%s, accepted=%d",
        sum(tally.values()),
        len(tally),
        dominant,
        len(accepted),
    )
    return ConsensusResult(
        accepted=frozenset(accepted),
        tally=tally,
        prefix_groups=groups,
        dominant_prefix=dominant,
        thresholds=thresholds,
        rejected=rejected,
    )


def aggregate(
    candidates: Iterable[str],
    per_image: bool = True,
    strict: bool = False,
    config: ConsensusConfig | None = None,
) -> frozenset[str]:
    """Select the trustworthy identifiers from a candidate multiset."""
    return build_consensus(candidates, per_image, strict, config).accepted


def extract_ids(
    lines: Iterable[str],
    per_image: bool = True,
    strict: bool = False,
    config: ConsensusConfig | None = None,
) -> ConsensusResult:
    """Normalize raw OCR lines and run consensus over the candidates.

    Args:
        lines: Every raw line gathered for the aggregation scope.
        per_image: Whether the lines come from a single source image.
        strict: Whether the stricter count tier applies.
        config: Consensus configuration; defaults when omitted.
    """
    return build_consensus(normalize_lines(lines), per_image, strict, config)
