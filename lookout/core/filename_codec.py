"""
Filename codec for prefix expansion.

A multi-prefix file name looks like ``PBCC_20240101_news_v1.mxf``: the first
of exactly four underscore-separated segments is a run of two-character
prefix pairs. Expansion fans it out into one file per valid pair:
``PB_20240101_news_v1.mxf`` and ``CC_20240101_news_v1.mxf``.
"""

from dataclasses import dataclass, field
from typing import List

from lookout.core.exceptions import NotExpandableError
from lookout.utils.file_operations import split_extension

SEGMENT_SEPARATOR = "_"
SEGMENT_COUNT = 4
PAIR_LENGTH = 2
VALID_PAIR_LEADERS = frozenset("PBC")

FORMAT_MISMATCH = "Filename does not match the required format for expansion."
TOO_FEW_PREFIXES = "File does not contain multiple valid prefixes to expand."


@dataclass(frozen=True)
class ExpansionPlan:
    original_name: str
    prefix_pairs: List[str]
    segments: List[str]
    extension: str
    target_names: List[str] = field(default_factory=list)

    @property
    def count(self) -> int:
        return len(self.target_names)


def extract_prefix_pairs(prefix_segment: str) -> List[str]:
    """
    Split the prefix segment into valid, distinct pairs in order.

    Empty or odd-length segments yield nothing. Pairs whose first character
    (case-insensitive) is not P, B or C are skipped.
    """
    if not prefix_segment or len(prefix_segment) % PAIR_LENGTH != 0:
        return []

    pairs: List[str] = []
    for i in range(0, len(prefix_segment), PAIR_LENGTH):
        pair = prefix_segment[i:i + PAIR_LENGTH]
        if pair[0].upper() in VALID_PAIR_LEADERS and pair not in pairs:
            pairs.append(pair)
    return pairs


def build_expanded_name(pair: str, segments: List[str], extension: str) -> str:
    return SEGMENT_SEPARATOR.join([pair, *segments]) + extension


def plan_expansion(file_name: str) -> ExpansionPlan:
    """
    Raises:
        NotExpandableError: wrong segment count, or fewer than two valid prefixes.
    """
    stem, extension = split_extension(file_name)
    parts = stem.split(SEGMENT_SEPARATOR)
    if len(parts) != SEGMENT_COUNT:
        raise NotExpandableError(FORMAT_MISMATCH)

    pairs = extract_prefix_pairs(parts[0])
    if len(pairs) <= 1:
        raise NotExpandableError(TOO_FEW_PREFIXES)

    segments = parts[1:]
    return ExpansionPlan(
        original_name=file_name,
        prefix_pairs=pairs,
        segments=segments,
        extension=extension,
        target_names=[build_expanded_name(pair, segments, extension) for pair in pairs],
    )


def is_expandable(file_name: str) -> bool:
    try:
        plan_expansion(file_name)
    except NotExpandableError:
        return False
    return True
