"""Rule-based classification of share-of-voice rows."""

from typing import Iterable, List, NamedTuple

from ..models import DecisionBucket, DecisionEntry, SOVRow

HIGH_POPULARITY = 60.0
LOW_SHARE = 0.2


class Recommendation(NamedTuple):
    bucket: DecisionBucket
    action: str
    reason: str


RECOMMENDATIONS = {
    DecisionBucket.AUCTION_LIMITED: Recommendation(
        DecisionBucket.AUCTION_LIMITED,
        "increase-bid-or-budget",
        "High popularity with low share",
    ),
    DecisionBucket.CONVERSION_LIMITED: Recommendation(
        DecisionBucket.CONVERSION_LIMITED,
        "improve-asa-cvr-surface",
        "Receiving share but no installs",
    ),
    DecisionBucket.VOLUME_LIMITED: Recommendation(
        DecisionBucket.VOLUME_LIMITED,
        "expand-keyword-coverage",
        "Low popularity and/or constrained volume",
    ),
}


def classify(popularity: float, share: float, installs: int) -> Recommendation:
    """Classify a keyword by popularity, impression share and installs.

    Rules are checked in order:

    1. popularity >= 60 and share < 0.2: auction-limited
    2. share >= 0.2 and no installs: conversion-limited
    3. anything else: volume-limited

    :param popularity: Search popularity (0-100)
    :type popularity: float
    :param share: Impression share as a fraction
    :type share: float
    :param installs: Installs attributed to the keyword
    :type installs: int
    :return: Bucket with its recommended action and reason
    :rtype: Recommendation
    """
    if popularity >= HIGH_POPULARITY and share < LOW_SHARE:
        return RECOMMENDATIONS[DecisionBucket.AUCTION_LIMITED]
    if share >= LOW_SHARE and installs == 0:
        return RECOMMENDATIONS[DecisionBucket.CONVERSION_LIMITED]
    return RECOMMENDATIONS[DecisionBucket.VOLUME_LIMITED]


def decide(row: SOVRow) -> DecisionEntry:
    recommendation = classify(row.popularity, row.impression_share, row.installs)
    return DecisionEntry(
        keyword=row.keyword,
        popularity=row.popularity,
        share=row.impression_share,
        rank=row.rank,
        bucket=recommendation.bucket,
        action=recommendation.action,
        reason=recommendation.reason,
    )


def build_decision_table(rows: Iterable[SOVRow]) -> List[DecisionEntry]:
    """Classify every row, preserving input order."""
    return [decide(row) for row in rows]
