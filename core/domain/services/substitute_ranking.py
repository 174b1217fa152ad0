"""
Substitute ranking.

Pure scoring of candidate products against an unavailable cart item.
Deterministic for identical inputs; ties keep input order.
"""
from dataclasses import dataclass
from typing import List, Sequence

from ..entities import CartItem, ProductInfo, SubstituteScoreBreakdown

PRICE_WEIGHT = 0.35
BRAND_WEIGHT = 0.25
CATEGORY_WEIGHT = 0.25
RATING_WEIGHT = 0.15

BRAND_MISMATCH_SCORE = 0.5
CATEGORY_MISMATCH_SCORE = 0.6
DEFAULT_RATING_SCORE = 0.5
SIMILAR_PRICE_THRESHOLD = 0.9
GOOD_RATING_THRESHOLD = 4.0


@dataclass(frozen=True)
class RankedSubstitute:
    product: ProductInfo
    score: float
    breakdown: SubstituteScoreBreakdown
    reason: str


def price_score(original_price: float, candidate_price: float) -> float:
    """1.0 at equal price, decaying linearly with relative price delta."""
    if original_price <= 0:
        return 1.0 if candidate_price == original_price else 0.0
    delta = abs(candidate_price - original_price) / original_price
    return max(0.0, 1.0 - delta)


def brand_score(original: CartItem, candidate: ProductInfo) -> float:
    if original.brand and candidate.brand and candidate.brand.lower() == original.brand.lower():
        return 1.0
    return BRAND_MISMATCH_SCORE


def category_score(original: CartItem, candidate: ProductInfo) -> float:
    if original.category:
        needle = original.category.lower()
        if any(needle in segment.lower() for segment in candidate.category_path):
            return 1.0
    return CATEGORY_MISMATCH_SCORE


def rating_score(candidate: ProductInfo) -> float:
    if candidate.rating:
        return candidate.rating / 5
    return DEFAULT_RATING_SCORE


def score_substitute(original: CartItem, candidate: ProductInfo) -> RankedSubstitute:
    """Score a single candidate."""
    breakdown = SubstituteScoreBreakdown(
        price_score=price_score(original.price, candidate.price),
        brand_score=brand_score(original, candidate),
        category_score=category_score(original, candidate),
        rating_score=rating_score(candidate),
    )
    score = (
        breakdown.price_score * PRICE_WEIGHT
        + breakdown.brand_score * BRAND_WEIGHT
        + breakdown.category_score * CATEGORY_WEIGHT
        + breakdown.rating_score * RATING_WEIGHT
    )

    reasons: List[str] = []
    if breakdown.brand_score == 1.0:
        reasons.append("Same brand")
    if breakdown.price_score > SIMILAR_PRICE_THRESHOLD:
        reasons.append("Similar price")
    if candidate.rating and candidate.rating >= GOOD_RATING_THRESHOLD:
        reasons.append(f"{candidate.rating:g} stars")

    return RankedSubstitute(
        product=candidate,
        score=score,
        breakdown=breakdown,
        reason=", ".join(reasons) or "Best available match",
    )


def rank_substitutes(
    original: CartItem, candidates: Sequence[ProductInfo]
) -> List[RankedSubstitute]:
    """
    Score and rank substitute candidates, best first.

    Args:
        original: The unavailable cart item
        candidates: Purchasable candidates, in search-result order

    Returns:
        Candidates sorted by descending composite score
    """
    scored = [score_substitute(original, candidate) for candidate in candidates]
    # sorted() is stable, so equal scores keep search order
    return sorted(scored, key=lambda ranked: ranked.score, reverse=True)
