# app/domains/compatibility/scorer.py
"""
Compatibility score between two profiles.

Per dimension the overlap is a Dice coefficient, 2|A & B| / (|A| + |B|).
For interests each profile's main interest (its first entry) weighs 2 so a
shared main interest counts double. Dimensions where either profile is empty
are skipped and the remaining weights renormalised. The result is an integer
0-100, symmetric and deterministic; it is used for ranking only.
"""
from fractions import Fraction
from typing import Dict, List, Optional, Sequence

DIMENSION_WEIGHTS = {
    "interests": Fraction(6, 10),
    "looking_for": Fraction(25, 100),
    "values": Fraction(15, 100),
}

MAIN_INTEREST_WEIGHT = 2


def _normalise(items: Optional[Sequence[str]]) -> List[str]:
    seen = []
    for item in items or []:
        value = str(item).strip().lower()
        if value and value not in seen:
            seen.append(value)
    return seen


def _weighted(items: List[str], main_weight: int = 1) -> Dict[str, int]:
    weights = {item: 1 for item in items}
    if items:
        weights[items[0]] = main_weight
    return weights


def _dice(a: Dict[str, int], b: Dict[str, int]) -> Fraction:
    total = sum(a.values()) + sum(b.values())
    if not total:
        return Fraction(0)
    shared = sum(a[k] + b[k] for k in a.keys() & b.keys())
    return Fraction(shared, total)


def compute_score(a, b) -> int:
    """Score two profiles (anything with interests/looking_for/values)"""
    total_weight = Fraction(0)
    score = Fraction(0)

    for dimension, weight in DIMENSION_WEIGHTS.items():
        left = _normalise(getattr(a, dimension, None))
        right = _normalise(getattr(b, dimension, None))
        if not left or not right:
            continue
        main_weight = MAIN_INTEREST_WEIGHT if dimension == "interests" else 1
        score += weight * _dice(_weighted(left, main_weight), _weighted(right, main_weight))
        total_weight += weight

    if not total_weight:
        return 0
    # round half up
    value = int(score / total_weight * 100 + Fraction(1, 2))
    return max(0, min(100, value))


def shared_interests(a, b) -> List[dict]:
    """Shared interests in a's order, flagging either side's main interest"""
    left = _normalise(getattr(a, "interests", None))
    right = _normalise(getattr(b, "interests", None))
    mains = {items[0] for items in (left, right) if items}

    shared = []
    for interest in left:
        if interest not in right:
            continue
        is_main = interest in mains
        shared.append({
            "interest": interest,
            "weight": MAIN_INTEREST_WEIGHT if is_main else 1,
            "isMain": is_main,
        })
    return shared
