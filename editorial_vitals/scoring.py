from __future__ import annotations

# (metric, tier-1 threshold, tier-1 penalty, tier-2 threshold, tier-2 penalty).
# LCP and FCP thresholds are seconds; INP and TTFB are milliseconds.
PENALTY_TABLE: tuple[tuple[str, float, int, float, int], ...] = (
    ("lcp", 2.5, 20, 4.0, 30),
    ("cls", 0.1, 20, 0.25, 30),
    ("inp", 200.0, 20, 500.0, 30),
    ("fcp", 1.8, 10, 3.0, 15),
    ("ttfb", 800.0, 10, 1800.0, 15),
)

MAX_SCORE = 100


def metric_penalty(metric: str, value: float | None) -> int:
    """Penalty for one metric; tiers stack, so a tier-2 breach costs both."""
    if value is None:
        return 0
    for name, tier1, tier1_penalty, tier2, tier2_penalty in PENALTY_TABLE:
        if name != metric:
            continue
        penalty = 0
        if value > tier1:
            penalty += tier1_penalty
        if value > tier2:
            penalty += tier2_penalty
        return penalty
    raise ValueError(f"Unknown metric for scoring: {metric}")


def estimate_field_score(
    *,
    lcp_ms: float | None = None,
    cls: float | None = None,
    inp_ms: float | None = None,
    fcp_ms: float | None = None,
    ttfb_ms: float | None = None,
) -> int:
    """Heuristic 0-100 health score from raw p75 field values.

    This is a proxy for dashboard ranking, not Google's own rating. Absent
    metrics are not penalized.
    """
    values = {
        "lcp": lcp_ms / 1000.0 if lcp_ms is not None else None,
        "cls": cls,
        "inp": inp_ms,
        "fcp": fcp_ms / 1000.0 if fcp_ms is not None else None,
        "ttfb": ttfb_ms,
    }
    score = MAX_SCORE
    for metric, value in values.items():
        score -= metric_penalty(metric, value)
    return max(0, score)
