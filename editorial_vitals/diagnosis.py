from __future__ import annotations

from dataclasses import dataclass, field

from editorial_vitals.ingestion import leading_float
from editorial_vitals.models import SiteRecord
from editorial_vitals.scoring import PENALTY_TABLE

SEVERITY_WARNING = "warning"
SEVERITY_CRITICAL = "critical"

# Checked in this order; the server and first paint come before the rest.
DIAGNOSIS_ORDER = ("ttfb", "fcp", "lcp", "cls", "inp")

ISSUE_CODES = {
    "ttfb": "SRV",
    "fcp": "CSS",
    "lcp": "IMG",
    "cls": "LAY",
    "inp": "JS",
}

ISSUE_MESSAGES = {
    "ttfb": (
        "Server takes {value} to respond. Check CDN caching and origin "
        "configuration; ad scripts can make this worse."
    ),
    "fcp": (
        "First content takes {value} to appear. Ad and tracking scripts block "
        "the initial render."
    ),
    "lcp": (
        "Main content takes {value} to load. Ad slots compete with the article "
        "for network and CPU."
    ),
    "cls": (
        "Layout shifts while loading (CLS: {value}). Dynamic modules are "
        "injected without reserved space."
    ),
    "inp": (
        "Interactions respond slowly ({value}). Commercial scripts keep the "
        "main thread busy."
    ),
}

VIEWS = ("home", "desktop", "article", "article_desktop")


@dataclass(frozen=True)
class Issue:
    metric: str
    code: str
    severity: str
    message: str


@dataclass
class Diagnosis:
    status: str
    summary: str
    issues: list[Issue] = field(default_factory=list)


def _thresholds() -> dict[str, tuple[float, float]]:
    return {name: (tier1, tier2) for name, tier1, _, tier2, _ in PENALTY_TABLE}


def diagnose_metrics(
    *,
    lcp: object = None,
    cls: object = None,
    inp: object = None,
    fcp: object = None,
    ttfb: object = None,
) -> Diagnosis:
    """Flag every metric over its threshold.

    Values are display strings as stored in the row log ("2.10s", "150ms",
    "0.05"); anything without a leading number ("-", "") is skipped.
    """
    raw = {"lcp": lcp, "cls": cls, "inp": inp, "fcp": fcp, "ttfb": ttfb}
    thresholds = _thresholds()
    issues: list[Issue] = []
    for metric in DIAGNOSIS_ORDER:
        value = leading_float(raw[metric])
        if value is None:
            continue
        warning_above, critical_above = thresholds[metric]
        if value <= warning_above:
            continue
        issues.append(
            Issue(
                metric=metric,
                code=ISSUE_CODES[metric],
                severity=SEVERITY_CRITICAL if value > critical_above else SEVERITY_WARNING,
                message=ISSUE_MESSAGES[metric].format(value=raw[metric]),
            )
        )

    if not issues:
        return Diagnosis(
            status="excellent",
            summary="All metrics are within the recommended ranges.",
        )

    critical = sum(1 for issue in issues if issue.severity == SEVERITY_CRITICAL)
    if critical:
        plural = "s" if critical > 1 else ""
        return Diagnosis(
            status=SEVERITY_CRITICAL,
            summary=f"{critical} metric{plural} in critical state.",
            issues=issues,
        )
    plural = "s" if len(issues) > 1 else ""
    return Diagnosis(
        status=SEVERITY_WARNING,
        summary=f"{len(issues)} area{plural} with room for improvement.",
        issues=issues,
    )


def diagnose_record(record: SiteRecord, view: str = "home") -> Diagnosis:
    if view not in VIEWS:
        raise ValueError(f"Unknown view: {view}")
    snapshot = getattr(record, view)
    return diagnose_metrics(
        lcp=snapshot.lcp,
        cls=snapshot.cls,
        inp=snapshot.inp,
        fcp=getattr(snapshot, "fcp", None),
        ttfb=getattr(snapshot, "ttfb", None),
    )
