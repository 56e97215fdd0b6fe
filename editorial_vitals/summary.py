from __future__ import annotations

from dataclasses import dataclass, field

from editorial_vitals.models import SiteRecord

CRITICAL_BELOW = 50
HEALTHY_FROM = 90
DEVICES = ("mobile", "desktop")


@dataclass
class HealthSummary:
    device: str
    average_score: int
    site_count: int
    critical: list[str] = field(default_factory=list)
    regular: list[str] = field(default_factory=list)
    healthy: list[str] = field(default_factory=list)
    other_device_average: int | None = None
    trend_diff: int | None = None
    worst_sites: list[str] = field(default_factory=list)


def _other_device(device: str) -> str:
    return "mobile" if device == "desktop" else "desktop"


def _rounded_mean(values: list[int]) -> int:
    # Half rounds up, the way the dashboard displays averages.
    return int(sum(values) / len(values) + 0.5)


def _history_score(record: SiteRecord, index: int, device: str) -> int:
    entry = record.history[index]
    return entry.desktop_score if device == "desktop" else entry.score


def status_for_score(score: int) -> str:
    if score >= HEALTHY_FROM:
        return "healthy"
    if score >= CRITICAL_BELOW:
        return "regular"
    return "critical"


def summarize_health(records: list[SiteRecord], device: str = "mobile") -> HealthSummary:
    """Average, buckets, trend and worst sites over sites that have a score for ``device``.

    Sites with score 0 are treated as having no data and are left out.
    """
    valid = [record for record in records if record.device_score(device) > 0]
    summary = HealthSummary(
        device=device,
        average_score=_rounded_mean([r.device_score(device) for r in valid]) if valid else 0,
        site_count=len(valid),
    )
    for record in valid:
        bucket = getattr(summary, status_for_score(record.device_score(device)))
        bucket.append(record.site_name)

    other = _other_device(device)
    other_scores = [r.device_score(other) for r in records if r.device_score(other) > 0]
    if other_scores:
        summary.other_device_average = _rounded_mean(other_scores)

    with_history = [
        record
        for record in valid
        if len(record.history) >= 2 and _history_score(record, -2, device) > 0
    ]
    if with_history:
        previous_avg = _rounded_mean([_history_score(r, -2, device) for r in with_history])
        current_avg = _rounded_mean([r.device_score(device) for r in with_history])
        summary.trend_diff = current_avg - previous_avg

    worst = sorted(valid, key=lambda r: r.device_score(device))[:3]
    summary.worst_sites = [record.site_name for record in worst]
    return summary


def rank_sites(records: list[SiteRecord], device: str = "mobile") -> list[SiteRecord]:
    return sorted(records, key=lambda r: r.device_score(device), reverse=True)


def latest_update_date(records: list[SiteRecord]) -> str:
    dates = [record.date for record in records if record.date]
    return max(dates) if dates else ""
