from editorial_vitals.models import FieldSnapshot, HistoryEntry, SiteRecord
from editorial_vitals.summary import (
    latest_update_date,
    rank_sites,
    status_for_score,
    summarize_health,
)


def _record(name: str, mobile: int, desktop: int = 0, date: str = "2026-01-02", previous: int | None = None) -> SiteRecord:
    history = []
    if previous is not None:
        history.append(HistoryEntry("2026-01-01", previous, 0, 0, "-", "-"))
    history.append(HistoryEntry(date, mobile, desktop, 0, "-", "-"))
    return SiteRecord(
        site_name=name,
        date=date,
        home=FieldSnapshot(score=mobile),
        desktop=FieldSnapshot(score=desktop),
        history=history,
    )


def test_status_thresholds():
    assert status_for_score(49) == "critical"
    assert status_for_score(50) == "regular"
    assert status_for_score(89) == "regular"
    assert status_for_score(90) == "healthy"


def test_summary_buckets_and_average_skip_sites_without_data():
    records = [
        _record("A", 95, desktop=80),
        _record("B", 40),
        _record("C", 70, desktop=91),
        _record("D", 0),
    ]
    summary = summarize_health(records, "mobile")

    assert summary.site_count == 3
    assert summary.average_score == 68  # (95 + 40 + 70) / 3 = 68.33
    assert summary.healthy == ["A"]
    assert summary.regular == ["C"]
    assert summary.critical == ["B"]
    assert summary.other_device_average == 86  # (80 + 91) / 2 = 85.5
    assert summary.worst_sites == ["B", "C", "A"]
    assert summary.trend_diff is None


def test_trend_compares_sites_with_two_entries():
    records = [
        _record("A", 80, previous=70),
        _record("B", 60, previous=70),
        _record("C", 50),
    ]
    summary = summarize_health(records, "mobile")
    assert summary.trend_diff == 0

    records = [_record("A", 90, previous=70)]
    assert summarize_health(records, "mobile").trend_diff == 20


def test_empty_records_give_zero_average():
    summary = summarize_health([], "desktop")
    assert summary.average_score == 0
    assert summary.site_count == 0
    assert summary.other_device_average is None
    assert summary.worst_sites == []


def test_rank_and_latest_date():
    records = [
        _record("A", 60, desktop=90, date="2026-01-02"),
        _record("B", 80, desktop=70, date="2026-01-03"),
        _record("C", 70, desktop=0, date=""),
    ]
    assert [r.site_name for r in rank_sites(records, "mobile")] == ["B", "C", "A"]
    assert [r.site_name for r in rank_sites(records, "desktop")] == ["A", "B", "C"]
    assert latest_update_date(records) == "2026-01-03"
    assert latest_update_date([]) == ""
