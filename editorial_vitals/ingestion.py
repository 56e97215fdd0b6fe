"""Fold the append-only row log into one record per site.

Rows are folded in the order they appear in the export. The store is only
ever appended to by the daily run, so that order is taken to be
chronological; the Date column is not used for sorting. A back-filled or
reordered sheet therefore yields history in sheet order.
"""

from __future__ import annotations

import re

from editorial_vitals.models import (
    MISSING,
    ROW_COLUMNS,
    AnalyticsSnapshot,
    ArticleSnapshot,
    FieldSnapshot,
    HistoryEntry,
    LabSnapshot,
    SiteRecord,
)

LEGACY_SITE_NAMES = {
    "Metro PR": "Metro Puerto Rico",
    "Metro Colombia": "Publimetro Colombia",
}

_LEADING_INT = re.compile(r"^\s*[+-]?\d+")
_LEADING_FLOAT = re.compile(r"^\s*[+-]?(\d+(\.\d*)?|\.\d+)([eE][+-]?\d+)?")


def split_csv_line(line: str) -> list[str]:
    """Comma split that respects double quotes; doubled quotes are not unescaped."""
    fields: list[str] = []
    current: list[str] = []
    in_quotes = False
    for char in line:
        if char == '"':
            in_quotes = not in_quotes
        elif char == "," and not in_quotes:
            fields.append("".join(current))
            current = []
        else:
            current.append(char)
    fields.append("".join(current))
    return fields


def parse_int(value: str | None) -> int:
    match = _LEADING_INT.match(value or "")
    return int(match.group(0)) if match else 0


def leading_float(value: object) -> float | None:
    """Leading number of a display value ("2.10s" -> 2.1), or None if there is none."""
    match = _LEADING_FLOAT.match(str(value) if value is not None else "")
    return float(match.group(0)) if match else None


def parse_float(value: str | None) -> float:
    parsed = leading_float(value)
    return parsed if parsed is not None else 0.0


def normalize_score(value: str | None) -> int:
    if not value or value in ("N/A", "Error"):
        return 0
    return parse_int(value)


def canonical_site_name(raw: str | None) -> str:
    name = raw or ""
    return LEGACY_SITE_NAMES.get(name, name)


def _or_missing(value: str | None) -> str:
    return value if value else MISSING


def _split_lines(text: str) -> list[str]:
    lines = [line.rstrip("\r") for line in text.split("\n")]
    return [line for line in lines if line.strip()]


def parse_rows(text: str) -> list[dict[str, str]]:
    """Raw text to flat column -> value maps, one per data line."""
    lines = _split_lines(text or "")
    if not lines:
        return []

    first = lines[0]
    if first.startswith("Date") or first.startswith("Site"):
        headers = [name.strip() for name in split_csv_line(first)]
        data_lines = lines[1:]
    else:
        headers = list(ROW_COLUMNS)
        data_lines = lines

    rows: list[dict[str, str]] = []
    for line in data_lines:
        values = split_csv_line(line)
        row: dict[str, str] = {}
        for index, header in enumerate(headers):
            row[header] = values[index].strip() if index < len(values) else ""
        rows.append(row)
    return rows


def record_from_row(row: dict[str, str]) -> SiteRecord:
    get = row.get
    return SiteRecord(
        site_name=canonical_site_name(get("Site Name")),
        date=get("Date", ""),
        home=FieldSnapshot(
            url=get("Home URL", ""),
            score=normalize_score(get("Home Score")),
            lcp=get("Home LCP", ""),
            cls=get("Home CLS", ""),
            inp=get("Home INP", ""),
            fcp=_or_missing(get("Home FCP")),
            ttfb=_or_missing(get("Home TTFB")),
        ),
        article=ArticleSnapshot(
            url=get("Top Story URL", ""),
            title=get("Story Title", ""),
            views=parse_int(get("Story Views")),
            score=normalize_score(get("Story Score")),
            lcp=get("Story LCP", ""),
            cls=get("Story CLS", ""),
            inp=get("Story INP", ""),
        ),
        lab=LabSnapshot(
            score=normalize_score(get("Lab Score")),
            lcp=get("Lab LCP", ""),
            cls=get("Lab CLS", ""),
            tbt=get("Lab TBT", ""),
            fcp=_or_missing(get("Lab FCP")),
            speed_index=_or_missing(get("Lab Speed Index")),
            ttfb=_or_missing(get("Lab TTFB")),
        ),
        desktop=FieldSnapshot(
            url=get("Home URL", ""),
            score=normalize_score(get("Desktop Score")),
            lcp=_or_missing(get("Desktop LCP")),
            cls=_or_missing(get("Desktop CLS")),
            inp=_or_missing(get("Desktop INP")),
            fcp=_or_missing(get("Desktop FCP")),
            ttfb=_or_missing(get("Desktop TTFB")),
        ),
        lab_desktop=LabSnapshot(
            score=normalize_score(get("Lab Desktop Score")),
            lcp=_or_missing(get("Lab Desktop LCP")),
            cls=_or_missing(get("Lab Desktop CLS")),
            tbt=_or_missing(get("Lab Desktop TBT")),
            fcp=_or_missing(get("Lab Desktop FCP")),
            speed_index=_or_missing(get("Lab Desktop Speed Index")),
            ttfb=_or_missing(get("Lab Desktop TTFB")),
        ),
        article_desktop=ArticleSnapshot(
            url=get("Top Story URL", ""),
            title=get("Story Title", ""),
            views=parse_int(get("Story Views")),
            score=normalize_score(get("Story Desktop Score")),
            lcp=_or_missing(get("Story Desktop LCP")),
            cls=_or_missing(get("Story Desktop CLS")),
            inp=_or_missing(get("Story Desktop INP")),
        ),
        analytics=AnalyticsSnapshot(
            active_users=parse_int(get("Active Users")),
            views=parse_int(get("Total Views")),
            bounce_rate=parse_float(get("Bounce Rate")),
            avg_session_duration=parse_float(get("Avg Session Duration")),
            sessions=parse_int(get("Sessions")),
        ),
    )


def history_entry(record: SiteRecord) -> HistoryEntry:
    return HistoryEntry(
        date=record.date,
        score=record.home.score,
        desktop_score=record.desktop.score,
        lab_score=record.lab.score,
        lcp=record.home.lcp,
        lab_lcp=record.lab.lcp,
    )


def fold_records(records: list[SiteRecord]) -> list[SiteRecord]:
    """Last row wins for current fields; every row adds one history entry."""
    by_name: dict[str, SiteRecord] = {}
    for record in records:
        if not record.site_name:
            continue
        previous = by_name.get(record.site_name)
        history = previous.history if previous is not None else []
        history.append(history_entry(record))
        record.history = history
        by_name[record.site_name] = record
    return list(by_name.values())


def ingest_csv(text: str) -> list[SiteRecord]:
    return fold_records([record_from_row(row) for row in parse_rows(text)])
