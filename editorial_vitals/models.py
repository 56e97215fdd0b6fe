from __future__ import annotations

from dataclasses import dataclass, field
from typing import Generic, TypeVar, Union

Cell = Union[str, int, float]

STATUS_OK = "ok"
STATUS_UNAVAILABLE = "unavailable"
STATUS_FAILED = "failed"

SCORE_NO_DATA = "No Data"
SCORE_ERROR = "Error"
MISSING = "-"


@dataclass(frozen=True)
class MetricSample:
    """Field (CrUX) p75 values for one URL and device, already display-formatted."""

    score: Cell
    lcp: Cell = MISSING
    cls: Cell = MISSING
    inp: Cell = MISSING
    fcp: Cell = MISSING
    ttfb: Cell = MISSING

    @classmethod
    def no_data(cls) -> "MetricSample":
        return cls(score=SCORE_NO_DATA)

    @classmethod
    def error(cls) -> "MetricSample":
        return cls(score=SCORE_ERROR)

    @classmethod
    def placeholder(cls) -> "MetricSample":
        # Story columns when no top article was resolved.
        return cls(score="")


@dataclass(frozen=True)
class LabSample:
    """Lighthouse (PageSpeed Insights) result for one URL and strategy."""

    score: Cell
    lcp: Cell = 0
    cls: Cell = 0
    tbt: Cell = 0
    fcp: Cell = MISSING
    speed_index: Cell = MISSING
    ttfb: Cell = MISSING

    @classmethod
    def empty(cls) -> "LabSample":
        return cls(score=0)

    @classmethod
    def error(cls) -> "LabSample":
        return cls(score=SCORE_ERROR)


@dataclass(frozen=True)
class TopArticle:
    url: str = ""
    title: str = ""
    views: int = 0


@dataclass(frozen=True)
class GlobalAnalytics:
    active_users: int = 0
    views: int = 0
    bounce_rate: float = 0.0
    avg_session_duration: float = 0.0
    sessions: int = 0


SampleT = TypeVar("SampleT")


@dataclass(frozen=True)
class FetchOutcome(Generic[SampleT]):
    """Tagged result of one provider call.

    ``sample`` always holds something writable to the row store; for the
    unavailable/failed statuses it is the matching sentinel sample.
    """

    status: str
    sample: SampleT
    cause: str = ""

    @property
    def ok(self) -> bool:
        return self.status == STATUS_OK

    @property
    def unavailable(self) -> bool:
        return self.status == STATUS_UNAVAILABLE

    @property
    def failed(self) -> bool:
        return self.status == STATUS_FAILED


@dataclass
class FieldSnapshot:
    url: str = ""
    score: int = 0
    lcp: str = ""
    cls: str = ""
    inp: str = ""
    fcp: str = MISSING
    ttfb: str = MISSING


@dataclass
class ArticleSnapshot:
    url: str = ""
    title: str = ""
    views: int = 0
    score: int = 0
    lcp: str = ""
    cls: str = ""
    inp: str = ""


@dataclass
class LabSnapshot:
    score: int = 0
    lcp: str = ""
    cls: str = ""
    tbt: str = ""
    fcp: str = MISSING
    speed_index: str = MISSING
    ttfb: str = MISSING


@dataclass
class AnalyticsSnapshot:
    active_users: int = 0
    views: int = 0
    bounce_rate: float = 0.0
    avg_session_duration: float = 0.0
    sessions: int = 0


@dataclass
class HistoryEntry:
    date: str
    score: int
    desktop_score: int
    lab_score: int
    lcp: str
    lab_lcp: str


@dataclass
class SiteRecord:
    site_name: str
    date: str = ""
    home: FieldSnapshot = field(default_factory=FieldSnapshot)
    article: ArticleSnapshot = field(default_factory=ArticleSnapshot)
    lab: LabSnapshot = field(default_factory=LabSnapshot)
    desktop: FieldSnapshot = field(default_factory=FieldSnapshot)
    lab_desktop: LabSnapshot = field(default_factory=LabSnapshot)
    article_desktop: ArticleSnapshot = field(default_factory=ArticleSnapshot)
    analytics: AnalyticsSnapshot = field(default_factory=AnalyticsSnapshot)
    history: list[HistoryEntry] = field(default_factory=list)

    def device_score(self, device: str) -> int:
        if device == "desktop":
            return self.desktop.score
        return self.home.score


# Column order of the row log. Durable: old sheets and the ingestion fallback
# schema both depend on it, so only ever append new columns at the end.
ROW_COLUMNS: tuple[str, ...] = (
    "Date",
    "Site Name",
    "Home URL",
    "Home Score",
    "Home LCP",
    "Home CLS",
    "Home INP",
    "Top Story URL",
    "Story Score",
    "Story LCP",
    "Story CLS",
    "Story INP",
    "Method Used",
    "Lab Score",
    "Lab LCP",
    "Lab CLS",
    "Lab TBT",
    "Home FCP",
    "Home TTFB",
    "Lab FCP",
    "Lab Speed Index",
    "Lab TTFB",
    "Story Title",
    "Story Views",
    "Desktop Score",
    "Desktop LCP",
    "Desktop CLS",
    "Desktop INP",
    "Desktop FCP",
    "Desktop TTFB",
    "Lab Desktop Score",
    "Lab Desktop LCP",
    "Lab Desktop CLS",
    "Lab Desktop TBT",
    "Lab Desktop FCP",
    "Lab Desktop Speed Index",
    "Lab Desktop TTFB",
    "Story Desktop Score",
    "Story Desktop LCP",
    "Story Desktop CLS",
    "Story Desktop INP",
    "Active Users",
    "Total Views",
    "Bounce Rate",
    "Avg Session Duration",
    "Sessions",
)
