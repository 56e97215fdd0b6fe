from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date, datetime
from zoneinfo import ZoneInfo

from editorial_vitals.clients.crux_client import CruxClient
from editorial_vitals.clients.ga4_client import GA4Client
from editorial_vitals.clients.pagespeed_client import PageSpeedClient
from editorial_vitals.config import CollectorConfig, SiteConfig
from editorial_vitals.models import (
    Cell,
    FetchOutcome,
    GlobalAnalytics,
    LabSample,
    MetricSample,
    ROW_COLUMNS,
    TopArticle,
)
from editorial_vitals.pacing import SleepPacer

logger = logging.getLogger(__name__)

METHOD_TAG = "Automated"


@dataclass(frozen=True)
class SiteSnapshot:
    """Everything fetched for one site in one run, before flattening."""

    site: SiteConfig
    home_mobile: MetricSample
    home_desktop: MetricSample
    lab_mobile: LabSample
    lab_desktop: LabSample
    article: TopArticle
    article_mobile: MetricSample
    article_desktop: MetricSample
    analytics: GlobalAnalytics
    # (source, cause) for every provider call that failed outright.
    failures: tuple[tuple[str, str], ...] = ()


@dataclass
class CollectionReport:
    run_date: str
    appended: list[str] = field(default_factory=list)
    failed: list[tuple[str, str]] = field(default_factory=list)
    # (site, source, cause): the row was saved, but with sentinel cells.
    degraded: list[tuple[str, str, str]] = field(default_factory=list)


def build_row(run_date: str, snapshot: SiteSnapshot) -> list[Cell]:
    site = snapshot.site
    home = snapshot.home_mobile
    desktop = snapshot.home_desktop
    lab = snapshot.lab_mobile
    lab_desktop = snapshot.lab_desktop
    story = snapshot.article_mobile
    story_desktop = snapshot.article_desktop
    article = snapshot.article
    analytics = snapshot.analytics
    row: list[Cell] = [
        run_date,
        site.name,
        site.url,
        home.score,
        home.lcp,
        home.cls,
        home.inp,
        article.url,
        story.score,
        story.lcp,
        story.cls,
        story.inp,
        METHOD_TAG,
        lab.score,
        lab.lcp,
        lab.cls,
        lab.tbt,
        home.fcp,
        home.ttfb,
        lab.fcp,
        lab.speed_index,
        lab.ttfb,
        article.title,
        article.views,
        desktop.score,
        desktop.lcp,
        desktop.cls,
        desktop.inp,
        desktop.fcp,
        desktop.ttfb,
        lab_desktop.score,
        lab_desktop.lcp,
        lab_desktop.cls,
        lab_desktop.tbt,
        lab_desktop.fcp,
        lab_desktop.speed_index,
        lab_desktop.ttfb,
        story_desktop.score,
        story_desktop.lcp,
        story_desktop.cls,
        story_desktop.inp,
        analytics.active_users,
        analytics.views,
        analytics.bounce_rate,
        analytics.avg_session_duration,
        analytics.sessions,
    ]
    if len(row) != len(ROW_COLUMNS):
        raise RuntimeError(f"Row has {len(row)} cells, expected {len(ROW_COLUMNS)}.")
    return row


def local_run_date(timezone: str) -> date:
    try:
        return datetime.now(ZoneInfo(timezone)).date()
    except Exception:  # noqa: BLE001
        logger.warning("Unknown timezone %r, falling back to system local date.", timezone)
        return date.today()


class DailyCollector:
    """Sequential per-site fetch, row assembly and append.

    Calls are never parallel: the pauses between them keep CrUX and PSI
    under their per-minute quotas.
    """

    def __init__(
        self,
        config: CollectorConfig,
        store,
        field_client: CruxClient,
        lab_client: PageSpeedClient,
        analytics_client: GA4Client | None = None,
        pacer: SleepPacer | None = None,
    ) -> None:
        self.config = config
        self.store = store
        self.field_client = field_client
        self.lab_client = lab_client
        self.analytics_client = analytics_client
        self.pacer = pacer or SleepPacer()

    @classmethod
    def from_config(cls, config: CollectorConfig, store) -> "DailyCollector":
        pacer = SleepPacer()
        analytics_client = None
        if config.ga4_enabled:
            analytics_client = GA4Client(
                credentials_path=config.ga4_credentials_path,
                timeout_sec=config.http_timeout_sec,
            )
        return cls(
            config=config,
            store=store,
            field_client=CruxClient(
                api_key=config.pagespeed_api_key,
                timeout_sec=config.http_timeout_sec,
            ),
            lab_client=PageSpeedClient(
                api_key=config.pagespeed_api_key,
                timeout_sec=config.http_timeout_sec,
                max_attempts=config.lab_max_attempts,
                retry_pause_sec=config.lab_retry_pause_sec,
                pacer=pacer,
            ),
            analytics_client=analytics_client,
            pacer=pacer,
        )

    def collect_site(self, site: SiteConfig) -> SiteSnapshot:
        failures: list[tuple[str, str]] = []

        def sample_of(outcome: FetchOutcome, source: str):
            if outcome.failed:
                failures.append((source, outcome.cause))
            return outcome.sample

        home_mobile = sample_of(self.field_client.fetch(site.url, "mobile"), "field mobile")
        self.pacer.pause(self.config.field_pause_sec)
        home_desktop = sample_of(self.field_client.fetch(site.url, "desktop"), "field desktop")

        lab_mobile = sample_of(self.lab_client.fetch(site.url, "mobile"), "lab mobile")
        self.pacer.pause(self.config.lab_pause_sec)
        lab_desktop = sample_of(self.lab_client.fetch(site.url, "desktop"), "lab desktop")

        article = TopArticle()
        if self.analytics_client is not None:
            article = self.analytics_client.fetch_top_article(
                site.analytics_property_id,
                site.url,
            )

        article_mobile = MetricSample.placeholder()
        article_desktop = MetricSample.placeholder()
        if article.url:
            article_mobile = sample_of(
                self.field_client.fetch(article.url, "mobile"), "story field mobile"
            )
            self.pacer.pause(self.config.field_pause_sec)
            article_desktop = sample_of(
                self.field_client.fetch(article.url, "desktop"), "story field desktop"
            )
            self.pacer.pause(self.config.field_pause_sec)

        analytics = GlobalAnalytics()
        if self.analytics_client is not None:
            analytics = self.analytics_client.fetch_global_analytics(
                site.analytics_property_id
            )

        return SiteSnapshot(
            site=site,
            home_mobile=home_mobile,
            home_desktop=home_desktop,
            lab_mobile=lab_mobile,
            lab_desktop=lab_desktop,
            article=article,
            article_mobile=article_mobile,
            article_desktop=article_desktop,
            analytics=analytics,
            failures=tuple(failures),
        )

    def run(self, run_date: date | None = None) -> CollectionReport:
        run_day = run_date or local_run_date(self.config.timezone)
        date_str = run_day.strftime("%Y-%m-%d")
        report = CollectionReport(run_date=date_str)

        for site in self.config.sites:
            logger.info("Collecting %s", site.name)
            try:
                snapshot = self.collect_site(site)
                row = build_row(date_str, snapshot)
            except Exception as exc:  # noqa: BLE001
                logger.error("Collection failed for %s: %s", site.name, exc)
                report.failed.append((site.name, str(exc)))
                self.pacer.pause(self.config.site_pause_sec)
                continue

            try:
                self.store.append_row(row)
                report.appended.append(site.name)
                for source, cause in snapshot.failures:
                    report.degraded.append((site.name, source, cause))
                logger.info("Saved row for %s", site.name)
            except Exception as exc:  # noqa: BLE001
                logger.error("Saving row failed for %s: %s", site.name, exc)
                report.failed.append((site.name, str(exc)))

            self.pacer.pause(self.config.site_pause_sec)
        return report
