from __future__ import annotations

import logging
from typing import Any

from google.auth.transport.requests import AuthorizedSession

from editorial_vitals.clients.google_credentials import load_service_account_credentials
from editorial_vitals.models import GlobalAnalytics, TopArticle

logger = logging.getLogger(__name__)

TOP_ARTICLE_CANDIDATES = 20
ERROR_TITLE_MARKERS = ("404", "error", "not found", "página no encontrada")
ERROR_PATH_MARKERS = ("/404", "/error", "/500")
YESTERDAY = {"startDate": "yesterday", "endDate": "yesterday"}


def is_article_path(page_path: str, page_title: str) -> bool:
    """Heuristic: a real story is not the home, not an error page, and at least two levels deep."""
    if page_path in ("", "/"):
        return False
    lower_title = page_title.lower()
    lower_path = page_path.lower()
    if any(marker in lower_title for marker in ERROR_TITLE_MARKERS):
        return False
    if any(marker in lower_path for marker in ERROR_PATH_MARKERS):
        return False
    segments = [part for part in page_path.split("/") if part]
    return len(segments) >= 2


class GA4Client:
    """GA4 Data API client (REST) for the daily per-site traffic columns."""

    SCOPES = ["https://www.googleapis.com/auth/analytics.readonly"]
    API_BASE = "https://analyticsdata.googleapis.com/v1beta"

    def __init__(self, credentials_path: str, timeout_sec: int = 40) -> None:
        self.credentials_path = credentials_path.strip()
        self.timeout_sec = max(1, int(timeout_sec))
        self._session: AuthorizedSession | None = None

    @staticmethod
    def _normalize_property_id(raw: str) -> str:
        value = raw.strip()
        if value.startswith("properties/"):
            value = value.split("/", 1)[1]
        return value

    def _build_session(self) -> AuthorizedSession:
        if self._session is not None:
            return self._session
        creds = load_service_account_credentials(
            self.credentials_path,
            self.SCOPES,
            "GA4 Data API",
        )
        self._session = AuthorizedSession(creds)
        return self._session

    def _run_report(self, property_id: str, body: dict[str, Any]) -> dict[str, Any]:
        normalized = self._normalize_property_id(property_id)
        if not normalized:
            raise RuntimeError("GA4 property ID is missing.")
        session = self._build_session()
        url = f"{self.API_BASE}/properties/{normalized}:runReport"
        response = session.post(url, json=body, timeout=self.timeout_sec)
        if not response.ok:
            detail = response.text.strip()
            if len(detail) > 400:
                detail = detail[:397] + "..."
            raise RuntimeError(
                f"GA4 Data API request failed ({response.status_code}): {detail or 'No response body.'}"
            )
        payload = response.json()
        if isinstance(payload, dict):
            return payload
        raise RuntimeError("GA4 Data API returned non-object payload.")

    @staticmethod
    def _metric_text(row: dict[str, Any], index: int) -> str:
        values = row.get("metricValues", [])
        if not isinstance(values, list) or index >= len(values):
            return ""
        raw = values[index]
        if not isinstance(raw, dict):
            return ""
        return str(raw.get("value", "") or "").strip()

    @classmethod
    def _metric_int(cls, row: dict[str, Any], index: int) -> int:
        text = cls._metric_text(row, index)
        try:
            return int(float(text))
        except (TypeError, ValueError, OverflowError):
            return 0

    @classmethod
    def _metric_float(cls, row: dict[str, Any], index: int) -> float:
        text = cls._metric_text(row, index)
        try:
            return float(text)
        except (TypeError, ValueError):
            return 0.0

    @staticmethod
    def _dimension_text(row: dict[str, Any], index: int) -> str:
        dims = row.get("dimensionValues", [])
        if not isinstance(dims, list) or index >= len(dims) or not isinstance(dims[index], dict):
            return ""
        return str(dims[index].get("value", "") or "").strip()

    def fetch_top_article(self, property_id: str, site_url: str) -> TopArticle:
        """Most viewed story path of yesterday, or an empty article when none qualifies."""
        body = {
            "dimensions": [{"name": "pagePath"}, {"name": "pageTitle"}],
            "metrics": [{"name": "screenPageViews"}],
            "dateRanges": [dict(YESTERDAY)],
            "orderBys": [{"metric": {"metricName": "screenPageViews"}, "desc": True}],
            "limit": TOP_ARTICLE_CANDIDATES,
        }
        try:
            payload = self._run_report(property_id, body)
        except Exception as exc:  # noqa: BLE001
            logger.error("GA4 top article query failed for property %s: %s", property_id, exc)
            return TopArticle()

        rows = payload.get("rows", [])
        if not isinstance(rows, list) or not rows:
            logger.warning("GA4 returned no rows for property %s", property_id)
            return TopArticle()

        site_origin = site_url.strip().rstrip("/")
        for row in rows:
            if not isinstance(row, dict):
                continue
            page_path = self._dimension_text(row, 0)
            page_title = self._dimension_text(row, 1)
            if not is_article_path(page_path, page_title):
                continue
            views = self._metric_int(row, 0)
            logger.info("Top story for %s: %s (%s views)", site_origin, page_title, views)
            return TopArticle(url=site_origin + page_path, title=page_title, views=views)

        logger.warning("No qualifying story found for %s", site_origin)
        return TopArticle()

    def fetch_global_analytics(self, property_id: str) -> GlobalAnalytics:
        body = {
            "metrics": [
                {"name": "activeUsers"},
                {"name": "screenPageViews"},
                {"name": "bounceRate"},
                {"name": "averageSessionDuration"},
                {"name": "sessions"},
            ],
            "dateRanges": [dict(YESTERDAY)],
        }
        try:
            payload = self._run_report(property_id, body)
        except Exception as exc:  # noqa: BLE001
            logger.error("GA4 global query failed for property %s: %s", property_id, exc)
            return GlobalAnalytics()

        rows = payload.get("rows", [])
        if not isinstance(rows, list) or not rows or not isinstance(rows[0], dict):
            logger.warning("GA4 returned no global rows for property %s", property_id)
            return GlobalAnalytics()

        row = rows[0]
        return GlobalAnalytics(
            active_users=self._metric_int(row, 0),
            views=self._metric_int(row, 1),
            bounce_rate=self._metric_float(row, 2),
            avg_session_duration=self._metric_float(row, 3),
            sessions=self._metric_int(row, 4),
        )
