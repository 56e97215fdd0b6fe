from __future__ import annotations

import logging
import math
from typing import Any

import requests

from editorial_vitals.models import (
    STATUS_FAILED,
    STATUS_OK,
    STATUS_UNAVAILABLE,
    MISSING,
    FetchOutcome,
    LabSample,
)
from editorial_vitals.pacing import SleepPacer

logger = logging.getLogger(__name__)

STRATEGIES = {"mobile": "MOBILE", "desktop": "DESKTOP"}


def _audit_display(audits: dict[str, Any], key: str, default: object = MISSING) -> object:
    audit = audits.get(key)
    if not isinstance(audit, dict):
        return default
    value = audit.get("displayValue")
    if value in (None, ""):
        return default
    return value


def sample_from_lighthouse(lighthouse: dict[str, Any]) -> LabSample:
    categories = lighthouse.get("categories") or {}
    performance = categories.get("performance") or {}
    raw_score = performance.get("score")
    score = int(math.floor(float(raw_score) * 100 + 0.5)) if raw_score is not None else 0
    audits = lighthouse.get("audits") or {}
    return LabSample(
        score=score,
        lcp=_audit_display(audits, "largest-contentful-paint", 0),
        cls=_audit_display(audits, "cumulative-layout-shift", 0),
        tbt=_audit_display(audits, "total-blocking-time", 0),
        fcp=_audit_display(audits, "first-contentful-paint"),
        speed_index=_audit_display(audits, "speed-index"),
        ttfb=_audit_display(audits, "server-response-time"),
    )


class PageSpeedClient:
    """PageSpeed Insights lab runs with a bounded fixed-pause retry on non-200."""

    ENDPOINT = "https://www.googleapis.com/pagespeedonline/v5/runPagespeed"

    def __init__(
        self,
        api_key: str = "",
        timeout_sec: int = 40,
        max_attempts: int = 3,
        retry_pause_sec: float = 2.0,
        pacer: SleepPacer | None = None,
        session: requests.Session | None = None,
    ) -> None:
        self.api_key = api_key.strip()
        self.timeout_sec = max(1, int(timeout_sec))
        self.max_attempts = max(1, int(max_attempts))
        self.retry_pause_sec = max(0.0, float(retry_pause_sec))
        self.pacer = pacer or SleepPacer()
        self._session = session

    def _get(self, params: dict[str, str]) -> requests.Response:
        requester = self._session.get if self._session is not None else requests.get
        return requester(self.ENDPOINT, params=params, timeout=self.timeout_sec)

    def fetch(self, url: str, device: str = "mobile") -> FetchOutcome[LabSample]:
        strategy = STRATEGIES.get(device, "MOBILE")
        params = {
            "url": url,
            "category": "PERFORMANCE",
            "strategy": strategy,
        }
        if self.api_key:
            params["key"] = self.api_key

        try:
            for attempt in range(1, self.max_attempts + 1):
                response = self._get(params)
                if response.status_code != 200:
                    if attempt >= self.max_attempts:
                        detail = (response.text or "").strip()[:100]
                        logger.error(
                            "PSI lab failed for %s (%s), attempt %s/%s: %s",
                            url,
                            strategy,
                            attempt,
                            self.max_attempts,
                            detail,
                        )
                        return FetchOutcome(
                            STATUS_FAILED,
                            LabSample.error(),
                            cause=f"HTTP {response.status_code} after {attempt} attempts",
                        )
                    logger.warning(
                        "Retrying PSI lab for %s (%s/%s)",
                        url,
                        attempt,
                        self.max_attempts,
                    )
                    self.pacer.pause(self.retry_pause_sec)
                    continue

                payload = response.json()
                lighthouse = payload.get("lighthouseResult") if isinstance(payload, dict) else None
                if not isinstance(lighthouse, dict) or not lighthouse:
                    return FetchOutcome(
                        STATUS_UNAVAILABLE,
                        LabSample.empty(),
                        cause="Response has no lighthouseResult.",
                    )
                return FetchOutcome(STATUS_OK, sample_from_lighthouse(lighthouse))
        except Exception as exc:  # noqa: BLE001
            logger.error("PSI lab request crashed for %s (%s): %s", url, strategy, exc)
            return FetchOutcome(STATUS_FAILED, LabSample.error(), cause=str(exc))
        return FetchOutcome(STATUS_FAILED, LabSample.error(), cause="No attempt was made.")
