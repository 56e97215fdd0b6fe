from __future__ import annotations

import logging
from typing import Any
from urllib.parse import urlparse

import requests

from editorial_vitals.models import (
    STATUS_FAILED,
    STATUS_OK,
    STATUS_UNAVAILABLE,
    MISSING,
    FetchOutcome,
    MetricSample,
)
from editorial_vitals.scoring import estimate_field_score

logger = logging.getLogger(__name__)

FORM_FACTORS = {"mobile": "PHONE", "desktop": "DESKTOP"}

CRUX_METRICS = (
    "largest_contentful_paint",
    "cumulative_layout_shift",
    "interaction_to_next_paint",
    "first_contentful_paint",
    "experimental_time_to_first_byte",
)


def _parse_float(value: object) -> float | None:
    if value in (None, ""):
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def _parse_crux_p75(metrics: dict[str, Any], keys: tuple[str, ...]) -> float | None:
    for key in keys:
        row = metrics.get(key)
        if not isinstance(row, dict):
            continue
        percentiles = row.get("percentiles")
        if not isinstance(percentiles, dict):
            continue
        value = _parse_float(percentiles.get("p75"))
        if value is None:
            continue
        return value
    return None


def _format_seconds(value_ms: float | None) -> str:
    if value_ms is None:
        return MISSING
    return f"{value_ms / 1000.0:.2f}s"


def _format_millis(value_ms: float | None) -> str:
    if value_ms is None:
        return MISSING
    return f"{int(round(value_ms))}ms"


def _crux_target(url: str) -> dict[str, str]:
    # Bare origins are queried as origin records, anything with a path as a page record.
    parsed = urlparse(url.strip())
    scheme = parsed.scheme or "https"
    host = (parsed.netloc or parsed.path).strip().rstrip("/")
    path = parsed.path if parsed.netloc else ""
    if not path or path == "/":
        return {"origin": f"{scheme}://{host}"}
    return {"url": url.strip()}


def sample_from_crux_metrics(metrics: dict[str, Any]) -> MetricSample:
    lcp_ms = _parse_crux_p75(metrics, ("largest_contentful_paint",))
    cls = _parse_crux_p75(metrics, ("cumulative_layout_shift",))
    inp_ms = _parse_crux_p75(metrics, ("interaction_to_next_paint",))
    fcp_ms = _parse_crux_p75(metrics, ("first_contentful_paint",))
    ttfb_ms = _parse_crux_p75(
        metrics,
        ("experimental_time_to_first_byte", "time_to_first_byte"),
    )
    score = estimate_field_score(
        lcp_ms=lcp_ms,
        cls=cls,
        inp_ms=inp_ms,
        fcp_ms=fcp_ms,
        ttfb_ms=ttfb_ms,
    )
    return MetricSample(
        score=score,
        lcp=_format_seconds(lcp_ms),
        cls=cls if cls is not None else MISSING,
        inp=_format_millis(inp_ms),
        fcp=_format_seconds(fcp_ms),
        ttfb=_format_millis(ttfb_ms),
    )


class CruxClient:
    """Chrome UX Report field data, one request per call and no retries."""

    ENDPOINT = "https://chromeuxreport.googleapis.com/v1/records:queryRecord"

    def __init__(
        self,
        api_key: str,
        timeout_sec: int = 40,
        session: requests.Session | None = None,
    ) -> None:
        self.api_key = api_key.strip()
        self.timeout_sec = max(1, int(timeout_sec))
        self._session = session

    def _post(self, body: dict[str, Any]) -> requests.Response:
        requester = self._session.post if self._session is not None else requests.post
        return requester(
            self.ENDPOINT,
            params={"key": self.api_key},
            json=body,
            timeout=self.timeout_sec,
        )

    def fetch(self, url: str, device: str = "mobile") -> FetchOutcome[MetricSample]:
        form_factor = FORM_FACTORS.get(device, "PHONE")
        body = {
            **_crux_target(url),
            "formFactor": form_factor,
            "metrics": list(CRUX_METRICS),
        }
        try:
            response = self._post(body)
            if response.status_code != 200:
                logger.info(
                    "CrUX has no data for %s (%s): HTTP %s",
                    url,
                    form_factor,
                    response.status_code,
                )
                return FetchOutcome(
                    STATUS_UNAVAILABLE,
                    MetricSample.no_data(),
                    cause=f"HTTP {response.status_code}",
                )
            payload = response.json()
            record = payload.get("record") if isinstance(payload, dict) else None
            metrics = record.get("metrics") if isinstance(record, dict) else None
            if not isinstance(metrics, dict) or not metrics:
                return FetchOutcome(
                    STATUS_UNAVAILABLE,
                    MetricSample.no_data(),
                    cause="Response has no record metrics.",
                )
            return FetchOutcome(STATUS_OK, sample_from_crux_metrics(metrics))
        except Exception as exc:  # noqa: BLE001
            logger.warning("CrUX fetch failed for %s (%s): %s", url, form_factor, exc)
            return FetchOutcome(STATUS_FAILED, MetricSample.error(), cause=str(exc))
