from __future__ import annotations

import json
import os
from dataclasses import dataclass
from pathlib import Path


def _env(name: str, default: str = "") -> str:
    raw = os.environ.get(name)
    if raw is None:
        return default.strip()
    value = raw.strip()
    placeholder = f"{name}="
    unquoted = value.strip("'\"").strip()
    if unquoted.lower() == placeholder.lower():
        return default.strip()
    return value if value else default.strip()


def _env_float(name: str, default: float) -> float:
    raw = _env(name)
    return float(raw) if raw else default


def _env_int(name: str, default: int) -> int:
    raw = _env(name)
    return int(raw) if raw else default


@dataclass(frozen=True)
class SiteConfig:
    name: str
    url: str
    analytics_property_id: str

    @property
    def origin(self) -> str:
        return self.url.strip().rstrip("/")


DEFAULT_SITES: tuple[SiteConfig, ...] = (
    SiteConfig("Publimetro MX", "https://www.publimetro.com.mx/", "267948860"),
    SiteConfig("Metro Puerto Rico", "https://www.metro.pr/", "301150515"),
    SiteConfig("Metro Ecuador", "https://www.metroecuador.com.ec/", "268003463"),
    SiteConfig("MWN", "https://www.metroworldnews.com/", "283971315"),
    SiteConfig("Publimetro Colombia", "https://www.publimetro.co/", "268737997"),
    SiteConfig("Publimetro Guatemala", "https://www.publinews.gt/", "422453464"),
    SiteConfig("Publimetro Chile", "https://www.publimetro.cl/", "251598898"),
    SiteConfig("Nueva Mujer", "https://www.nuevamujer.com/", "268739443"),
    SiteConfig("Fayerwayer", "https://www.fayerwayer.com/", "268947931"),
    SiteConfig("El Calce", "https://www.elcalce.com/", "301106387"),
    SiteConfig("Ferplei", "https://www.ferplei.com/", "288444552"),
    SiteConfig("Sagrosso", "https://www.sagrosso.com/", "321109979"),
    SiteConfig("MWN Brasil", "https://www.metroworldnews.com.br/", "454335700"),
)


def load_sites(path: str) -> tuple[SiteConfig, ...]:
    """Read a site list from JSON.

    Expected shape: ``[{"name": ..., "url": ..., "ga4": ...}, ...]``. The
    ``analytics_property_id`` key is accepted as an alias of ``ga4``.
    """
    file_path = Path(path)
    if not file_path.exists():
        raise RuntimeError(f"Site list file not found: {path}")
    try:
        payload = json.loads(file_path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise RuntimeError(f"Invalid JSON in site list file: {path}") from exc
    if not isinstance(payload, list):
        raise RuntimeError("Site list file must contain a JSON array.")

    sites: list[SiteConfig] = []
    for row in payload:
        if not isinstance(row, dict):
            continue
        name = str(row.get("name", "")).strip()
        url = str(row.get("url", "")).strip()
        property_id = str(
            row.get("ga4", row.get("analytics_property_id", ""))
        ).strip()
        if not name or not url:
            continue
        sites.append(SiteConfig(name=name, url=url, analytics_property_id=property_id))
    if not sites:
        raise RuntimeError(f"Site list file has no usable entries: {path}")
    return tuple(sites)


@dataclass(frozen=True)
class CollectorConfig:
    sites: tuple[SiteConfig, ...]
    pagespeed_api_key: str
    ga4_credentials_path: str
    sheets_credentials_path: str
    sheets_spreadsheet_id: str
    sheets_tab_name: str
    published_csv_url: str
    local_csv_path: str
    timezone: str
    http_timeout_sec: int
    field_pause_sec: float
    lab_pause_sec: float
    site_pause_sec: float
    lab_max_attempts: int
    lab_retry_pause_sec: float

    @property
    def sheets_enabled(self) -> bool:
        return bool(self.sheets_spreadsheet_id and self.sheets_credentials_path)

    @property
    def ga4_enabled(self) -> bool:
        return bool(self.ga4_credentials_path)

    @classmethod
    def from_env(cls) -> "CollectorConfig":
        sites_path = _env("EDITORIAL_VITALS_SITES_PATH")
        sites = load_sites(sites_path) if sites_path else DEFAULT_SITES

        ga4_credentials_path = _env(
            "GA4_CREDENTIALS_PATH",
            _env("GOOGLE_APPLICATION_CREDENTIALS"),
        )
        return cls(
            sites=sites,
            pagespeed_api_key=_env("PAGESPEED_API_KEY"),
            ga4_credentials_path=ga4_credentials_path,
            sheets_credentials_path=_env("SHEETS_CREDENTIALS_PATH", ga4_credentials_path),
            sheets_spreadsheet_id=_env("SHEETS_SPREADSHEET_ID"),
            sheets_tab_name=_env("SHEETS_TAB_NAME", "Data"),
            published_csv_url=_env("PUBLISHED_CSV_URL"),
            local_csv_path=_env("LOCAL_CSV_PATH", "outputs/editorial_vitals.csv"),
            timezone=_env("COLLECTOR_TIMEZONE", "America/Mexico_City"),
            http_timeout_sec=max(1, _env_int("HTTP_TIMEOUT_SEC", 40)),
            field_pause_sec=max(0.0, _env_float("FIELD_PAUSE_SEC", 0.5)),
            lab_pause_sec=max(0.0, _env_float("LAB_PAUSE_SEC", 1.0)),
            site_pause_sec=max(0.0, _env_float("SITE_PAUSE_SEC", 1.0)),
            lab_max_attempts=max(1, _env_int("LAB_MAX_ATTEMPTS", 3)),
            lab_retry_pause_sec=max(0.0, _env_float("LAB_RETRY_PAUSE_SEC", 2.0)),
        )
