from __future__ import annotations

import logging

from editorial_vitals.ingestion import ingest_csv
from editorial_vitals.models import SiteRecord

logger = logging.getLogger(__name__)

# Offline snapshot shown when the row store is unreachable or empty.
FALLBACK_CSV = """\
Site Name,Home URL,Home Score,Home LCP,Home CLS,Home INP,Top Story URL,Story Score,Story LCP,Story CLS,Story INP,Active Users,Total Views,Bounce Rate,Avg Session Duration,Sessions
Publimetro MX,https://www.publimetro.com.mx/,85,2.1s,0.05,150ms,https://www.publimetro.com.mx/noticias/2023/10/24/nota-mas-vista,72,3.5s,0.15,220ms,14500,1250000,0.45,120,850000
Metro PR,https://www.metro.pr/,45,5.2s,0.25,300ms,https://www.metro.pr/noticias/2023/10/24/nota-destacada,60,4.8s,0.20,280ms,8500,750000,0.55,95,550000
Publimetro Colombia,https://www.publimetro.co/,72,3.0s,0.10,210ms,https://www.publimetro.co/noticias/2023/10/24/articulo-top,68,3.2s,0.12,230ms,12000,950000,0.48,110,720000
Publimetro Chile,https://www.publimetro.cl/,92,1.8s,0.01,120ms,https://www.publimetro.cl/noticias/2023/10/24/breaking-news,88,2.0s,0.02,140ms,,,,,
Metro World News,https://www.metroworldnews.com/,78,2.5s,0.08,180ms,https://www.metroworldnews.com/noticias/2023/10/24/world-news,75,2.8s,0.10,200ms,,,,,
"""


def fallback_records() -> list[SiteRecord]:
    return ingest_csv(FALLBACK_CSV)


def load_site_records(source) -> tuple[list[SiteRecord], bool]:
    """Read and ingest ``source``; returns ``(records, used_fallback)``.

    Any read failure or an empty result switches to the offline snapshot so
    callers always have something to show.
    """
    try:
        records = ingest_csv(source.read_text())
    except Exception as exc:  # noqa: BLE001
        logger.error("Reading the row store failed, using fallback data: %s", exc)
        return fallback_records(), True
    if not records:
        logger.warning("Row store is empty, using fallback data.")
        return fallback_records(), True
    return records, False
