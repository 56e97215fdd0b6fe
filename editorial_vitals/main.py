from __future__ import annotations

import argparse
import json
import logging
from dataclasses import asdict, replace
from datetime import date

from dotenv import find_dotenv, load_dotenv

from editorial_vitals.clients.sheets_client import (
    LocalCsvRowStore,
    PublishedCsvSource,
    SheetsRowStore,
    rows_to_csv_text,
)
from editorial_vitals.collector import DailyCollector
from editorial_vitals.config import CollectorConfig
from editorial_vitals.diagnosis import VIEWS, diagnose_record
from editorial_vitals.fallback import load_site_records
from editorial_vitals.ingestion import canonical_site_name
from editorial_vitals.models import ROW_COLUMNS
from editorial_vitals.summary import (
    DEVICES,
    latest_update_date,
    rank_sites,
    summarize_health,
)

STORE_CHOICES = ("auto", "sheets", "local")
SOURCE_CHOICES = ("auto", "sheets", "published", "local")


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Editorial web vitals collector")
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging.")
    subparsers = parser.add_subparsers(dest="command", required=True)

    collect = subparsers.add_parser("collect", help="Run the daily collection and append rows.")
    collect.add_argument(
        "--run-date",
        dest="run_date",
        help="Date written to the Date column, YYYY-MM-DD (default: today in COLLECTOR_TIMEZONE).",
    )
    collect.add_argument("--store", choices=STORE_CHOICES, default="auto")
    collect.add_argument(
        "--site",
        action="append",
        default=[],
        help="Only collect the named site (repeatable).",
    )
    collect.add_argument(
        "--dry-run",
        action="store_true",
        help="Print rows as CSV instead of appending them to the store.",
    )

    ingest = subparsers.add_parser("ingest", help="Read the row store and print per-site records.")
    ingest.add_argument("--source", choices=SOURCE_CHOICES, default="auto")
    ingest.add_argument("--json", action="store_true", help="Print full records as JSON.")

    summary = subparsers.add_parser("summary", help="Print global health and ranking.")
    summary.add_argument("--source", choices=SOURCE_CHOICES, default="auto")
    summary.add_argument("--device", choices=DEVICES, default="mobile")

    diagnose = subparsers.add_parser("diagnose", help="Explain which metrics hold a site back.")
    diagnose.add_argument("--site", required=True, help="Site name as shown in the row store.")
    diagnose.add_argument("--view", choices=VIEWS, default="home")
    diagnose.add_argument("--source", choices=SOURCE_CHOICES, default="auto")
    return parser.parse_args(argv)


def _parse_run_date(raw: str | None) -> date | None:
    if not raw:
        return None
    try:
        return date.fromisoformat(raw)
    except ValueError as exc:
        raise SystemExit(f"Invalid --run-date: {raw} (expected YYYY-MM-DD)") from exc


class StdoutRowStore:
    """Prints each row as a CSV line; used by `collect --dry-run`."""

    def __init__(self, header: tuple[str, ...] = ROW_COLUMNS) -> None:
        self._pending_header = tuple(header)

    def append_row(self, row) -> None:
        rows = [list(row)]
        if self._pending_header:
            rows.insert(0, list(self._pending_header))
            self._pending_header = ()
        print(rows_to_csv_text(rows), end="")


def _build_store(config: CollectorConfig, choice: str, dry_run: bool = False):
    if dry_run:
        return StdoutRowStore()
    if choice == "sheets" or (choice == "auto" and config.sheets_enabled):
        if not config.sheets_enabled:
            raise SystemExit(
                "Google Sheets is not configured. Provide SHEETS_SPREADSHEET_ID "
                "and SHEETS_CREDENTIALS_PATH (or GA4_CREDENTIALS_PATH)."
            )
        return SheetsRowStore(
            credentials_path=config.sheets_credentials_path,
            spreadsheet_id=config.sheets_spreadsheet_id,
            tab_name=config.sheets_tab_name,
        )
    return LocalCsvRowStore(config.local_csv_path, header=ROW_COLUMNS)


def _build_source(config: CollectorConfig, choice: str):
    if choice == "published" or (choice == "auto" and config.published_csv_url):
        if not config.published_csv_url:
            raise SystemExit("PUBLISHED_CSV_URL is not configured.")
        return PublishedCsvSource(config.published_csv_url, timeout_sec=config.http_timeout_sec)
    if choice == "local":
        return LocalCsvRowStore(config.local_csv_path)
    return _build_store(config, "sheets" if choice == "sheets" else "auto")


def _select_sites(config: CollectorConfig, names: list[str]) -> CollectorConfig:
    if not names:
        return config
    wanted = {name.strip().lower() for name in names if name.strip()}
    sites = tuple(site for site in config.sites if site.name.lower() in wanted)
    if not sites:
        raise SystemExit(f"No configured site matches: {', '.join(names)}")
    return replace(config, sites=sites)


def _run_collect(config: CollectorConfig, args: argparse.Namespace) -> None:
    config = _select_sites(config, list(args.site or []))
    if not config.pagespeed_api_key:
        print("PAGESPEED_API_KEY is not set; CrUX requests will be rejected (No Data).")
    if not config.ga4_enabled:
        print("GA4 credentials are not set; story and traffic columns will be empty.")

    store = _build_store(config, args.store, dry_run=args.dry_run)
    collector = DailyCollector.from_config(config, store)
    print(f"Starting collection: sites={len(config.sites)} | store={type(store).__name__}")
    report = collector.run(_parse_run_date(args.run_date))

    print(f"Run date: {report.run_date} | saved={len(report.appended)} | failed={len(report.failed)}")
    if report.degraded:
        print("Saved with provider failures (sentinel cells written):")
        for name, source, cause in report.degraded:
            print(f"- {name} / {source}: {cause}")
    if report.failed:
        print("Run finished with site-level failures:")
        for name, message in report.failed:
            print(f"- {name}: {message}")
    if not report.appended:
        raise SystemExit("Run failed: no row was saved.")


def _run_ingest(config: CollectorConfig, args: argparse.Namespace) -> None:
    records, used_fallback = load_site_records(_build_source(config, args.source))
    if args.json:
        payload = {
            "used_fallback": used_fallback,
            "last_update": latest_update_date(records),
            "sites": [asdict(record) for record in records],
        }
        print(json.dumps(payload, ensure_ascii=False, indent=2))
        return

    if used_fallback:
        print("Row store unavailable or empty; showing offline data.")
    print(f"Sites: {len(records)} | last update: {latest_update_date(records) or 'n/a'}")
    for record in records:
        print(
            f"- {record.site_name} | {record.date or 'n/a'} | mobile={record.home.score} "
            f"| desktop={record.desktop.score} | lab={record.lab.score} "
            f"| history={len(record.history)}"
        )


def _run_summary(config: CollectorConfig, args: argparse.Namespace) -> None:
    records, used_fallback = load_site_records(_build_source(config, args.source))
    health = summarize_health(records, args.device)
    if used_fallback:
        print("Row store unavailable or empty; showing offline data.")
    print(f"Last update: {latest_update_date(records) or 'n/a'}")
    print(
        f"Global health ({health.device}): {health.average_score}/100 over {health.site_count} sites"
    )
    if health.other_device_average is not None:
        print(f"Other device average: {health.other_device_average}/100")
    if health.trend_diff is not None:
        print(f"Trend vs previous run: {health.trend_diff:+d}")
    print(
        f"Healthy={len(health.healthy)} | Regular={len(health.regular)} | Critical={len(health.critical)}"
    )
    if health.worst_sites:
        print(f"Needs attention: {', '.join(health.worst_sites)}")
    print("Ranking:")
    for position, record in enumerate(rank_sites(records, args.device), start=1):
        print(f"{position:>2}. {record.site_name} | {record.device_score(args.device)}")


def _run_diagnose(config: CollectorConfig, args: argparse.Namespace) -> None:
    records, used_fallback = load_site_records(_build_source(config, args.source))
    wanted = canonical_site_name(args.site.strip()).lower()
    record = next((r for r in records if r.site_name.lower() == wanted), None)
    if record is None:
        raise SystemExit(f"Site not found in the row store: {args.site}")
    if used_fallback:
        print("Row store unavailable or empty; showing offline data.")

    diagnosis = diagnose_record(record, args.view)
    print(f"{record.site_name} ({args.view}, {record.date or 'n/a'}): {diagnosis.status}")
    print(diagnosis.summary)
    for issue in diagnosis.issues:
        print(f"- [{issue.code}] {issue.severity}: {issue.message}")


def main(argv: list[str] | None = None) -> None:
    try:
        load_dotenv(find_dotenv(usecwd=True), override=False)
    except Exception:
        pass

    args = _parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    try:
        config = CollectorConfig.from_env()
    except (RuntimeError, ValueError) as exc:
        raise SystemExit(f"Configuration error: {exc}") from exc

    if args.command == "collect":
        _run_collect(config, args)
    elif args.command == "ingest":
        _run_ingest(config, args)
    elif args.command == "diagnose":
        _run_diagnose(config, args)
    else:
        _run_summary(config, args)


if __name__ == "__main__":
    main()
