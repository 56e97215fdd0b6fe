from editorial_vitals.ingestion import (
    ingest_csv,
    normalize_score,
    parse_rows,
    split_csv_line,
)
from editorial_vitals.models import ROW_COLUMNS

HEADER = ",".join(ROW_COLUMNS)


def _row(**cells: str) -> str:
    values = [""] * len(ROW_COLUMNS)
    for column, value in cells.items():
        values[ROW_COLUMNS.index(column.replace("_", " "))] = value
    return ",".join(values)


EXAMPLE_LINE = _row(
    Date="2026-01-01",
    Site_Name="Publimetro MX",
    Home_URL="https://www.publimetro.com.mx/",
    Home_Score="85",
    Home_LCP="2.10s",
    Home_CLS="0.05",
    Home_INP="150ms",
    Method_Used="Automated",
    Lab_Score="80",
    Lab_LCP="2.3 s",
    Desktop_Score="0",
    Active_Users="1000",
    Total_Views="50000",
    Bounce_Rate="0.45",
    Avg_Session_Duration="120",
    Sessions="800",
)


def _line(date: str, name: str, home: int, desktop: int = 0, lab: int = 0) -> str:
    return _row(
        Date=date,
        Site_Name=name,
        Home_Score=str(home),
        Home_LCP="2.00s",
        Desktop_Score=str(desktop),
        Lab_Score=str(lab),
        Lab_LCP="3.0 s",
    )


def test_split_csv_line_respects_quotes() -> None:
    assert split_csv_line('a,"b, c",d') == ["a", "b, c", "d"]
    assert split_csv_line("a,,") == ["a", "", ""]
    assert split_csv_line('"Nota ""top"", hoy",x') == ["Nota top, hoy", "x"]


def test_normalize_score() -> None:
    assert normalize_score("85") == 85
    assert normalize_score("N/A") == 0
    assert normalize_score("Error") == 0
    assert normalize_score("No Data") == 0
    assert normalize_score("") == 0
    assert normalize_score(None) == 0
    assert normalize_score("72.9") == 72


def test_example_row_with_header() -> None:
    records = ingest_csv(f"{HEADER}\n{EXAMPLE_LINE}\n")

    assert len(records) == 1
    record = records[0]
    assert record.site_name == "Publimetro MX"
    assert record.home.score == 85
    assert record.home.lcp == "2.10s"
    assert record.date == "2026-01-01"
    assert len(record.history) == 1
    entry = record.history[0]
    assert entry.date == "2026-01-01"
    assert entry.score == 85
    assert entry.desktop_score == 0
    assert entry.lcp == "2.10s"


def test_headerless_text_uses_fixed_schema() -> None:
    line = _line("2026-01-01", "Metro Ecuador", 70, desktop=88, lab=55)
    records = ingest_csv(line)
    assert records[0].site_name == "Metro Ecuador"
    assert records[0].desktop.score == 88
    assert records[0].lab.score == 55
    assert records[0].history[0].lab_lcp == "3.0 s"


def test_legacy_name_rows_merge_into_current_name() -> None:
    text = "\n".join(
        [
            HEADER,
            _line("2026-01-01", "Metro PR", 40),
            _line("2026-01-02", "Metro Puerto Rico", 45),
        ]
    )
    records = ingest_csv(text)

    assert [r.site_name for r in records] == ["Metro Puerto Rico"]
    assert len(records[0].history) == 2
    assert [h.score for h in records[0].history] == [40, 45]
    assert records[0].home.score == 45


def test_metro_colombia_maps_to_publimetro_colombia() -> None:
    records = ingest_csv(_line("2026-01-01", "Metro Colombia", 60))
    assert records[0].site_name == "Publimetro Colombia"


def test_last_row_wins_and_order_is_first_appearance() -> None:
    text = "\n".join(
        [
            HEADER,
            _line("2026-01-01", "B", 10),
            _line("2026-01-01", "A", 20),
            _line("2026-01-02", "B", 30),
        ]
    )
    records = ingest_csv(text)
    assert [r.site_name for r in records] == ["B", "A"]
    assert records[0].home.score == 30
    assert records[0].date == "2026-01-02"
    assert [h.date for h in records[0].history] == ["2026-01-01", "2026-01-02"]


def test_blank_lines_crlf_and_empty_names_are_dropped() -> None:
    text = f"{HEADER}\r\n\r\n{_line('2026-01-01', '', 10)}\r\n{_line('2026-01-01', 'A', 20)}\r\n   \n"
    records = ingest_csv(text)
    assert [r.site_name for r in records] == ["A"]
    assert records[0].analytics.sessions == 0


def test_reingestion_is_idempotent() -> None:
    text = "\n".join([HEADER, _line("2026-01-01", "A", 20), _line("2026-01-02", "A", 25)])
    first = ingest_csv(text)
    second = ingest_csv(text)
    assert first == second
    assert len(second[0].history) == 2


def test_empty_text_yields_nothing() -> None:
    assert ingest_csv("") == []
    assert ingest_csv("\n\n") == []
    assert parse_rows(HEADER) == []


def test_missing_desktop_values_default_to_dash() -> None:
    records = ingest_csv(f"{HEADER}\n{EXAMPLE_LINE}")
    record = records[0]
    assert record.desktop.lcp == "-"
    assert record.lab_desktop.speed_index == "-"
    assert record.article_desktop.inp == "-"
    assert record.analytics.active_users == 1000
    assert record.analytics.bounce_rate == 0.45
