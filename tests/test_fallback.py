import requests

from editorial_vitals.fallback import fallback_records, load_site_records


class _Source:
    def __init__(self, text: str = "", error: Exception | None = None):
        self.text = text
        self.error = error

    def read_text(self) -> str:
        if self.error is not None:
            raise self.error
        return self.text


def test_fallback_dataset_uses_current_site_names():
    names = [record.site_name for record in fallback_records()]
    assert names == [
        "Publimetro MX",
        "Metro Puerto Rico",
        "Publimetro Colombia",
        "Publimetro Chile",
        "Metro World News",
    ]
    first = fallback_records()[0]
    assert first.home.score == 85
    assert first.desktop.score == 0
    assert first.analytics.active_users == 14500
    assert first.article.url.endswith("nota-mas-vista")


def test_read_failure_switches_to_fallback():
    records, used_fallback = load_site_records(
        _Source(error=requests.exceptions.ConnectionError("offline"))
    )
    assert used_fallback is True
    assert len(records) == 5


def test_empty_store_switches_to_fallback():
    records, used_fallback = load_site_records(_Source(text="Date,Site Name\n"))
    assert used_fallback is True
    assert records[0].site_name == "Publimetro MX"


def test_populated_store_is_used_as_is():
    text = "Date,Site Name,Home URL,Home Score\n2026-01-01,Ferplei,https://www.ferplei.com/,77\n"
    records, used_fallback = load_site_records(_Source(text=text))
    assert used_fallback is False
    assert [(r.site_name, r.home.score) for r in records] == [("Ferplei", 77)]
