from editorial_vitals.clients.ga4_client import GA4Client, is_article_path


def _row(path: str, title: str, views: str) -> dict:
    return {
        "dimensionValues": [{"value": path}, {"value": title}],
        "metricValues": [{"value": views}],
    }


def _client_with_payload(monkeypatch, payload=None, error: Exception | None = None):
    client = GA4Client(credentials_path="secret.json")
    bodies = []

    def _fake_run_report(property_id, body):
        bodies.append((property_id, body))
        if error is not None:
            raise error
        return payload

    monkeypatch.setattr(client, "_run_report", _fake_run_report)
    return client, bodies


def test_normalize_property_id() -> None:
    assert GA4Client._normalize_property_id("properties/123") == "123"
    assert GA4Client._normalize_property_id(" 456 ") == "456"


def test_is_article_path_filters() -> None:
    assert not is_article_path("/", "Home")
    assert not is_article_path("", "Home")
    assert not is_article_path("/deportes/", "Deportes")
    assert not is_article_path("/noticias/2026/01/01/nota", "Página no encontrada")
    assert not is_article_path("/noticias/2026/01/01/nota", "ERROR de servidor")
    assert not is_article_path("/404/noticias", "Oops")
    assert not is_article_path("/error/page", "Oops")
    assert is_article_path("/noticias/2026/01/01/nota", "Una nota")


def test_fetch_top_article_skips_home_errors_and_sections(monkeypatch) -> None:
    payload = {
        "rows": [
            _row("/", "Publimetro", "90000"),
            _row("/noticias", "Noticias", "50000"),
            _row("/x/404", "Not Found", "40000"),
            _row("/noticias/2026/01/01/nota-top", "La nota top", "32000"),
            _row("/noticias/2026/01/01/otra", "Otra nota", "1000"),
        ]
    }
    client, bodies = _client_with_payload(monkeypatch, payload)
    article = client.fetch_top_article("267948860", "https://www.publimetro.com.mx/")

    assert article.url == "https://www.publimetro.com.mx/noticias/2026/01/01/nota-top"
    assert article.title == "La nota top"
    assert article.views == 32000
    _, body = bodies[0]
    assert body["limit"] == 20
    assert body["dateRanges"] == [{"startDate": "yesterday", "endDate": "yesterday"}]
    assert body["orderBys"][0]["desc"] is True


def test_fetch_top_article_without_candidates_is_empty(monkeypatch) -> None:
    client, _ = _client_with_payload(monkeypatch, {"rows": [_row("/", "Home", "10")]})
    article = client.fetch_top_article("1", "https://www.metro.pr/")
    assert (article.url, article.title, article.views) == ("", "", 0)

    client, _ = _client_with_payload(monkeypatch, {})
    assert client.fetch_top_article("1", "https://www.metro.pr/").url == ""


def test_fetch_top_article_swallows_backend_errors(monkeypatch) -> None:
    client, _ = _client_with_payload(monkeypatch, error=RuntimeError("quota"))
    article = client.fetch_top_article("1", "https://www.metro.pr/")
    assert article.url == ""
    assert article.views == 0


def test_missing_credentials_yield_empty_results() -> None:
    client = GA4Client(credentials_path="")
    assert client.fetch_top_article("1", "https://www.metro.pr/").url == ""
    assert client.fetch_global_analytics("1").sessions == 0


def test_fetch_global_analytics_parses_each_field(monkeypatch) -> None:
    payload = {
        "rows": [
            {
                "metricValues": [
                    {"value": "1000"},
                    {"value": "50000"},
                    {"value": "0.45"},
                    {"value": "120.5"},
                    {"value": "800"},
                ]
            }
        ]
    }
    client, _ = _client_with_payload(monkeypatch, payload)
    analytics = client.fetch_global_analytics("1")

    assert analytics.active_users == 1000
    assert analytics.views == 50000
    assert analytics.bounce_rate == 0.45
    assert analytics.avg_session_duration == 120.5
    assert analytics.sessions == 800


def test_fetch_global_analytics_bad_field_only_zeroes_itself(monkeypatch) -> None:
    payload = {
        "rows": [
            {
                "metricValues": [
                    {"value": "1000"},
                    {"value": "n/a"},
                    {"value": "0.45"},
                ]
            }
        ]
    }
    client, _ = _client_with_payload(monkeypatch, payload)
    analytics = client.fetch_global_analytics("1")

    assert analytics.active_users == 1000
    assert analytics.views == 0
    assert analytics.bounce_rate == 0.45
    assert analytics.sessions == 0



def test_fetch_global_analytics_infinite_count_only_zeroes_itself(monkeypatch) -> None:
    payload = {
        "rows": [
            {
                "metricValues": [
                    {"value": "inf"},
                    {"value": "5"},
                    {"value": "0.4"},
                    {"value": "1"},
                    {"value": "2"},
                ]
            }
        ]
    }
    client, _ = _client_with_payload(monkeypatch, payload)
    analytics = client.fetch_global_analytics("1")

    assert analytics.active_users == 0
    assert analytics.views == 5
    assert analytics.bounce_rate == 0.4
    assert analytics.avg_session_duration == 1.0
    assert analytics.sessions == 2

def test_fetch_global_analytics_no_rows_or_error(monkeypatch) -> None:
    client, _ = _client_with_payload(monkeypatch, {"rows": []})
    assert client.fetch_global_analytics("1").active_users == 0

    client, _ = _client_with_payload(monkeypatch, error=RuntimeError("denied"))
    assert client.fetch_global_analytics("1").bounce_rate == 0.0
