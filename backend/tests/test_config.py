import pytest

from discstats import config


def test_rejects_wildcard_origin():
    with pytest.raises(ValueError):
        config.parse_allowed_origins("http://localhost:8081, *")


def test_allowed_origins_default_to_local_ui():
    assert config.parse_allowed_origins(None) == ["http://localhost:8081"]
    assert config.parse_allowed_origins("  ") == ["http://localhost:8081"]


def test_allowed_origins_split_on_commas():
    assert config.parse_allowed_origins("http://a.test, http://b.test,") == [
        "http://a.test",
        "http://b.test",
    ]


@pytest.mark.parametrize(
    "raw, expected",
    [(None, "/api"), ("", "/api"), ("v1/", "/v1"), ("/scores/", "/scores"), ("/", "/")],
)
def test_canonical_api_prefix(raw, expected):
    assert config._canon_prefix(raw) == expected


def test_sample_rate_parsing(monkeypatch, caplog):
    monkeypatch.delenv("SENTRY_TRACES_SAMPLE_RATE", raising=False)
    assert config.parse_sample_rate("SENTRY_TRACES_SAMPLE_RATE", default=0.25) == 0.25

    monkeypatch.setenv("SENTRY_TRACES_SAMPLE_RATE", "0.5")
    assert config.parse_sample_rate("SENTRY_TRACES_SAMPLE_RATE") == 0.5

    monkeypatch.setenv("SENTRY_TRACES_SAMPLE_RATE", "lots")
    assert config.parse_sample_rate("SENTRY_TRACES_SAMPLE_RATE") == 0.0
    assert "not a valid float" in caplog.text

    monkeypatch.setenv("SENTRY_TRACES_SAMPLE_RATE", "-1")
    assert config.parse_sample_rate("SENTRY_TRACES_SAMPLE_RATE", default=0.1) == 0.1
