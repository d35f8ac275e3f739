import pytest
from org_directory.core.config import Settings


def test_settings_load_from_env(monkeypatch):
    """Test that settings load correctly from environment variables."""
    monkeypatch.setenv("GRAPH_BASE_URL", "https://graph.example")
    monkeypatch.setenv("GRAPH_ACCESS_TOKEN", "token-val")
    monkeypatch.setenv("BATCH_MAX_SIZE", "5")
    monkeypatch.setenv("MANAGER_CHAIN_MAX_DEPTH", "3")

    # We pass _env_file=None to ignore the .env file and rely on monkeypatch
    settings = Settings(_env_file=None)

    assert settings.GRAPH_BASE_URL == "https://graph.example"
    assert settings.GRAPH_ACCESS_TOKEN == "token-val"
    assert settings.BATCH_MAX_SIZE == 5
    assert settings.MANAGER_CHAIN_MAX_DEPTH == 3


def test_settings_defaults(monkeypatch):
    """Test default values for optional settings."""
    monkeypatch.delenv("GRAPH_ACCESS_TOKEN", raising=False)
    settings = Settings(_env_file=None)

    assert settings.GRAPH_ACCESS_TOKEN is None
    assert settings.BATCH_MAX_SIZE == 20
    assert settings.BATCH_DEBOUNCE_SECONDS == 0.0
    assert settings.MANAGER_CHAIN_MAX_DEPTH == 15


@pytest.mark.parametrize(
    "base_url, version, expected",
    [
        ("https://graph.microsoft.com", "v1.0", "https://graph.microsoft.com/v1.0"),
        ("https://graph.microsoft.com/", "beta", "https://graph.microsoft.com/beta"),
    ],
)
def test_graph_root_url(base_url, version, expected):
    """Test that the API root joins base url and version."""
    settings = Settings(_env_file=None, GRAPH_BASE_URL=base_url, GRAPH_API_VERSION=version)
    assert settings.graph_root_url == expected
