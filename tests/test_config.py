from tron_mcp.config import (
    DEFAULT_HTTP_PORT,
    DEFAULT_TIMEOUT_MS,
    TronConfig,
    _load_http_port,
    _load_int,
    load_config,
)


def test_load_int_invalid_env(monkeypatch):
    monkeypatch.setenv("TRON_MCP_TIMEOUT_MS", "not-a-number")
    assert _load_int("TRON_MCP_TIMEOUT_MS", DEFAULT_TIMEOUT_MS) == DEFAULT_TIMEOUT_MS


def test_load_int_below_minimum_falls_back(monkeypatch):
    monkeypatch.setenv("TRON_MCP_TIMEOUT_MS", "0")
    assert _load_int("TRON_MCP_TIMEOUT_MS", DEFAULT_TIMEOUT_MS, minimum=1) == DEFAULT_TIMEOUT_MS


def test_http_port_prefers_mcp_http_port(monkeypatch):
    monkeypatch.setenv("PORT", "9000")
    monkeypatch.setenv("MCP_HTTP_PORT", "9100")
    assert _load_http_port() == 9100


def test_http_port_falls_back_to_port(monkeypatch):
    monkeypatch.setenv("PORT", "9000")
    monkeypatch.delenv("MCP_HTTP_PORT", raising=False)
    assert _load_http_port() == 9000


def test_load_config_reads_environment(monkeypatch):
    monkeypatch.setenv("TRONGRID_BASE", "https://nile.trongrid.io/")
    monkeypatch.setenv("TRONGRID_API_KEY", "  grid-key ")
    monkeypatch.setenv("TRONSCAN_API_KEY", "")
    monkeypatch.setenv("TRON_MCP_RETRIES", "5")
    monkeypatch.setenv("TRON_MCP_LOG_FORMAT", "plain")
    monkeypatch.delenv("PORT", raising=False)
    monkeypatch.delenv("MCP_HTTP_PORT", raising=False)

    config = load_config()
    assert config.trongrid_base_url == "https://nile.trongrid.io"
    assert config.trongrid_api_key == "grid-key"
    assert config.tronscan_api_key is None
    assert config.retries == 5
    assert config.log_format == "plain"
    assert config.http_port == DEFAULT_HTTP_PORT


def test_config_defaults():
    config = TronConfig()
    assert config.timeout_ms == 8000
    assert config.retries == 2
    assert config.backoff_base_ms == 500
    assert config.usdt_contract == "TR7NHqjeKQxGTCi8q8ZY4pL8otSzgjLj6t"
