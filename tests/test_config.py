import pytest

from huefy.config import DEFAULT_BASE_URL, ClientConfig, RetryConfig


def test_defaults() -> None:
    cfg = ClientConfig(api_key="k")
    assert cfg.base_url == DEFAULT_BASE_URL
    assert cfg.timeout == 30.0
    assert cfg.retry == RetryConfig(max_retries=3, base_delay=1.0, max_delay=30.0, multiplier=2.0)
    assert cfg.retry.max_attempts == 4
    assert cfg.bulk_mode == "batch"


def test_config_is_frozen() -> None:
    cfg = ClientConfig(api_key="k")
    with pytest.raises(Exception):
        cfg.timeout = 1.0


@pytest.mark.parametrize(
    "kwargs",
    [
        {"api_key": ""},
        {"api_key": "k", "timeout": 0},
        {"api_key": "k", "bulk_mode": "parallel"},
    ],
)
def test_invalid_client_config(kwargs) -> None:
    with pytest.raises(ValueError):
        ClientConfig(**kwargs)


@pytest.mark.parametrize(
    "kwargs",
    [{"max_retries": -1}, {"base_delay": -0.1}, {"multiplier": 0.5}],
)
def test_invalid_retry_config(kwargs) -> None:
    with pytest.raises(ValueError):
        RetryConfig(**kwargs)


def test_from_env(monkeypatch, tmp_path) -> None:
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("HUEFY_API_KEY", "env-key")
    monkeypatch.setenv("HUEFY_BASE_URL", "https://staging.example.com/sdk/")
    monkeypatch.setenv("HUEFY_TIMEOUT", "12.5")
    monkeypatch.setenv("HUEFY_MAX_RETRIES", "1")

    cfg = ClientConfig.from_env(bulk_mode="individual")
    assert cfg.api_key == "env-key"
    assert cfg.base_url == "https://staging.example.com/sdk"
    assert cfg.timeout == 12.5
    assert cfg.retry.max_retries == 1
    assert cfg.bulk_mode == "individual"


def test_from_env_reads_dotenv_file(monkeypatch, tmp_path) -> None:
    monkeypatch.delenv("HUEFY_API_KEY", raising=False)
    monkeypatch.delenv("HUEFY_BASE_URL", raising=False)
    monkeypatch.delenv("HUEFY_TIMEOUT", raising=False)
    monkeypatch.delenv("HUEFY_MAX_RETRIES", raising=False)
    (tmp_path / ".env").write_text("HUEFY_API_KEY=file-key\n")
    monkeypatch.chdir(tmp_path)

    cfg = ClientConfig.from_env()
    assert cfg.api_key == "file-key"
