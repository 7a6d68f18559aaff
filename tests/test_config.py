import pytest

from shiprocket_fulfillment.client import DEFAULT_BASE_URL
from shiprocket_fulfillment.config import ProviderConfig, load_config

ENV_KEYS = [
    "SHIPROCKET_CHANNEL_ID",
    "SHIPROCKET_EMAIL",
    "SHIPROCKET_PASSWORD",
    "SHIPROCKET_TOKEN",
    "SHIPROCKET_PRICING",
    "SHIPROCKET_LENGTH_UNIT",
    "SHIPROCKET_MULTIPLE_ITEMS",
    "SHIPROCKET_INVENTORY_SYNC",
    "SHIPROCKET_FORWARD_ACTION",
    "SHIPROCKET_RETURN_ACTION",
    "SHIPROCKET_BASE_URL",
    "SHIPROCKET_TIMEOUT_SECONDS",
    "LOG_LEVEL",
]


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    # setenv first so teardown also removes values loaded from dotenv files
    for key in ENV_KEYS:
        monkeypatch.setenv(key, "")
        monkeypatch.delenv(key)


def _seed_required_env(monkeypatch):
    monkeypatch.setenv("SHIPROCKET_CHANNEL_ID", "4321")
    monkeypatch.setenv("SHIPROCKET_EMAIL", "ops@example.com")
    monkeypatch.setenv("SHIPROCKET_PASSWORD", "secret")


def test_load_config_defaults(monkeypatch):
    _seed_required_env(monkeypatch)

    config = load_config(env_file=None)

    assert isinstance(config, ProviderConfig)
    assert config.channel_id == "4321"
    assert config.has_credentials is True
    assert config.token is None
    assert config.pricing == "calculated"
    assert config.length_unit == "cm"
    assert config.multiple_items == "single_shipment"
    assert config.inventory_sync is False
    assert config.forward_action == "create_order"
    assert config.return_action == "create_order"
    assert config.base_url == DEFAULT_BASE_URL
    assert config.timeout_seconds == 30
    assert config.log_level == "INFO"


def test_load_config_overrides(monkeypatch):
    _seed_required_env(monkeypatch)
    monkeypatch.setenv("SHIPROCKET_PRICING", "Flat_Rate")
    monkeypatch.setenv("SHIPROCKET_LENGTH_UNIT", "inches")
    monkeypatch.setenv("SHIPROCKET_MULTIPLE_ITEMS", "split_shipment")
    monkeypatch.setenv("SHIPROCKET_INVENTORY_SYNC", "yes")
    monkeypatch.setenv("SHIPROCKET_FORWARD_ACTION", "create_fulfillment")
    monkeypatch.setenv("SHIPROCKET_BASE_URL", "https://sandbox.example/v1/external/")
    monkeypatch.setenv("SHIPROCKET_TIMEOUT_SECONDS", "5")

    config = load_config(env_file=None)

    assert config.pricing == "flat_rate"
    assert config.length_unit == "inches"
    assert config.multiple_items == "split_shipment"
    assert config.inventory_sync is True
    assert config.forward_action == "create_fulfillment"
    assert config.base_url == "https://sandbox.example/v1/external"
    assert config.timeout_seconds == 5


def test_token_alone_is_enough(monkeypatch):
    monkeypatch.setenv("SHIPROCKET_CHANNEL_ID", "1")
    monkeypatch.setenv("SHIPROCKET_TOKEN", "static")

    config = load_config(env_file=None)

    assert config.token == "static"
    assert config.has_credentials is False


def test_missing_channel_id(monkeypatch):
    monkeypatch.setenv("SHIPROCKET_TOKEN", "static")

    with pytest.raises(ValueError, match="SHIPROCKET_CHANNEL_ID"):
        load_config(env_file=None)


def test_missing_credentials(monkeypatch):
    monkeypatch.setenv("SHIPROCKET_CHANNEL_ID", "1")
    monkeypatch.setenv("SHIPROCKET_EMAIL", "ops@example.com")

    with pytest.raises(ValueError, match="Missing Shiprocket credentials"):
        load_config(env_file=None)


def test_invalid_choice(monkeypatch):
    _seed_required_env(monkeypatch)
    monkeypatch.setenv("SHIPROCKET_RETURN_ACTION", "refund")

    with pytest.raises(ValueError, match="create_order, create_fulfillment"):
        load_config(env_file=None)


def test_invalid_timeout(monkeypatch):
    _seed_required_env(monkeypatch)
    monkeypatch.setenv("SHIPROCKET_TIMEOUT_SECONDS", "0")

    with pytest.raises(ValueError, match=">= 1"):
        load_config(env_file=None)


def test_load_config_reads_env_file(monkeypatch, tmp_path):
    env_file = tmp_path / ".env"
    env_file.write_text("SHIPROCKET_CHANNEL_ID=77\nSHIPROCKET_TOKEN=from-file\n")

    config = load_config(env_file=str(env_file))

    assert config.channel_id == "77"
    assert config.token == "from-file"
