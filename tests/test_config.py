"""Tests for config loading."""

import json
from datetime import timedelta

import pytest
from pydantic import ValidationError

from dominos_cart.config import DominosConfig, load_config

CONFIG = {
    "customer": {
        "first_name": "Jane",
        "last_name": "Doe",
        "email": "jane@example.com",
        "phone": "416-555-0100",
    },
    "addresses": [
        {
            "street": "100 Queen St W",
            "city": "Toronto",
            "region": "ON",
            "postal_code": "M5H 2N2",
        }
    ],
    "preferences": {"service_method": "carryout", "menu_update_seconds": 600},
}


def _write(tmp_path, data):
    path = tmp_path / "config.json"
    path.write_text(json.dumps(data))
    return str(path)


class TestLoadConfig:
    def test_load_from_path(self, tmp_path):
        config = load_config(_write(tmp_path, CONFIG))
        assert config.addresses[0].city == "Toronto"
        assert config.addresses[0].country == "ca"
        assert config.preferences.service_method == "Carryout"
        assert config.preferences.menu_update_time == timedelta(minutes=10)

    def test_load_from_env(self, tmp_path, monkeypatch):
        monkeypatch.setenv("CONFIG_PATH", _write(tmp_path, CONFIG))
        assert load_config().customer.first_name == "Jane"

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_config(str(tmp_path / "nope.json"))

    def test_bad_service_method(self, tmp_path):
        data = dict(CONFIG, preferences={"service_method": "drone"})
        with pytest.raises(ValidationError):
            load_config(_write(tmp_path, data))


class TestDefaults:
    def test_defaults(self, monkeypatch):
        monkeypatch.setenv("DOMINOS_DB_PATH", "/tmp/cart-test.json")
        config = DominosConfig(customer=CONFIG["customer"])
        assert config.addresses == []
        assert config.preferences.service_method == "Delivery"
        assert config.preferences.menu_update_time == timedelta(hours=12)
        assert config.storage.db_path == "/tmp/cart-test.json"
        assert config.server.port == 8000
        assert config.preferences.preferred_store_id is None

    def test_preferred_store_id(self, tmp_path):
        prefs = dict(CONFIG["preferences"], preferred_store_id="10079")
        config = load_config(_write(tmp_path, dict(CONFIG, preferences=prefs)))
        assert config.preferences.preferred_store_id == "10079"
