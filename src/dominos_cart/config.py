import json
import os
from datetime import timedelta
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from dominos_cart.models import Address, ServiceMethod


class Customer(BaseModel):
    first_name: str
    last_name: str
    email: str
    phone: str


class Preferences(BaseModel):
    service_method: str = "Delivery"
    menu_update_seconds: int = 12 * 60 * 60
    preferred_store_id: Optional[str] = None

    @field_validator("service_method")
    @classmethod
    def _check_service_method(cls, value: str) -> str:
        return ServiceMethod.parse(value).value

    @property
    def menu_update_time(self) -> timedelta:
        return timedelta(seconds=self.menu_update_seconds)


class StorageConfig(BaseModel):
    db_path: str = Field(
        default_factory=lambda: os.environ.get("DOMINOS_DB_PATH", "/data/dominos_cart.json")
    )


class ServerConfig(BaseModel):
    host: str = "0.0.0.0"
    port: int = 8000
    log_level: str = "INFO"


class DominosConfig(BaseModel):
    customer: Customer
    addresses: list[Address] = Field(default_factory=list)
    preferences: Preferences = Field(default_factory=Preferences)
    storage: StorageConfig = Field(default_factory=StorageConfig)
    server: ServerConfig = Field(default_factory=ServerConfig)


def load_config(path: Optional[str] = None) -> DominosConfig:
    config_path = path or os.environ.get("CONFIG_PATH", "/config/config.json")
    if not os.path.exists(config_path):
        raise FileNotFoundError(
            f"Config file not found at {config_path}. "
            "Copy config.json.example to the config path and fill in your details."
        )
    with open(config_path) as f:
        data = json.load(f)
    return DominosConfig(**data)
