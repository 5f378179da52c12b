"""Storefront settings, read from ``STOREFRONT_*`` environment variables."""

from enum import Enum

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class MergePolicy(Enum):
    PRESENCE = "presence"
    UNION = "union"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="STOREFRONT_", env_file=".env", extra="ignore")

    env: str = Field(default="development")
    # Unset keeps carts in the in-memory provider.
    database_url: str | None = Field(default=None)
    guest_cart_key: str = Field(default="cart_guest")
    free_shipping_method: str = Field(default="Free Shipping")
    card_payment_method: str = Field(default="card")
    accepted_payment_methods: list[str] = Field(default_factory=lambda: ["card", "cod", "mpesa"])
    merge_policy: MergePolicy = Field(default=MergePolicy.PRESENCE)
    log_level: str | None = Field(default=None)


settings = Settings()
