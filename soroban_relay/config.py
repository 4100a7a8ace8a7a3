"""
Runtime configuration.

Centralizes environment variables (pydantic-settings) so the relay client,
ledger client and dev keyring read the same values. Every variable uses the
``SOROBAN_RELAY_`` prefix and may also come from a ``.env`` file.

The relay bearer credential is the only value with a hard rule: without it
the relay client refuses to submit (no fallback to direct submission).
"""

from __future__ import annotations

from functools import lru_cache

from pydantic import Field, SecretStr, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from stellar_sdk import Network

from soroban_relay import __version__

NETWORK_PASSPHRASES: dict[str, str] = {
    "testnet": Network.TESTNET_NETWORK_PASSPHRASE,
    "public": Network.PUBLIC_NETWORK_PASSPHRASE,
    "futurenet": "Test SDF Future Network ; October 2022",
}

# Ledger-count offset applied to signature expirations (about 25 minutes).
DEFAULT_AUTH_EXPIRATION_LEDGERS = 300


class RelaySettings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="SOROBAN_RELAY_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    rpc_url: str = "https://soroban-testnet.stellar.org"
    relay_url: str = "https://testnet.launchtube.xyz"
    relay_token: SecretStr | None = None
    turnstile_site_key: str | None = None

    network: str = "testnet"
    network_passphrase: str | None = None

    auth_expiration_ledgers: int = Field(default=DEFAULT_AUTH_EXPIRATION_LEDGERS, ge=1)
    base_fee: int = Field(default=100, ge=100)
    tx_timeout_seconds: int = Field(default=30, ge=0)

    submit_timeout_seconds: float = Field(default=30.0, gt=0)
    poll_interval_seconds: float = Field(default=1.0, gt=0)
    not_found_grace_seconds: float = Field(default=10.0, ge=0)
    http_timeout_seconds: float = Field(default=30.0, gt=0)

    dev_player1_secret: SecretStr | None = None
    dev_player2_secret: SecretStr | None = None

    client_name: str = "soroban-relay"
    client_version: str = __version__

    log_level: str = "INFO"
    log_format: str = "console"

    @model_validator(mode="after")
    def _derive_passphrase(self) -> "RelaySettings":
        self.network = self.network.strip().lower()
        if self.network_passphrase is None:
            try:
                self.network_passphrase = NETWORK_PASSPHRASES[self.network]
            except KeyError:
                raise ValueError(
                    f"unknown network {self.network!r}; set network_passphrase explicitly"
                ) from None
        return self

    @property
    def passphrase(self) -> str:
        """Network passphrase, resolved from the network name when not set."""
        if self.network_passphrase is not None:
            return self.network_passphrase
        try:
            return NETWORK_PASSPHRASES[self.network]
        except KeyError:
            raise ValueError(f"no passphrase known for network {self.network!r}") from None

    @property
    def relay_configured(self) -> bool:
        """True when a non-empty relay bearer credential is present."""
        return bool(self.relay_token and self.relay_token.get_secret_value().strip())

    def dev_secret(self, slot: int) -> str | None:
        """Key material for a deterministic test slot, or None."""
        secret = {1: self.dev_player1_secret, 2: self.dev_player2_secret}.get(slot)
        if secret is None:
            return None
        value = secret.get_secret_value().strip()
        return value or None


@lru_cache(maxsize=1)
def get_settings() -> RelaySettings:
    """Process-wide settings loaded from the environment."""
    return RelaySettings()
