from decimal import Decimal
from typing import List, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from constants.display_constants import DEFAULT_MIN_SENDER_STAKE


class _EnvSettings(BaseSettings):
    # Each section reads its own flat env vars, so sections built through
    # default_factory still pick up the environment and .env file.
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")


class AppSettings(_EnvSettings):
    """General application settings."""

    name: str = Field("Relay Transaction Explorer", validation_alias="APP_NAME")
    log_level: str = Field("INFO", validation_alias="LOG_LEVEL")


class EthereumSettings(_EnvSettings):
    """Settings related to the public Ethereum node (mempool, receipts, blocks)."""

    provider_uris: str = Field(
        default="https://eth-mainnet.g.alchemy.com/v2/demo",
        validation_alias="PROVIDER_URIS",
        description="Comma separated JSON-RPC URLs, tried in order on failure",
    )
    rpc_timeout: int = Field(default=30, gt=0, validation_alias="RPC_TIMEOUT")
    max_retries: int = Field(default=3, gt=0, validation_alias="RPC_MAX_RETRIES")
    # Minimum delay between two requests to the same client (seconds)
    rpc_min_interval: float = Field(default=0.0, ge=0, validation_alias="RPC_MIN_INTERVAL")

    @property
    def provider_uri_list(self) -> List[str]:
        return [uri.strip() for uri in self.provider_uris.split(",") if uri.strip()]


class RelaySettings(_EnvSettings):
    """Settings for the private relay: its RPC and its subgraph (stakes, slots, producer blocks)."""

    rpc_uri: str = Field(default="https://api.edennetwork.io/v1/rpc", validation_alias="RELAY_RPC_URI")
    subgraph_uri: str = Field(
        default="https://api.thegraph.com/subgraphs/name/eden-network/network",
        validation_alias="RELAY_SUBGRAPH_URI",
    )
    request_timeout: int = Field(default=30, gt=0, validation_alias="RELAY_REQUEST_TIMEOUT")


class BundleSettings(_EnvSettings):
    """Settings for the MEV bundle index API."""

    api_url: str = Field(default="https://blocks.flashbots.net/v1", validation_alias="BUNDLES_API_URL")
    request_timeout: int = Field(default=30, gt=0, validation_alias="BUNDLES_REQUEST_TIMEOUT")


class EtherscanSettings(_EnvSettings):
    """Settings for the explorer API used for account history and verified ABIs."""

    api_url: str = Field(default="https://api.etherscan.io/api", validation_alias="ETHERSCAN_API_URL")
    api_key: Optional[str] = Field(default=None, validation_alias="ETHERSCAN_API_KEY")
    request_timeout: int = Field(default=30, gt=0, validation_alias="ETHERSCAN_REQUEST_TIMEOUT")


class LabelSettings(_EnvSettings):
    """Thresholds used when labeling a block's transactions."""

    min_sender_stake: Decimal = Field(default=Decimal(DEFAULT_MIN_SENDER_STAKE), ge=0, validation_alias="LABEL_MIN_SENDER_STAKE")


class Settings(BaseSettings):
    """
    Main Settings class that composes all sub-settings.
    Uses validation_alias in sub-models to map flat env vars to nested structure.
    """

    app: AppSettings = Field(default_factory=AppSettings)
    ethereum: EthereumSettings = Field(default_factory=EthereumSettings)
    relay: RelaySettings = Field(default_factory=RelaySettings)
    bundles: BundleSettings = Field(default_factory=BundleSettings)
    etherscan: EtherscanSettings = Field(default_factory=EtherscanSettings)
    labels: LabelSettings = Field(default_factory=LabelSettings)

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")


# Singleton instance
settings = Settings()
