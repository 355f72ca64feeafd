"""Configuration management using Pydantic Settings."""

import logging
from functools import lru_cache
from pathlib import Path

import yaml
from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel
from pydantic_settings import BaseSettings, SettingsConfigDict

from vaultwatch.services.hyperliquid import HyperliquidConfig

logger = logging.getLogger(__name__)


class PollerConfig(BaseModel):
    """Vault refresh cycle parameters."""

    refresh_interval_ms: int = Field(default=10_000, gt=0)


class ServerConfig(BaseModel):
    """HTTP server parameters."""

    host: str = "0.0.0.0"
    port: int = 8000
    allowed_origins: str = Field(
        default="http://localhost:3000",
        description="Comma-separated list of allowed CORS origins",
    )

    @property
    def origins(self) -> list[str]:
        """Parse comma-separated origins into a list."""
        return [origin.strip() for origin in self.allowed_origins.split(",") if origin.strip()]


class RiskSnapshot(BaseModel):
    """Copy-trading risk limits shown next to each vault."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    copy_ratio: float = 1.0
    max_leverage: float = 10.0
    max_notional_usd: float = 1_000_000.0
    slippage_bps: int = 25
    refresh_account_interval_ms: int = 60_000


class VaultConfig(BaseModel):
    """One tracked vault: follower vault plus the leader wallet it copies."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    id: str
    name: str
    model: str
    model_id: str
    vault_address: str
    leader_address: str
    logs_url: str = ""
    dashboard_url: str = ""
    coming_soon: bool = False
    inverse: bool = False
    risk_snapshot: RiskSnapshot = Field(default_factory=RiskSnapshot, alias="risk_snapshot")


DEFAULT_VAULTS: tuple[VaultConfig, ...] = (
    VaultConfig(
        id="deepseek-chat-v3.1",
        name="DeepSeek V3.1",
        model="DeepSeek V3.1",
        model_id="deepseek-chat-v3.1",
        vault_address="0x250ca707028959f86c92e410235856622d27306f",
        leader_address="0xc20ac4dc4188660cbf555448af52694ca62b0734",
        logs_url="https://userapi-compute.eigencloud.xyz/logs/0x4418BA3C4a1E52BBd8f1133fA136CCED3807c6f9",
        dashboard_url="https://nof1.ai/models/deepseek-chat-v3.1",
    ),
    VaultConfig(
        id="qwen3-max",
        name="Qwen3 Max",
        model="Qwen3 Max",
        model_id="qwen3-max",
        vault_address="0x391d287ddf3ec911de7e211b4b33364361e194b9",
        leader_address="0x7a8fd8bba33e37361ca6b0cb4518a44681bad2f3",
        logs_url="https://userapi-compute.eigencloud.xyz/logs/0xfFE88cADD07B343C79d8e617853A1e140c695860",
        dashboard_url="https://nof1.ai/models/qwen3-max",
    ),
    VaultConfig(
        id="grok-4",
        name="Grok 4",
        model="Grok 4",
        model_id="grok-4",
        vault_address="0xd3e4cd447dc6657716b56ac11f38825fa8cd60ac",
        leader_address="0x56d652e62998251b56c8398fb11fcfe464c08f84",
        logs_url="https://userapi-compute.eigencloud.xyz/logs/0x9abb8630488a02Ec3410C26785f661fa49218140",
        dashboard_url="https://nof1.ai/models/grok-4",
    ),
    VaultConfig(
        id="inverse-gpt-5",
        name="Inverse GPT-5",
        model="Inverse GPT-5",
        model_id="gpt-5",
        vault_address="0xba75577c834ed2abacc71ff9d0c18f30e9c34517",
        leader_address="0x67293d914eafb26878534571add81f6bd2d9fe06",
        logs_url="https://userapi-compute.eigencloud.xyz/logs/0x0feaA0eb6004972CFAA5Ce99cBa705D283525f95",
        dashboard_url="https://nof1.ai/models/gpt-5",
        inverse=True,
        risk_snapshot=RiskSnapshot(max_leverage=5),
    ),
    VaultConfig(
        id="inverse-gemini",
        name="Inverse Gemini",
        model="Inverse Gemini 2.5 Pro",
        model_id="inverse-gemini",
        vault_address="0x4f1a910a1f4396043fced901b5f97e47544bb6c1",
        leader_address="0x1b7a7d099a670256207a30dd0ae13d35f278010f",
        logs_url="https://userapi-compute.eigencloud.xyz/logs/0xfeC9Ac284FC46e5e67E69430889B7AAF5BF47C7e",
        dashboard_url="https://nof1.ai/models/gemini-2.5-pro",
        inverse=True,
        risk_snapshot=RiskSnapshot(max_leverage=5),
    ),
)


class Settings(BaseSettings):
    """Main configuration class."""

    # Paths
    data_dir: Path = Path("data")

    # Observability
    logfire_token: str = ""

    # Nested configuration sections
    hyperliquid: HyperliquidConfig = Field(default_factory=HyperliquidConfig)
    poller: PollerConfig = Field(default_factory=PollerConfig)
    server: ServerConfig = Field(default_factory=ServerConfig)

    vaults: tuple[VaultConfig, ...] = DEFAULT_VAULTS

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator("data_dir", mode="after")
    @classmethod
    def resolve_data_dir(cls, v: Path) -> Path:
        """Resolve data directory to absolute path."""
        return v.resolve()

    @property
    def vaults_path(self) -> Path:
        return self.data_dir / "vaults.yaml"

    def load_vaults(self) -> None:
        """Replace the built-in vault list with data/vaults.yaml when present."""
        if not self.vaults_path.exists():
            logger.info(
                f"No vault file at {self.vaults_path}, "
                f"using {len(self.vaults)} built-in vaults"
            )
            return

        try:
            with open(self.vaults_path, "r", encoding="utf-8") as f:
                raw = yaml.safe_load(f)
        except yaml.YAMLError as e:
            logger.error(f"Failed to parse vault file: {e}")
            raise

        entries = raw.get("vaults", []) if isinstance(raw, dict) else raw
        if not entries:
            logger.warning(f"Empty vault file: {self.vaults_path}")
            return

        self.vaults = tuple(VaultConfig.model_validate(entry) for entry in entries)
        logger.info(f"Loaded {len(self.vaults)} vaults from {self.vaults_path}")


@lru_cache()
def get_settings() -> Settings:
    """Get singleton Settings instance."""
    settings = Settings()
    settings.load_vaults()
    return settings
