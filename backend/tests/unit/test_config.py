"""Tests for settings and vault list loading."""

import sys
from pathlib import Path

import pytest
import yaml

sys.path.insert(0, str(Path(__file__).parent.parent.parent))

from vaultwatch.config import DEFAULT_VAULTS, Settings


def test_defaults(tmp_path: Path) -> None:
    settings = Settings(data_dir=tmp_path)
    settings.load_vaults()

    assert settings.poller.refresh_interval_ms == 10_000
    assert settings.hyperliquid.base_url == "https://api.hyperliquid.xyz"
    assert settings.vaults == DEFAULT_VAULTS
    assert settings.server.origins == ["http://localhost:3000"]


def test_nested_env_overrides(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("POLLER__REFRESH_INTERVAL_MS", "2500")
    monkeypatch.setenv("HYPERLIQUID__TESTNET", "true")
    monkeypatch.setenv("SERVER__ALLOWED_ORIGINS", "http://a.test, http://b.test")

    settings = Settings()

    assert settings.poller.refresh_interval_ms == 2500
    assert settings.hyperliquid.base_url == "https://api.hyperliquid-testnet.xyz"
    assert settings.server.origins == ["http://a.test", "http://b.test"]


def test_load_vaults_from_yaml(tmp_path: Path) -> None:
    (tmp_path / "vaults.yaml").write_text(
        yaml.safe_dump(
            {
                "vaults": [
                    {
                        "id": "alpha",
                        "name": "Alpha",
                        "model": "Alpha 1",
                        "modelId": "alpha-1",
                        "vaultAddress": "0xaaa",
                        "leaderAddress": "0xbbb",
                        "comingSoon": True,
                        "risk_snapshot": {"copyRatio": 0.5, "maxLeverage": 3},
                    }
                ]
            }
        )
    )

    settings = Settings(data_dir=tmp_path)
    settings.load_vaults()

    (vault,) = settings.vaults
    assert vault.model_id == "alpha-1"
    assert vault.vault_address == "0xaaa"
    assert vault.coming_soon is True
    assert vault.risk_snapshot.copy_ratio == 0.5
    assert vault.risk_snapshot.max_leverage == 3


def test_empty_vault_file_keeps_defaults(tmp_path: Path) -> None:
    (tmp_path / "vaults.yaml").write_text("")

    settings = Settings(data_dir=tmp_path)
    settings.load_vaults()

    assert settings.vaults == DEFAULT_VAULTS
