from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from vaultwatch.calculations import calculate_roi_pct, to_days, to_number

LEADER_USER = "Leader"


class CamelModel(BaseModel):
    """Immutable model serialized with camelCase keys."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )


class DepositorRecord(CamelModel):
    user: str = LEADER_USER
    equity: float = 0.0
    pnl: float = 0.0
    all_time_pnl: float = 0.0
    days_following: int = 0
    roi_pct: float = 0.0

    @property
    def is_leader(self) -> bool:
        return self.user == LEADER_USER

    @classmethod
    def from_api(cls, data: Any) -> DepositorRecord:
        if not isinstance(data, dict):
            data = {}

        user = data.get("user")
        equity = to_number(data.get("vaultEquity"))
        pnl = to_number(data.get("pnl"))

        return cls(
            user=user if isinstance(user, str) else LEADER_USER,
            equity=equity,
            pnl=pnl,
            all_time_pnl=to_number(data.get("allTimePnl")),
            days_following=to_days(data.get("daysFollowing")),
            roi_pct=calculate_roi_pct(equity, pnl),
        )


class DepositorAggregationResult(CamelModel):
    vault_address: str | None = Field(default=None, alias="vault")
    vault_name: str | None = Field(default=None, alias="name")
    leader_address: str | None = Field(default=None, alias="leader")
    followers: tuple[DepositorRecord, ...] = ()

    @property
    def leader_row(self) -> DepositorRecord | None:
        """First depositor row tagged as the vault creator."""
        return next((f for f in self.followers if f.is_leader), None)

    @classmethod
    def from_api(cls, data: Any) -> DepositorAggregationResult:
        if not isinstance(data, dict):
            return cls()

        raw_followers = data.get("followers")
        if not isinstance(raw_followers, list):
            raw_followers = []

        return cls(
            vault_address=_optional_str(data.get("vaultAddress")),
            vault_name=_optional_str(data.get("name")),
            leader_address=_optional_str(data.get("leader")),
            followers=tuple(DepositorRecord.from_api(f) for f in raw_followers),
        )

    def to_response(self) -> dict[str, Any]:
        """Wire shape of the depositors endpoint; absent fields are omitted."""
        return self.model_dump(by_alias=True, exclude_none=True, mode="json")


class AccountSnapshot(CamelModel):
    vault_address: str
    equity: float = 0.0
    account_value: float = 0.0
    withdrawable: float = 0.0
    total_pnl: float = 0.0
    positions: list[dict[str, Any]] = Field(default_factory=list)
    margin_summary: dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def from_api(cls, address: str, data: Any) -> AccountSnapshot:
        """Build a snapshot from a `clearinghouseState` payload."""
        if not isinstance(data, dict):
            return cls(vault_address=address)

        margin_summary = data.get("marginSummary")
        if not isinstance(margin_summary, dict):
            margin_summary = {}

        raw_positions = data.get("assetPositions")
        positions = [
            p for p in raw_positions if isinstance(p, dict)
        ] if isinstance(raw_positions, list) else []

        total_pnl = 0.0
        for entry in positions:
            position = entry.get("position")
            if isinstance(position, dict):
                total_pnl += to_number(position.get("unrealizedPnl"))

        account_value = to_number(margin_summary.get("accountValue"))

        return cls(
            vault_address=address,
            equity=account_value,
            account_value=account_value,
            withdrawable=to_number(data.get("withdrawable")),
            total_pnl=total_pnl,
            positions=positions,
            margin_summary=margin_summary,
        )

    def to_response(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, mode="json")


def _optional_str(value: Any) -> str | None:
    return value if isinstance(value, str) else None
