"""Timed refresh of merged follower/leader/depositor figures for every vault.

Each cycle fans out three reads per vault (follower account, leader account,
depositor table), merges them into a `VaultSnapshot` and publishes the whole
collection at once. A vault is dropped for that cycle when its follower
read fails or any of its reads raises something other than a Hyperliquid
API error; leader and depositor API errors only zero the figures they feed.
A fault outside the reads (merging, publishing) is a cycle failure: the
previous collection stays published and `error` is set.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Callable, Iterable, Protocol

import httpx
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger
from pydantic import Field, ValidationError

from vaultwatch.aggregator import aggregate_depositors, fetch_account_snapshot
from vaultwatch.calculations import calculate_roi_pct
from vaultwatch.config import RiskSnapshot, VaultConfig
from vaultwatch.services.hyperliquid import (
    AccountSnapshot,
    DepositorAggregationResult,
    HyperliquidAPIError,
    HyperliquidClient,
    HyperliquidNetworkError,
    HyperliquidUpstreamError,
)
from vaultwatch.services.hyperliquid.models import CamelModel

logger = logging.getLogger(__name__)

DEFAULT_REFRESH_INTERVAL_MS = 10_000


class VaultSnapshot(CamelModel):
    model_id: str
    name: str
    model: str
    vault_address: str
    follower_equity_usd: float
    leader_equity_usd: float
    roi_percent: float
    leader_all_time_roi_percent: float
    logs_url: str
    dashboard_url: str
    risk_snapshot: RiskSnapshot = Field(alias="risk_snapshot")


class PollerState(str, Enum):
    LOADING = "loading"
    READY = "ready"
    READY_WITH_ERROR = "ready-with-error"
    DISPOSED = "disposed"


class VaultDataSource(Protocol):
    async def account_snapshot(self, address: str) -> AccountSnapshot: ...

    async def depositors(self, vault_address: str) -> DepositorAggregationResult: ...


class HyperliquidVaultSource:
    """Reads vault data straight from the Hyperliquid info API."""

    def __init__(self, client: HyperliquidClient):
        self.client = client

    async def account_snapshot(self, address: str) -> AccountSnapshot:
        return await fetch_account_snapshot(self.client, address)

    async def depositors(self, vault_address: str) -> DepositorAggregationResult:
        return await aggregate_depositors(self.client, vault_address)


class ApiVaultSource:
    """Reads vault data through a running vaultwatch HTTP service."""

    def __init__(self, client: httpx.AsyncClient):
        self.client = client

    async def _get(self, path: str, address: str) -> Any:
        try:
            response = await self.client.get(
                path,
                params={"vault": address},
                headers={"Cache-Control": "no-store"},
            )
        except httpx.RequestError as e:
            raise HyperliquidNetworkError(f"Network error: {e}") from e

        if not response.is_success:
            raise HyperliquidUpstreamError(
                f"{path} returned {response.status_code}",
                status_code=response.status_code,
            )

        try:
            return response.json()
        except ValueError as e:
            raise HyperliquidNetworkError(f"Invalid JSON from {path}: {e}") from e

    async def account_snapshot(self, address: str) -> AccountSnapshot:
        data = await self._get("/api/hyperliquid", address)
        try:
            return AccountSnapshot.model_validate(data)
        except ValidationError as e:
            raise HyperliquidNetworkError(f"Malformed account snapshot: {e}") from e

    async def depositors(self, vault_address: str) -> DepositorAggregationResult:
        data = await self._get("/api/vault/depositors", vault_address)
        try:
            return DepositorAggregationResult.model_validate(data)
        except ValidationError as e:
            raise HyperliquidNetworkError(f"Malformed depositor list: {e}") from e


def merge_vault_snapshot(
    vault: VaultConfig,
    follower: AccountSnapshot,
    leader: AccountSnapshot | None = None,
    depositors: DepositorAggregationResult | None = None,
) -> VaultSnapshot:
    """Combine one cycle's reads for a vault into its published snapshot.

    The depositor table's "Leader" row is the preferred basis for the
    leader's all-time ROI; the leader account equity is used only when that
    row is missing.
    """
    leader_equity = leader.equity if leader else 0.0
    follower_equity = follower.equity

    roi_percent = calculate_roi_pct(follower_equity, follower.total_pnl)

    leader_row = depositors.leader_row if depositors else None
    leader_all_time_pnl = leader_row.all_time_pnl if leader_row else 0.0
    leader_current_pnl = leader_row.pnl if leader_row else 0.0
    leader_equity_for_calc = leader_row.equity if leader_row else leader_equity
    leader_all_time_roi = calculate_roi_pct(
        leader_equity_for_calc, leader_current_pnl, gain=leader_all_time_pnl
    )

    return VaultSnapshot(
        model_id=vault.model_id,
        name=vault.name,
        model=vault.model,
        vault_address=vault.vault_address,
        follower_equity_usd=follower_equity,
        leader_equity_usd=leader_equity,
        roi_percent=roi_percent,
        leader_all_time_roi_percent=leader_all_time_roi,
        logs_url=vault.logs_url,
        dashboard_url=vault.dashboard_url,
        risk_snapshot=vault.risk_snapshot,
    )


class VaultDataPoller:
    """Owns the refresh timer and the published snapshot collection.

    Construction does not fetch. The first cycle runs when `start()` is
    called (or on entering `async with`), and the server lifespan does that
    right after building the poller.
    """

    def __init__(
        self,
        vaults: Iterable[VaultConfig],
        source: VaultDataSource,
        refresh_interval_ms: int = DEFAULT_REFRESH_INTERVAL_MS,
        on_publish: Callable[[tuple[VaultSnapshot, ...]], None] | None = None,
    ):
        if refresh_interval_ms <= 0:
            raise ValueError(
                f"Refresh interval must be positive, got {refresh_interval_ms}"
            )

        self.vaults = tuple(v for v in vaults if not v.coming_soon)
        self.source = source
        self.refresh_interval_ms = refresh_interval_ms
        self.on_publish = on_publish

        self._snapshots: tuple[VaultSnapshot, ...] = ()
        self._loading = True
        self._error: str | None = None
        self._disposed = False
        self._scheduler: AsyncIOScheduler | None = None
        self._ticks: set[asyncio.Task] = set()

    async def __aenter__(self) -> VaultDataPoller:
        self.start()
        return self

    async def __aexit__(
        self,
        exc_type: type | None,
        exc_val: Exception | None,
        exc_tb: Any,
    ) -> None:
        await self.dispose()

    @property
    def snapshots(self) -> tuple[VaultSnapshot, ...]:
        return self._snapshots

    @property
    def loading(self) -> bool:
        return self._loading

    @property
    def error(self) -> str | None:
        return self._error

    @property
    def disposed(self) -> bool:
        return self._disposed

    @property
    def state(self) -> PollerState:
        if self._disposed:
            return PollerState.DISPOSED
        if self._loading:
            return PollerState.LOADING
        if self._error is not None:
            return PollerState.READY_WITH_ERROR
        return PollerState.READY

    def start(self) -> None:
        """Fetch immediately, then every refresh interval. Needs a running loop."""
        if self._disposed:
            raise RuntimeError("VaultDataPoller has been disposed")
        if self._scheduler is not None:
            return

        self._scheduler = AsyncIOScheduler()
        self._scheduler.add_job(
            self._tick_job,
            IntervalTrigger(seconds=self.refresh_interval_ms / 1000),
            id="vault-refresh",
            name="Vault data refresh",
            next_run_time=datetime.now(timezone.utc),
            coalesce=True,
        )
        self._scheduler.start()
        logger.info(
            f"Started vault poller ({len(self.vaults)} vaults, "
            f"every {self.refresh_interval_ms} ms)"
        )

    async def _tick_job(self) -> None:
        # Ticks run detached from the job; a slow cycle can overlap the next.
        task = asyncio.create_task(self.refresh())
        self._ticks.add(task)
        task.add_done_callback(self._ticks.discard)

    async def dispose(self) -> None:
        """Stop the timer. In-flight cycles finish but never publish."""
        if self._disposed:
            return
        self._disposed = True

        if self._scheduler is not None:
            if self._scheduler.running:
                self._scheduler.shutdown(wait=False)
            self._scheduler = None

        logger.info("Disposed vault poller")

    async def drain(self) -> None:
        """Wait for cycles still in flight."""
        if self._ticks:
            await asyncio.gather(*self._ticks, return_exceptions=True)

    async def refresh(self) -> tuple[VaultSnapshot, ...]:
        """Run one full cycle and publish its result. Returns the published collection."""
        try:
            results = await asyncio.gather(
                *(self._fetch_vault(vault) for vault in self.vaults),
                return_exceptions=True,
            )
            for result in results:
                if isinstance(result, BaseException):
                    raise result

            snapshots = tuple(s for s in results if s is not None)

            if self._disposed:
                logger.debug("Poller disposed during cycle, discarding results")
                return self._snapshots

            self._snapshots = snapshots
            self._error = None
            logger.info(
                f"Published {len(snapshots)}/{len(self.vaults)} vault snapshots"
            )
            if self.on_publish:
                self.on_publish(snapshots)

        except Exception as e:
            logger.error(f"Failed to fetch vault data: {e}", exc_info=True)
            if not self._disposed:
                self._error = str(e) or "Failed to fetch data"
        finally:
            if not self._disposed:
                self._loading = False

        return self._snapshots

    async def _fetch_vault(self, vault: VaultConfig) -> VaultSnapshot | None:
        follower, leader, depositors = await asyncio.gather(
            self.source.account_snapshot(vault.vault_address),
            self.source.account_snapshot(vault.leader_address),
            self.source.depositors(vault.vault_address),
            return_exceptions=True,
        )

        reads = (follower, leader, depositors)
        for result in reads:
            if isinstance(result, BaseException) and not isinstance(result, Exception):
                raise result

        for result in reads:
            if isinstance(result, Exception) and not isinstance(
                result, HyperliquidAPIError
            ):
                logger.error(
                    f"Error fetching vault {vault.vault_address}: {result}",
                    exc_info=result,
                )
                return None

        if isinstance(follower, HyperliquidAPIError):
            logger.error(
                f"Failed to fetch Hyperliquid data for vault {vault.vault_address}: {follower}"
            )
            return None

        if isinstance(leader, HyperliquidAPIError):
            logger.warning(
                f"Leader data unavailable for {vault.leader_address}: {leader}"
            )
            leader = None

        if isinstance(depositors, HyperliquidAPIError):
            logger.warning(
                f"Depositors unavailable for {vault.vault_address}: {depositors}"
            )
            depositors = None

        return merge_vault_snapshot(vault, follower, leader, depositors)

    def to_response(self) -> dict[str, Any]:
        return {
            "vaults": [
                s.model_dump(by_alias=True, mode="json") for s in self._snapshots
            ],
            "loading": self._loading,
            "error": self._error,
        }
