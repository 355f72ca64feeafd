"""FastAPI server exposing depositor aggregation, account snapshots and the vault poller."""

import logging
from contextlib import asynccontextmanager
from typing import Any, Awaitable

import httpx
from fastapi import APIRouter, Depends, FastAPI, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from vaultwatch import __version__
from vaultwatch.aggregator import aggregate_depositors, fetch_account_snapshot
from vaultwatch.config import Settings, get_settings
from vaultwatch.observability import initialize_logfire
from vaultwatch.poller import HyperliquidVaultSource, VaultDataPoller
from vaultwatch.services.hyperliquid import (
    HyperliquidClient,
    HyperliquidUpstreamError,
    InvalidRequestError,
    create_hyperliquid_client,
)

logger = logging.getLogger(__name__)

NO_STORE = {"Cache-Control": "no-store"}

router = APIRouter()


def get_client(request: Request) -> HyperliquidClient:
    return request.app.state.client


def get_poller(request: Request) -> VaultDataPoller:
    return request.app.state.poller


async def _relay(fetch: Awaitable[Any], failure_message: str) -> JSONResponse:
    """Await an upstream read and map its outcome onto the JSON error contract."""
    try:
        result = await fetch
    except InvalidRequestError as e:
        return JSONResponse({"error": str(e)}, status_code=400)
    except HyperliquidUpstreamError as e:
        return JSONResponse(
            {"error": f"Hyperliquid API error: {e.status_code}"},
            status_code=e.status_code,
        )
    except Exception as e:
        logger.error(f"{failure_message}: {e}", exc_info=True)
        return JSONResponse({"error": failure_message}, status_code=500)

    return JSONResponse(result.to_response(), headers=NO_STORE)


@router.get("/api/vault/depositors")
async def get_vault_depositors(
    vault: str | None = Query(default=None),
    client: HyperliquidClient = Depends(get_client),
):
    """Depositor table of a vault with per-depositor ROI."""
    return await _relay(
        aggregate_depositors(client, vault),
        "Failed to fetch vault depositors",
    )


@router.get("/api/hyperliquid")
async def get_account_snapshot(
    vault: str | None = Query(default=None),
    client: HyperliquidClient = Depends(get_client),
):
    """Equity and open-position PnL of a vault or wallet address."""
    return await _relay(
        fetch_account_snapshot(client, vault),
        "Failed to fetch Hyperliquid data",
    )


@router.get("/api/vaults")
async def list_vaults(poller: VaultDataPoller = Depends(get_poller)):
    """Latest published vault snapshots with loading/error state."""
    return JSONResponse(poller.to_response(), headers=NO_STORE)


@router.post("/api/vaults/refresh")
async def refresh_vaults(poller: VaultDataPoller = Depends(get_poller)):
    """Run a refresh cycle now and return what it published."""
    await poller.refresh()
    return JSONResponse(poller.to_response(), headers=NO_STORE)


@router.get("/health")
async def health_check(poller: VaultDataPoller = Depends(get_poller)) -> dict[str, Any]:
    return {
        "status": "degraded" if poller.error else "healthy",
        "service": "vaultwatch-api",
        "version": __version__,
        "poller": poller.state.value,
        "vaults": len(poller.snapshots),
    }


def create_app(
    settings: Settings | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
    start_poller: bool = True,
) -> FastAPI:
    """Build the API app. `transport` replaces the Hyperliquid network transport."""
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        initialize_logfire(settings)
        logger.info("Starting Vaultwatch API Server")

        async with create_hyperliquid_client(settings.hyperliquid, transport) as client:
            poller = VaultDataPoller(
                settings.vaults,
                HyperliquidVaultSource(client),
                refresh_interval_ms=settings.poller.refresh_interval_ms,
            )
            app.state.client = client
            app.state.poller = poller

            if start_poller:
                poller.start()

            try:
                yield
            finally:
                logger.info("Shutting down Vaultwatch API Server")
                await poller.dispose()
                await poller.drain()

    app = FastAPI(
        title="Vaultwatch API",
        description="Follower and leader ROI for Hyperliquid copy-trading vaults",
        version=__version__,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.server.origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(router)
    return app
