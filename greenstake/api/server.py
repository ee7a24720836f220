"""
FastAPI application for the GreenStake record API.

Endpoints:
  POST  /api/forecast                  - AI (or fallback) consumption forecast
  GET   /api/forecast/{walletAddress}  - forecasts for a wallet
  POST  /api/stake                     - create stake record
  PATCH /api/stake/{id}                - partial stake update
  GET   /api/stake/{walletAddress}     - stakes for a wallet
  POST  /api/trade                     - create trade record
  PATCH /api/trade/{id}                - partial trade update
  GET   /api/trade/{walletAddress}     - trades for a wallet
  GET   /api/activity/{walletAddress}  - stakes and trades merged
  GET   /api/health                    - capability map

Every error body is {"error": "<message>"}.
"""

import logging
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

import greenstake
from greenstake.config.loader import Settings
from greenstake.core.activity import activity_feed
from greenstake.core.forecast import DEFAULT_HISTORICAL_DATA, EnergyForecaster, history_json
from greenstake.errors import GreenStakeError, RecordNotFoundError, VersionConflictError
from greenstake.sdk.inference_client import InferenceClient
from greenstake.storage.repository import RecordStore
from .schemas import ForecastRequest, StakeCreate, StakeUpdate, TradeCreate, TradeUpdate

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api")


def get_store(request: Request) -> RecordStore:
    return request.app.state.store


def get_forecaster(request: Request) -> EnergyForecaster:
    return request.app.state.forecaster


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


# ── Forecasts ──

@router.post("/forecast")
def create_forecast(
    body: ForecastRequest,
    store: RecordStore = Depends(get_store),
    forecaster: EnergyForecaster = Depends(get_forecaster),
) -> Dict[str, Any]:
    history = body.historical_data
    if history is None:
        history = list(DEFAULT_HISTORICAL_DATA)
    outcome = forecaster.forecast(history)
    forecast = store.create_forecast(
        wallet_address=body.wallet_address,
        historical_data=history_json(history),
        predicted_consumption=outcome.predicted_consumption,
    )
    logger.info(
        "Forecast %d kWh (%s) for %s",
        outcome.predicted_consumption, outcome.source.value, body.wallet_address,
    )
    return forecast.to_dict()


@router.get("/forecast/{wallet_address}")
def list_forecasts(wallet_address: str, store: RecordStore = Depends(get_store)) -> List[Dict[str, Any]]:
    return [f.to_dict() for f in store.list_forecasts(wallet_address)]


# ── Stakes ──

@router.post("/stake")
def create_stake(body: StakeCreate, store: RecordStore = Depends(get_store)) -> Dict[str, Any]:
    return store.create_stake(**body.model_dump()).to_dict()


@router.patch("/stake/{record_id}")
def update_stake(record_id: str, body: StakeUpdate, store: RecordStore = Depends(get_store)) -> Dict[str, Any]:
    return store.update_stake(record_id, body.updates(), expected_version=body.version).to_dict()


@router.get("/stake/{wallet_address}")
def list_stakes(wallet_address: str, store: RecordStore = Depends(get_store)) -> List[Dict[str, Any]]:
    return [s.to_dict() for s in store.list_stakes(wallet_address)]


# ── Trades ──

@router.post("/trade")
def create_trade(body: TradeCreate, store: RecordStore = Depends(get_store)) -> Dict[str, Any]:
    return store.create_trade(**body.model_dump()).to_dict()


@router.patch("/trade/{record_id}")
def update_trade(record_id: str, body: TradeUpdate, store: RecordStore = Depends(get_store)) -> Dict[str, Any]:
    return store.update_trade(record_id, body.updates(), expected_version=body.version).to_dict()


@router.get("/trade/{wallet_address}")
def list_trades(wallet_address: str, store: RecordStore = Depends(get_store)) -> List[Dict[str, Any]]:
    return [t.to_dict() for t in store.list_trades(wallet_address)]


# ── Activity & health ──

@router.get("/activity/{wallet_address}")
def list_activity(wallet_address: str, store: RecordStore = Depends(get_store)) -> List[Dict[str, Any]]:
    return [e.to_dict() for e in activity_feed(store, wallet_address)]


@router.get("/health")
def health(settings: Settings = Depends(get_settings)) -> Dict[str, Any]:
    return health_report(settings)


def health_report(settings: Settings) -> Dict[str, Any]:
    """Static capability map; no dependency is probed."""
    return {
        "status": "ok",
        "services": {
            "ai": settings.ai_configured,
            "storage": True,
        },
    }


# ── Error handling ──

def format_validation_error(exc: RequestValidationError) -> str:
    """Render pydantic errors as one readable line."""
    parts = []
    for err in exc.errors():
        loc = [str(p) for p in err.get("loc", ()) if p != "body"]
        where = f' at "{".".join(loc)}"' if loc else ""
        parts.append(f"{err.get('msg', 'Invalid value')}{where}")
    return "Validation error: " + "; ".join(parts)


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


def _install_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(RequestValidationError)
    async def _validation(request: Request, exc: RequestValidationError):
        return _error(400, format_validation_error(exc))

    @app.exception_handler(RecordNotFoundError)
    async def _not_found(request: Request, exc: RecordNotFoundError):
        return _error(404, str(exc))

    @app.exception_handler(VersionConflictError)
    async def _conflict(request: Request, exc: VersionConflictError):
        return _error(409, str(exc))

    @app.exception_handler(ValueError)
    async def _value(request: Request, exc: ValueError):
        return _error(400, str(exc))

    @app.exception_handler(GreenStakeError)
    async def _domain(request: Request, exc: GreenStakeError):
        logger.error("Request to %s failed: %s", request.url.path, exc)
        return _error(500, str(exc))

    @app.exception_handler(Exception)
    async def _unexpected(request: Request, exc: Exception):
        logger.exception("Unhandled error on %s", request.url.path)
        return _error(500, str(exc) or "Internal server error")


# ── App ──

def create_app(
    settings: Optional[Settings] = None,
    store: Optional[RecordStore] = None,
    forecaster: Optional[EnergyForecaster] = None,
) -> FastAPI:
    """Build the API application.

    Args:
        settings: Runtime settings (defaults to Settings())
        store: Record store shared by all requests (a new empty store by default)
        forecaster: Forecaster (built from settings by default)

    Returns:
        Configured FastAPI application
    """
    settings = settings or Settings()

    app = FastAPI(
        title="GreenStake API",
        description="Forecast, stake and trade records for the GreenStakeDEX showcase",
        version=greenstake.__version__,
    )
    app.state.settings = settings
    app.state.store = store if store is not None else RecordStore()
    app.state.forecaster = forecaster or EnergyForecaster(InferenceClient.from_settings(settings))

    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(settings.cors_origins),
        allow_methods=["GET", "POST", "PATCH", "OPTIONS"],
        allow_headers=["*"],
    )

    _install_error_handlers(app)
    app.include_router(router)
    return app
