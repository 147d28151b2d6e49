import logging
import time
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import Optional

from fastapi import FastAPI, HTTPException, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from pulse_engine import __version__, config
from pulse_engine.clients import LLMClient
from pulse_engine.clients.http import close_client
from pulse_engine.orchestrator import (
    RefreshScheduler, RefreshTasks, start_cron_jobs, stop_cron_jobs,
)
from pulse_engine.services import (
    ExchangeDataService, MarketData, MarketViewService, NewsPredictionService, PredictionService,
)
from pulse_engine.storage import Storage, connect_storage

logging.basicConfig(level=config.LOG_LEVEL, format="%(asctime)s %(levelname)s %(message)s")
log = logging.getLogger("cp.app")


@dataclass
class Runtime:
    storage:     Storage
    exchange:    ExchangeDataService
    predictions: PredictionService
    news:        NewsPredictionService
    views:       MarketViewService
    scheduler:   RefreshScheduler


runtime: Optional[Runtime] = None


def build_runtime(storage: Storage, market: Optional[MarketData] = None,
                  llm: Optional[LLMClient] = None) -> Runtime:
    """Wire services around one storage, one market gateway and one model client."""
    market = market or MarketData()
    llm    = llm or LLMClient()
    exchange    = ExchangeDataService(market)
    predictions = PredictionService(storage, llm, market)
    news        = NewsPredictionService(llm, market)
    tasks       = RefreshTasks(storage, exchange, predictions, news)
    return Runtime(
        storage     = storage,
        exchange    = exchange,
        predictions = predictions,
        news        = news,
        views       = MarketViewService(market),
        scheduler   = RefreshScheduler(tasks),
    )


def get_runtime() -> Runtime:
    if runtime is None:
        raise HTTPException(503, "Service starting")
    return runtime


@asynccontextmanager
async def lifespan(app: FastAPI):
    global runtime
    storage = await connect_storage(config.REDIS_URL)
    seeded = await storage.seed_strategies()
    if seeded:
        log.info(f"Seeded {seeded} strategies")

    runtime = build_runtime(storage)
    if not runtime.predictions.ai_enabled:
        log.warning("ANTHROPIC_API_KEY not set — predictions will be neutral placeholders")
    if config.CRON_ENABLED:
        runtime.scheduler = start_cron_jobs(runtime.scheduler.tasks)
    else:
        log.info("CRON_ENABLED=0 — refresh scheduler not started")
    yield
    stop_cron_jobs()
    await close_client()
    await storage.close()
    runtime = None


app = FastAPI(
    title="Crypto Pulse API",
    description="Exchange depth, AI price predictions and news impact for the Crypto Pulse dashboard.",
    version=__version__,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(Exception)
async def unhandled_error(request: Request, exc: Exception):
    log.error(f"{request.method} {request.url.path} failed: {exc}")
    return JSONResponse(status_code=500, content={"message": str(exc) or "Internal error"})


def normalise_asset(asset: str) -> str:
    asset = asset.upper().strip()
    if not asset.isalnum() or len(asset) > 10:
        raise HTTPException(400, f"Invalid asset symbol: {asset!r}")
    return asset


@app.get("/")
async def root():
    return {"status": "ok", "docs": "/docs", "api": "/api/exchange/depth/BTC"}


@app.get("/health")
async def health():
    rt = get_runtime()
    return {
        "status":    "healthy",
        "storage":   rt.storage.name,
        "ai":        "enabled" if rt.predictions.ai_enabled else "disabled",
        "scheduler": "running" if rt.scheduler.is_running else "stopped",
        "timestamp": int(time.time()),
    }


@app.get("/api/ai/prediction/{asset}", tags=["AI"])
async def get_prediction(asset: str, timeframe: str = Query("1H", description="5M 15M 30M 1H 4H 1D 1W")):
    rt = get_runtime()
    try:
        prediction = await rt.predictions.generate_prediction(normalise_asset(asset), timeframe)
    except ValueError as e:
        raise HTTPException(400, str(e))
    return prediction.to_dict()


@app.get("/api/ai/fear-greed", tags=["AI"])
async def get_fear_greed_depth():
    return await get_runtime().views.get_fear_greed_for_depth()


@app.get("/api/exchange/depth/{symbol}", tags=["Market"])
async def get_exchange_depth(symbol: str):
    snapshot = await get_runtime().exchange.get_exchange_aggregated_data(normalise_asset(symbol))
    return snapshot.to_dict()


@app.get("/api/news/predictions", tags=["AI"])
async def get_news_predictions():
    batch = await get_runtime().news.get_news_predictions()
    return [n.to_dict() for n in batch]


@app.get("/api/market/fear-greed-history", tags=["Market"])
async def get_fear_greed_history(limit: int = Query(365, ge=1, le=2000)):
    return await get_runtime().views.get_fear_greed_history(limit)


@app.get("/api/market/sentiment/{asset}", tags=["Market"])
async def get_asset_sentiment(asset: str):
    return await get_runtime().views.get_asset_sentiment(normalise_asset(asset))


@app.get("/api/strategies", tags=["Strategies"])
async def get_strategies():
    strategies = await get_runtime().storage.get_strategies()
    return [s.to_dict() for s in strategies]


@app.get("/api/scheduler/status", tags=["Scheduler"])
async def scheduler_status():
    return get_runtime().scheduler.status()


@app.post("/api/scheduler/trigger", tags=["Scheduler"])
async def scheduler_trigger():
    return get_runtime().scheduler.trigger_now()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("app:app", host="0.0.0.0", port=config.PORT, reload=False, log_level="info")
