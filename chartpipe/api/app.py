from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from chartpipe.api.charts import router as charts_router
from chartpipe.config.settings import settings
from chartpipe.services.fetch_controller import ChartDataFetchController
from chartpipe.services.pins import PinnedCharts
from chartpipe.services.query_client import QueryServiceClient
from chartpipe.services.result_cache import ChartResultCache


@asynccontextmanager
async def lifespan(app: FastAPI):
    client = QueryServiceClient()
    app.state.controller = ChartDataFetchController(client, cache=ChartResultCache())
    app.state.pins = PinnedCharts()
    try:
        yield
    finally:
        await client.close()


app = FastAPI(title="Chart Data API", lifespan=lifespan)


def _parse_cors_origins(value: str) -> tuple[list[str], bool]:
    raw = (value or "").strip()
    if raw == "*":
        # Credentials are not compatible with wildcard origins.
        return ["*"], False
    origins = [o.strip() for o in raw.split(",") if o.strip()]
    return origins, True


origins, allow_credentials = _parse_cors_origins(settings.cors_allow_origins)
if origins:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials=allow_credentials,
        allow_methods=["*"],
        allow_headers=["*"],
    )

app.include_router(charts_router, prefix="/api")


@app.get("/health", tags=["health"])
async def health() -> dict:
    return {"status": "ok"}
