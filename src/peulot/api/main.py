"""Peulot API — FastAPI application for generating and curating peulot.

Run:
    uvicorn peulot.api.main:app --reload
    # or
    peulot-api
"""

import asyncio
import logging
import uuid
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from peulot import __version__
from peulot.api.anchors import router as anchors_router
from peulot.api.routes import router
from peulot.api.training import router as training_router
from peulot.config import settings
from peulot.core.errors import PeulotError
from peulot.generation.client import OpenAIChatClient
from peulot.generation.insights import InsightsCache
from peulot.integrations.google_workspace import GoogleCredentialProvider, GoogleDocsClient
from peulot.observability.logging import correlation_id, setup_logging
from peulot.observability.tracing import enable_async_logging, set_experiment, set_tracking_uri
from peulot.storage import create_storage

logger = logging.getLogger(__name__)

DB_INIT_TIMEOUT_SECONDS = 15


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Build the store and outbound clients on startup, release them on shutdown."""
    setup_logging(json_format=settings.log_json, level=settings.log_level)

    try:
        set_tracking_uri(settings.mlflow_tracking_uri)
        set_experiment(settings.mlflow_experiment_name)
        enable_async_logging()
        logger.info("MLflow tracing enabled: %s", settings.mlflow_tracking_uri)
    except Exception as e:
        logger.warning("MLflow setup failed: %s — tracing disabled", e)

    store = create_storage(settings)
    logger.info("Initializing %s storage...", settings.storage_backend)
    try:
        await asyncio.wait_for(store.init(), timeout=DB_INIT_TIMEOUT_SECONDS)
        logger.info("Storage initialized successfully")
    except asyncio.TimeoutError:
        logger.error("Storage initialization timed out after %ds — API will start in degraded mode",
                     DB_INIT_TIMEOUT_SECONDS)
    except Exception as e:
        logger.error("Storage initialization failed: %s — API will start in degraded mode", e)

    app.state.store = store
    app.state.generation_client = OpenAIChatClient(
        base_url=settings.llm_base_url,
        api_key=settings.llm_api_key,
        model=settings.llm_model,
        timeout_seconds=settings.llm_timeout_seconds,
    )
    app.state.docs_client = GoogleDocsClient(
        GoogleCredentialProvider(
            settings.google_client_id,
            settings.google_client_secret,
            settings.google_refresh_token,
        ),
        template_name=settings.google_docs_template_name,
        require_template=settings.google_docs_require_template,
    )
    app.state.insights_cache = InsightsCache()
    logger.info("Peulot API ready")
    yield
    logger.info("Shutting down")
    await store.close()


class CorrelationIDMiddleware(BaseHTTPMiddleware):
    """Set correlation ID from X-Request-ID header or generate a new one."""

    async def dispatch(self, request: Request, call_next):
        cid = request.headers.get("x-request-id", str(uuid.uuid4()))
        token = correlation_id.set(cid)
        try:
            response = await call_next(request)
            response.headers["x-request-id"] = cid
            return response
        finally:
            correlation_id.reset(token)


app = FastAPI(
    title="Peulot",
    description="AI-assisted lesson planning for Tzofim counselors: nine-section peulot "
    "generated from a questionnaire, refined section by section, exported to Google Docs.",
    version=__version__,
    lifespan=lifespan,
)

app.add_middleware(CorrelationIDMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(router)
app.include_router(training_router)
app.include_router(anchors_router)


# ---------------------------------------------------------------------------
# Error handling: every failure leaves as {"error": ..., "details"?: ...}
# ---------------------------------------------------------------------------

def _error_body(error: str, details=None) -> dict:
    body = {"error": error}
    if details is not None:
        body["details"] = details
    return body


@app.exception_handler(PeulotError)
async def peulot_error_handler(request: Request, exc: PeulotError):
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    else:
        logger.warning("%s %s rejected: %s", request.method, request.url.path, exc.message)
    return JSONResponse(status_code=exc.status_code, content=_error_body(exc.message, exc.details))


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    logger.warning("%s %s invalid request data", request.method, request.url.path)
    return JSONResponse(
        status_code=400,
        content=_error_body("Invalid request data", jsonable_encoder(exc.errors())),
    )


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content=_error_body("Internal server error"))


@app.get("/health")
async def health(request: Request):
    """Health check — verifies storage connectivity."""
    checks = {}
    store = getattr(request.app.state, "store", None)
    if store is None:
        checks["storage"] = "not_initialized"
    else:
        try:
            await store.ping()
            checks["storage"] = "ok"
        except Exception as e:
            checks["storage"] = f"error: {e}"

    status = "healthy" if checks["storage"] == "ok" else "degraded"
    return {"status": status, "checks": checks}


def run():
    """Entry point for peulot-api console script."""
    uvicorn.run("peulot.api.main:app", host="0.0.0.0", port=8000, reload=True)
