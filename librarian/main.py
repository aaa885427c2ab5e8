"""FastAPI application entry point for the Formulas Librarian backend."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Mapping

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from librarian.answer.invoker import AnswerInvoker
from librarian.api.chat import create_chat_router
from librarian.core.config import Settings, get_settings
from librarian.core.errors import ChatError, chat_error_handler, unhandled_exception_handler
from librarian.core.logging import configure_logging, request_id_middleware
from librarian.core.metrics import MetricsCollector
from librarian.core.rate_limit import QuotaStore
from librarian.guard.admission import InputGuard
from librarian.llm.gemini import GeminiClient, LanguageModel
from librarian.metadata.blob_store import BlobStore, GCSBlobStore
from librarian.metadata.cache import MetadataCache
from librarian.metadata.premium import PremiumProductRecord, load_premium_records
from librarian.pipeline import ChatPipeline
from librarian.planner.router import IntentRouter
from librarian.planner.types import DecisionKind
from librarian.tools import (
    ClarifyTool,
    DeliveryTool,
    DocumentTool,
    GeneralTool,
    GuideTool,
    ToolRouter,
    UnknownProductTool,
    UseCaseTool,
)

logger = logging.getLogger("librarian.app")


def build_pipeline(
    settings: Settings,
    *,
    blob_store: BlobStore,
    llm: LanguageModel,
    premium_records: Mapping[str, PremiumProductRecord],
    metrics: MetricsCollector,
) -> ChatPipeline:
    """Wire the pipeline components from explicit collaborators."""

    quota = QuotaStore(
        max_requests=settings.rate_limit_max_requests,
        window_seconds=settings.rate_limit_window_seconds,
        max_clients=settings.rate_limit_max_clients,
    )
    cache = MetadataCache(
        blob_store,
        guide_name=settings.guide_blob_name,
        delivery_name=settings.delivery_blob_name,
        use_case_name=settings.use_case_blob_name,
        fallback_guide_path=settings.fallback_guide_path,
        ttl_seconds=settings.metadata_cache_ttl_seconds,
        metrics=metrics,
    )
    assembler = ToolRouter(
        {
            DecisionKind.CLARIFY: ClarifyTool(),
            DecisionKind.GUIDE: GuideTool(),
            DecisionKind.DELIVERY: DeliveryTool(),
            DecisionKind.USE_CASE: UseCaseTool(),
            DecisionKind.GENERAL: GeneralTool(),
            DecisionKind.NONE: UnknownProductTool(),
            DecisionKind.DOCUMENT: DocumentTool(blob_store, premium_records, settings.document_text_limit),
        },
        metrics=metrics,
    )
    return ChatPipeline(
        guard=InputGuard(settings, quota),
        cache=cache,
        router=IntentRouter(llm),
        assembler=assembler,
        invoker=AnswerInvoker(llm),
        metrics=metrics,
        router_history_turns=settings.router_history_turns,
    )


def create_app(
    settings: Settings | None = None,
    *,
    blob_store: BlobStore | None = None,
    llm: LanguageModel | None = None,
    premium_records: Mapping[str, PremiumProductRecord] | None = None,
) -> FastAPI:
    """Build the application. Collaborators default to the production adapters."""

    settings = settings or get_settings()
    if blob_store is None:
        blob_store = GCSBlobStore(
            settings.gcs_bucket_name,
            credentials_base64=settings.gcs_credentials_base64,
            credentials_file=settings.google_application_credentials,
        )
    if llm is None:
        llm = GeminiClient(settings.gemini_api_key, settings.gemini_model)
    if premium_records is None:
        premium_records = load_premium_records(settings.premium_products_path)

    metrics = MetricsCollector()
    pipeline = build_pipeline(
        settings,
        blob_store=blob_store,
        llm=llm,
        premium_records=premium_records,
        metrics=metrics,
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        level = configure_logging(settings.log_level)
        logger.info(
            "Logging configured at %s level for %s environment",
            logging.getLevelName(level),
            settings.environment,
        )
        yield
        pipeline.cache.teardown()
        pipeline.guard.teardown()

    app = FastAPI(title=settings.app_name, version="0.1.0", docs_url="/docs", lifespan=lifespan)
    app.state.settings = settings
    app.state.pipeline = pipeline
    app.state.metrics = metrics
    app.state.premium_records = premium_records

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.middleware("http")(request_id_middleware)
    app.add_exception_handler(ChatError, chat_error_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)

    app.include_router(create_chat_router())

    @app.get("/health", tags=["health"])
    async def health_check() -> dict[str, str]:
        """Return basic service status for monitoring."""

        return {"status": "ok"}

    @app.get("/ready", tags=["health"])
    async def readiness_probe(request: Request) -> dict[str, Any]:
        """Readiness endpoint reporting configuration and cached metadata state.

        Checks:
        - Gemini credentials present.
        - Premium product dataset loaded.
        - Current metadata snapshot (if any) and its degraded fields.
        """

        state = request.app.state
        snapshot = state.pipeline.cache.peek()
        components: dict[str, dict[str, Any]] = {
            "credentials": {"ok": state.settings.gemini_enabled},
            "premium_dataset": {
                "path": str(state.settings.premium_products_path),
                "records": len(state.premium_records),
                "ok": bool(state.premium_records),
            },
            "metadata_cache": {
                "warm": snapshot is not None,
                "files": len(snapshot.file_index) if snapshot else 0,
                "degraded": list(snapshot.degraded) if snapshot else [],
            },
        }

        if not components["credentials"]["ok"]:
            overall = "fail"
        elif components["premium_dataset"]["ok"] and not components["metadata_cache"]["degraded"]:
            overall = "ok"
        else:
            overall = "degraded"

        return {
            "status": overall,
            "environment": state.settings.environment,
            "components": components,
        }

    @app.get("/metrics", tags=["metrics"])
    async def metrics_endpoint(request: Request) -> dict:
        snapshot = request.app.state.metrics.snapshot()
        return {
            "total_requests": snapshot.total_requests,
            "decisions": snapshot.decisions,
            "rejections": snapshot.rejections,
            "degraded_fetches": snapshot.degraded_fetches,
        }

    return app


app = create_app()
