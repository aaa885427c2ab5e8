"""API routes for the chat endpoint."""

from __future__ import annotations

import json

from fastapi import APIRouter, Depends, Request

from librarian.core.config import Settings
from librarian.core.rate_limit import extract_client_id
from librarian.pipeline import ChatPipeline


def get_pipeline(request: Request) -> ChatPipeline:
    """Dependency injector for the chat pipeline built by ``create_app``."""

    return request.app.state.pipeline


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def create_chat_router() -> APIRouter:
    router = APIRouter(tags=["chat"])

    @router.post("/chat")
    async def chat(
        request: Request,
        pipeline: ChatPipeline = Depends(get_pipeline),
        settings: Settings = Depends(get_app_settings),
    ) -> dict[str, str]:
        """Answer one user message grounded in the best matching knowledge source.

        A body that is not a JSON object reaches the guard as a missing message,
        so credential and quota checks still run first.
        """

        try:
            body = await request.json()
        except (json.JSONDecodeError, UnicodeDecodeError):
            body = None
        if not isinstance(body, dict):
            body = {}

        client_id = extract_client_id(request, settings.trust_x_forwarded_for)
        response = await pipeline.handle(body.get("message"), body.get("history"), client_id)
        return {"response": response}

    return router
