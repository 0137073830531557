from __future__ import annotations

import logging
from typing import Any, Callable

from fastapi import Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from .auth.dependencies import require_user
from .llm.config import LLMConfig, get_llm_config
from .recommendations.data_store import SupabaseDataStore, get_data_store
from .recommendations.models import ActionRequest
from .recommendations.service import RecommendationService

logger = logging.getLogger(__name__)

CORS_ALLOW_HEADERS = [
    "authorization",
    "x-client-info",
    "apikey",
    "content-type",
    "x-supabase-client-platform",
    "x-supabase-client-platform-version",
    "x-supabase-client-runtime",
    "x-supabase-client-runtime-version",
]

app = FastAPI(title="AI Property Recommendation API", version="1.0.0")
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=CORS_ALLOW_HEADERS,
)


# ── Error envelope ───────────────────────────────────────────────────────


@app.exception_handler(StarletteHTTPException)
def http_error(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content={"error": exc.detail})


@app.exception_handler(RequestValidationError)
def validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    # Malformed bodies share the 500 envelope of every other non-auth failure.
    message = "; ".join(
        f"{'.'.join(str(part) for part in err['loc'][1:]) or 'body'}: {err['msg']}"
        for err in exc.errors()
    )
    logger.warning("Rejected request body: %s", message)
    return JSONResponse(status_code=500, content={"error": message or "Invalid request body"})


@app.exception_handler(Exception)
def unhandled_error(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("AI recommendations error")
    return JSONResponse(status_code=500, content={"error": str(exc) or "Unknown error"})


# ── Public endpoints ─────────────────────────────────────────────────────


@app.get("/health")
def health() -> dict[str, str]:
    return {"status": "ok"}


# ── Recommendation function ──────────────────────────────────────────────


def _get_ai_recommendations(service: RecommendationService, body: ActionRequest, user_id: str):
    return service.get_ai_recommendations(user_id, body.limit)


def _explain_match(service: RecommendationService, body: ActionRequest, user_id: str):
    if not body.property_id:
        raise ValueError("propertyId is required")
    return service.explain_match(user_id, body.property_id)


def _get_discovery_insights(service: RecommendationService, body: ActionRequest, user_id: str):
    return service.get_discovery_insights(user_id)


ACTIONS: dict[str, Callable[[RecommendationService, ActionRequest, str], Any]] = {
    "get_ai_recommendations": _get_ai_recommendations,
    "explain_match": _explain_match,
    "get_discovery_insights": _get_discovery_insights,
}


@app.post("/ai-property-recommendations", response_model=None)
def ai_property_recommendations(
    body: ActionRequest,
    user: dict = Depends(require_user),
    store: SupabaseDataStore = Depends(get_data_store),
    llm_config: LLMConfig = Depends(get_llm_config),
) -> Any:
    try:
        handler = ACTIONS.get(body.action)
        if handler is None:
            raise ValueError("Invalid action")

        # Callers asking about themselves may omit userId.
        user_id = body.user_id or user["id"]
        return handler(RecommendationService(store, llm_config), body, user_id)

    except Exception as exc:
        logger.error("AI recommendations error: %s", exc, exc_info=True)
        return JSONResponse(status_code=500, content={"error": str(exc) or "Unknown error"})
