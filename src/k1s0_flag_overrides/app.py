"""FastAPI アプリケーション"""

from __future__ import annotations

import uuid
from collections.abc import Awaitable, Callable

import structlog
from fastapi import APIRouter, FastAPI, Query, Request, Response
from fastapi.responses import JSONResponse

from .handler import FeatureFlagsHandler

X_CORRELATION_ID = "X-Correlation-Id"

router = APIRouter()


@router.get("/api/feature-flags")
async def get_feature_flags(
    request: Request,
    org: str | None = Query(default=None),
) -> JSONResponse:
    handler: FeatureFlagsHandler = request.app.state.flags_handler
    result = await handler.handle(org)
    return JSONResponse(status_code=result.status_code, content=result.body)


@router.get("/healthz")
async def healthz() -> dict[str, str]:
    return {"status": "ok"}


async def _correlation_middleware(
    request: Request,
    call_next: Callable[[Request], Awaitable[Response]],
) -> Response:
    correlation_id = request.headers.get(X_CORRELATION_ID) or str(uuid.uuid4())
    with structlog.contextvars.bound_contextvars(correlation_id=correlation_id):
        response = await call_next(request)
    response.headers[X_CORRELATION_ID] = correlation_id
    return response


def create_app(handler: FeatureFlagsHandler | None = None) -> FastAPI:
    """アプリケーションを生成する。

    handler を省略した場合は環境変数から設定を読み込む既定のハンドラを使う。
    """
    app = FastAPI(title="k1s0-flag-overrides", version="0.1.0")
    app.state.flags_handler = handler or FeatureFlagsHandler()
    app.middleware("http")(_correlation_middleware)
    app.include_router(router)
    return app


__all__ = ["create_app", "router", "X_CORRELATION_ID"]
