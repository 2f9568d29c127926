"""GET /api/feature-flags のリクエスト処理"""

from __future__ import annotations

import asyncio
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

import structlog

from .config import FlagServiceConfig
from .exceptions import FlagServiceError, RequestValidationError
from .fetcher import FlagFetcher, HttpFlagFetcher
from .metrics import request_duration_seconds, request_total
from .models import (
    ErrorResponse,
    FlagFetchFailure,
    FlagOverridesResponse,
    FlagScope,
)
from .overrides import compute_overrides

logger = structlog.get_logger(__name__)

MISSING_ORG_MESSAGE = "Missing required search param: org"


@dataclass
class HandlerResponse:
    """フレームワーク非依存のレスポンス。"""

    status_code: int
    body: dict[str, Any] = field(default_factory=dict)


def _error(status_code: int, message: str) -> HandlerResponse:
    return HandlerResponse(
        status_code=status_code,
        body=ErrorResponse(error=message).model_dump(),
    )


def _validate_org(org: str | None) -> str:
    if org is None or not org.strip():
        raise RequestValidationError(MISSING_ORG_MESSAGE)
    return org


class FeatureFlagsHandler:
    """環境フラグと組織フラグを取得し、差分と合わせて返す。

    設定はリクエストごとに config_loader で読み込む。
    """

    def __init__(
        self,
        config_loader: Callable[[], FlagServiceConfig] = FlagServiceConfig.from_env,
        fetcher_factory: Callable[[FlagServiceConfig], FlagFetcher] = HttpFlagFetcher,
    ) -> None:
        self._config_loader = config_loader
        self._fetcher_factory = fetcher_factory

    async def handle(self, org: str | None) -> HandlerResponse:
        started = time.perf_counter()
        response = await self._handle(org)
        attributes = {"status": response.status_code}
        request_total.add(1, attributes)
        request_duration_seconds.record(time.perf_counter() - started, attributes)
        return response

    async def _handle(self, org: str | None) -> HandlerResponse:
        try:
            org_id = _validate_org(org)
        except RequestValidationError as e:
            logger.info("feature flags request rejected", reason=e.message)
            return _error(400, e.message)

        try:
            fetcher = self._fetcher_factory(self._config_loader())
            # 片方が例外で終わった場合、もう片方はキャンセルされる
            async with asyncio.TaskGroup() as tg:
                env_task = tg.create_task(fetcher.fetch(FlagScope.environment()))
                org_task = tg.create_task(fetcher.fetch(FlagScope.organization(org_id)))
            env_result, org_result = env_task.result(), org_task.result()
            if isinstance(env_result, FlagFetchFailure):
                return _error(502, f"{env_result.scope.label}: {env_result.message}")
            if isinstance(org_result, FlagFetchFailure):
                return _error(502, f"{org_result.scope.label}: {org_result.message}")

            overrides = compute_overrides(env_result.flags, org_result.flags)
            body = FlagOverridesResponse(
                org_id=org_id,
                environment_flags=env_result.flags,
                organization_flags=org_result.flags,
                overrides=overrides,
            ).model_dump(by_alias=True)
        except Exception as e:
            logger.exception("feature flags request failed", org_id=org_id)
            error = e.exceptions[0] if isinstance(e, ExceptionGroup) else e
            message = error.message if isinstance(error, FlagServiceError) else str(error)
            return _error(500, message or type(error).__name__)

        logger.info(
            "feature flags resolved",
            org_id=org_id,
            overridden=sum(overrides.values()),
        )
        return HandlerResponse(status_code=200, body=body)
