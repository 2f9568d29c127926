"""フィーチャーフラグ取得クライアント"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

import httpx
import structlog
from pydantic import ValidationError

from .config import FlagServiceConfig
from .exceptions import FlagServiceError, FlagServiceErrorCodes, UpstreamFetchError
from .metrics import upstream_errors_total
from .models import (
    ApiErrorEnvelope,
    FeatureFlagsPayload,
    FlagFetchFailure,
    FlagFetchResult,
    FlagFetchSuccess,
    FlagMap,
    FlagScope,
)
from .token_provider import HttpTokenProvider, TokenProvider

logger = structlog.get_logger(__name__)


class FlagFetcher(ABC):
    """フラグ取得クライアント抽象基底クラス。

    fetch は失敗時も例外を送出せず FlagFetchFailure を返す。
    """

    @abstractmethod
    async def fetch(self, scope: FlagScope) -> FlagFetchResult: ...


def _envelope_message(data: Any) -> str | None:
    if not isinstance(data, dict):
        return None
    try:
        return ApiErrorEnvelope.model_validate(data).error_message()
    except ValidationError:
        return None


def _describe_validation_error(e: ValidationError) -> str:
    locations = sorted({".".join(str(part) for part in err["loc"]) for err in e.errors()})
    return f"invalid feature_flags payload: {', '.join(locations)}"


class HttpFlagFetcher(FlagFetcher):
    """httpx を使ったフラグ取得クライアント。

    fetch ごとにトークンを取得し直す。
    """

    def __init__(
        self,
        config: FlagServiceConfig,
        token_provider: TokenProvider | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._config = config
        self._client = client
        self._token_provider = token_provider or HttpTokenProvider(config, client=client)

    def url_for(self, scope: FlagScope) -> str:
        return f"{self._config.issuer_url}{scope.path}"

    async def _get(self, client: httpx.AsyncClient, url: str, authorization: str) -> httpx.Response:
        return await client.get(
            url,
            headers={"Authorization": authorization, "Accept": "application/json"},
            timeout=self._config.timeout_seconds,
        )

    def _parse_response(self, resp: httpx.Response) -> FlagMap:
        try:
            data: Any = resp.json()
        except ValueError:
            data = None
        message = _envelope_message(data)
        if not resp.is_success:
            raise UpstreamFetchError(
                message or f"HTTP {resp.status_code}",
                status_code=resp.status_code,
            )
        if not isinstance(data, dict):
            raise UpstreamFetchError(
                "invalid response body",
                code=FlagServiceErrorCodes.INVALID_RESPONSE,
                status_code=resp.status_code,
            )
        if message:
            raise UpstreamFetchError(message, status_code=resp.status_code)
        try:
            payload = FeatureFlagsPayload.model_validate(data)
        except ValidationError as e:
            raise UpstreamFetchError(
                _describe_validation_error(e),
                code=FlagServiceErrorCodes.INVALID_RESPONSE,
                status_code=resp.status_code,
                cause=e,
            ) from e
        return payload.to_flag_map()

    async def fetch(self, scope: FlagScope) -> FlagFetchResult:
        """指定スコープのフラグを取得し、フラットな Flag Map にする。"""
        url = self.url_for(scope)
        try:
            token = await self._token_provider.get_token()
            if self._client is not None:
                resp = await self._get(self._client, url, token.authorization_header())
            else:
                async with httpx.AsyncClient() as client:
                    resp = await self._get(client, url, token.authorization_header())
            flags = self._parse_response(resp)
        except FlagServiceError as e:
            return self._failure(scope, e.message, getattr(e, "status_code", None))
        except httpx.HTTPError as e:
            return self._failure(scope, f"Request failed: {str(e) or type(e).__name__}")
        except Exception as e:
            return self._failure(scope, str(e) or type(e).__name__)

        logger.debug(
            "feature flags fetched",
            scope=scope.kind.value,
            organization_id=scope.organization_id,
            count=len(flags),
        )
        return FlagFetchSuccess(scope=scope, flags=flags)

    def _failure(
        self,
        scope: FlagScope,
        message: str,
        status_code: int | None = None,
    ) -> FlagFetchFailure:
        logger.warning(
            "feature flag fetch failed",
            scope=scope.kind.value,
            organization_id=scope.organization_id,
            status_code=status_code,
            error=message,
        )
        upstream_errors_total.add(1, {"scope": scope.kind.value})
        return FlagFetchFailure(scope=scope, message=message, status_code=status_code)


class InMemoryFlagFetcher(FlagFetcher):
    """テスト用インメモリフラグ取得クライアント。"""

    def __init__(self) -> None:
        self._results: dict[FlagScope, FlagFetchResult] = {}
        self.calls: list[FlagScope] = []

    def set_flags(self, scope: FlagScope, flags: FlagMap) -> None:
        """スコープのフラグを設定する。"""
        self._results[scope] = FlagFetchSuccess(scope=scope, flags=dict(flags))

    def set_failure(self, scope: FlagScope, message: str, status_code: int | None = None) -> None:
        """スコープの取得を失敗させる。"""
        self._results[scope] = FlagFetchFailure(
            scope=scope, message=message, status_code=status_code
        )

    async def fetch(self, scope: FlagScope) -> FlagFetchResult:
        self.calls.append(scope)
        result = self._results.get(scope)
        if result is None:
            return FlagFetchSuccess(scope=scope, flags={})
        if isinstance(result, FlagFetchSuccess):
            return FlagFetchSuccess(scope=scope, flags=dict(result.flags))
        return result
