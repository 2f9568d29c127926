"""OAuth2 Client Credentials フローによるトークン取得"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

import httpx
import structlog

from .config import FlagServiceConfig
from .exceptions import ConfigurationError, FlagServiceErrorCodes, UpstreamAuthError
from .models import BearerToken

logger = structlog.get_logger(__name__)


class TokenProvider(ABC):
    """トークンプロバイダ抽象基底クラス。"""

    @abstractmethod
    async def get_token(self) -> BearerToken:
        """新しいアクセストークンを取得する。"""
        ...


def _upstream_error_message(resp: httpx.Response) -> str:
    try:
        data = resp.json()
    except ValueError:
        data = None
    if isinstance(data, dict):
        for key in ("error_description", "message", "error"):
            value = data.get(key)
            if isinstance(value, str) and value:
                return value
    return f"HTTP {resp.status_code}"


class HttpTokenProvider(TokenProvider):
    """httpx を使った OAuth2 Client Credentials フロー実装。

    呼び出しごとに 1 回だけトークンエンドポイントへ POST する。
    リトライもキャッシュもしない。
    """

    def __init__(
        self,
        config: FlagServiceConfig,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._config = config
        self._client = client

    def _check_credentials(self) -> None:
        missing = [
            name
            for name in ("issuer_url", "client_id", "client_secret")
            if not getattr(self._config, name, "")
        ]
        if missing:
            raise ConfigurationError(f"Missing M2M credentials: {', '.join(missing)}")

    def _form_data(self) -> dict[str, str]:
        return {
            "client_id": self._config.client_id,
            "client_secret": self._config.client_secret,
            "grant_type": "client_credentials",
            "audience": self._config.audience,
        }

    async def _post(self, client: httpx.AsyncClient) -> httpx.Response:
        return await client.post(
            self._config.token_url,
            data=self._form_data(),
            headers={"Accept": "application/json"},
            timeout=self._config.timeout_seconds,
        )

    async def get_token(self) -> BearerToken:
        """トークンを取得する。

        Raises:
            ConfigurationError: 認証情報が欠落している場合（通信は行わない）
            UpstreamAuthError: トークンエンドポイントが失敗した場合
        """
        self._check_credentials()
        logger.debug("requesting m2m token", token_url=self._config.token_url)
        try:
            if self._client is not None:
                resp = await self._post(self._client)
            else:
                async with httpx.AsyncClient() as client:
                    resp = await self._post(client)
        except httpx.HTTPError as e:
            raise UpstreamAuthError(
                f"Token request failed: {str(e) or type(e).__name__}",
                cause=e,
            ) from e

        if not resp.is_success:
            raise UpstreamAuthError(_upstream_error_message(resp))

        try:
            data: Any = resp.json()
        except ValueError as e:
            raise UpstreamAuthError(
                "no token in response",
                code=FlagServiceErrorCodes.NO_TOKEN,
                cause=e,
            ) from e
        access_token = data.get("access_token") if isinstance(data, dict) else None
        if not isinstance(access_token, str) or not access_token:
            raise UpstreamAuthError(
                "no token in response",
                code=FlagServiceErrorCodes.NO_TOKEN,
            )
        return BearerToken.from_response(data)
