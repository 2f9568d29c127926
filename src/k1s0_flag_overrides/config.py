"""設定型定義（pydantic BaseModel）と環境変数からの読み込み"""

from __future__ import annotations

import os
from collections.abc import Mapping
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from .exceptions import ConfigurationError

# 旧デプロイメントで使われていた環境変数プレフィックス
LEGACY_ENV_PREFIX = "KINDE_"

_CREDENTIAL_ENV_NAMES: dict[str, str] = {
    "issuer_url": "ISSUER_URL",
    "client_id": "M2M_CLIENT_ID",
    "client_secret": "M2M_CLIENT_SECRET",
}
_TIMEOUT_ENV_NAME = "FLAG_FETCH_TIMEOUT_SECONDS"


def _lookup(environ: Mapping[str, str], name: str, prefix: str) -> str:
    value = environ.get(f"{prefix}{name}", "").strip()
    if not value and not prefix:
        value = environ.get(f"{LEGACY_ENV_PREFIX}{name}", "").strip()
    return value


class FlagServiceConfig(BaseModel):
    """アイデンティティプロバイダへの M2M 接続設定。"""

    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    issuer_url: str = Field(min_length=1)
    client_id: str = Field(min_length=1)
    client_secret: str = Field(min_length=1, repr=False)
    timeout_seconds: float = Field(default=5.0, gt=0)

    @field_validator("issuer_url")
    @classmethod
    def _strip_trailing_slash(cls, value: str) -> str:
        return value.rstrip("/")

    @property
    def token_url(self) -> str:
        return f"{self.issuer_url}/oauth2/token"

    @property
    def audience(self) -> str:
        return f"{self.issuer_url}/api"

    @classmethod
    def from_env(
        cls,
        environ: Mapping[str, str] | None = None,
        prefix: str = "",
    ) -> FlagServiceConfig:
        """環境変数から設定を読み込む。

        prefix が空の場合、未設定の変数は KINDE_ プレフィックス付きの名前でも探す。

        Raises:
            ConfigurationError: 必須の環境変数が欠落している、または値が不正な場合
        """
        env = os.environ if environ is None else environ
        data: dict[str, Any] = {
            field_name: _lookup(env, env_name, prefix)
            for field_name, env_name in _CREDENTIAL_ENV_NAMES.items()
        }
        missing = [
            f"{prefix}{env_name}"
            for field_name, env_name in _CREDENTIAL_ENV_NAMES.items()
            if not data[field_name]
        ]
        if missing:
            raise ConfigurationError(
                f"Missing required environment variables: {', '.join(missing)}"
            )
        timeout = _lookup(env, _TIMEOUT_ENV_NAME, prefix)
        if timeout:
            data["timeout_seconds"] = timeout
        try:
            return cls.model_validate(data)
        except ValidationError as e:
            raise ConfigurationError(f"Invalid configuration: {e}", cause=e) from e


class LogSettings(BaseModel):
    """ログ設定。"""

    level: str = "INFO"
    format: Literal["json", "text"] = "json"

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> LogSettings:
        env = os.environ if environ is None else environ
        data: dict[str, Any] = {}
        if env.get("LOG_LEVEL"):
            data["level"] = env["LOG_LEVEL"]
        if env.get("LOG_FORMAT"):
            data["format"] = env["LOG_FORMAT"].lower()
        try:
            return cls.model_validate(data)
        except ValidationError as e:
            raise ConfigurationError(f"Invalid log settings: {e}", cause=e) from e


class ServerSettings(BaseModel):
    """HTTP サーバー設定。"""

    host: str = "0.0.0.0"
    port: int = Field(default=8080, ge=1, le=65535)

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> ServerSettings:
        env = os.environ if environ is None else environ
        data: dict[str, Any] = {}
        if env.get("HOST"):
            data["host"] = env["HOST"]
        if env.get("PORT"):
            data["port"] = env["PORT"]
        try:
            return cls.model_validate(data)
        except ValidationError as e:
            raise ConfigurationError(f"Invalid server settings: {e}", cause=e) from e
