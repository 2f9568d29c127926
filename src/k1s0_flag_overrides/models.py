"""flag_overrides データモデル"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Literal, Union
from urllib.parse import quote

from pydantic import BaseModel, ConfigDict, Field, StrictBool, StrictFloat, StrictInt, StrictStr

FlagValue = Union[bool, int, float, str]
FlagMap = dict[str, FlagValue]
OverrideMap = dict[str, bool]

# 型の暗黙変換を許さない（True と "true" と 1 を区別する）
StrictFlagValue = Union[StrictBool, StrictInt, StrictFloat, StrictStr]

# error オブジェクトにメッセージもコードも無い場合に使う
UNKNOWN_UPSTREAM_ERROR = "upstream error"


def _parse_expires_in(value: Any) -> int | None:
    # 任意項目なので解釈できない値は None として扱う
    if value is None or isinstance(value, bool):
        return None
    try:
        return int(float(value))
    except (TypeError, ValueError, OverflowError):
        return None


@dataclass
class BearerToken:
    """アクセストークン。リクエストをまたいで再利用しない。"""

    access_token: str
    token_type: str = "Bearer"
    expires_in: int | None = None

    def authorization_header(self) -> str:
        return f"Bearer {self.access_token}"

    @classmethod
    def from_response(cls, response: dict[str, Any]) -> BearerToken:
        """OAuth2 レスポンス辞書から BearerToken を生成する。"""
        return cls(
            access_token=response["access_token"],
            token_type=response.get("token_type") or "Bearer",
            expires_in=_parse_expires_in(response.get("expires_in")),
        )


class ScopeKind(str, Enum):
    """フラグ取得スコープ。"""

    ENVIRONMENT = "environment"
    ORGANIZATION = "organization"


@dataclass(frozen=True)
class FlagScope:
    """フラグ取得対象（環境全体 or 特定の組織）。"""

    kind: ScopeKind
    organization_id: str | None = None

    def __post_init__(self) -> None:
        if self.kind is ScopeKind.ORGANIZATION and not self.organization_id:
            raise ValueError("organization_id cannot be empty for organization scope")

    @classmethod
    def environment(cls) -> FlagScope:
        return cls(kind=ScopeKind.ENVIRONMENT)

    @classmethod
    def organization(cls, organization_id: str) -> FlagScope:
        return cls(kind=ScopeKind.ORGANIZATION, organization_id=organization_id)

    @property
    def path(self) -> str:
        """Management API のパス。"""
        if self.kind is ScopeKind.ENVIRONMENT:
            return "/api/v1/environment/feature_flags"
        return f"/api/v1/organizations/{quote(str(self.organization_id), safe='')}/feature_flags"

    @property
    def label(self) -> str:
        if self.kind is ScopeKind.ENVIRONMENT:
            return "Environment flags"
        return "Organization flags"


class ApiErrorDetail(BaseModel):
    """Management API のエラー要素。"""

    model_config = ConfigDict(extra="allow")

    code: str | None = None
    message: str | None = None

    def describe(self) -> str | None:
        return self.message or self.code


class FeatureFlagEntry(BaseModel):
    """feature_flags の 1 エントリ。value 以外のフィールドは無視する。"""

    model_config = ConfigDict(extra="allow")

    value: StrictFlagValue


class ApiErrorEnvelope(BaseModel):
    """Management API のエラー表現（error または errors）。"""

    model_config = ConfigDict(extra="allow")

    error: StrictStr | ApiErrorDetail | None = None
    errors: list[ApiErrorDetail] | None = None

    def error_message(self) -> str | None:
        """ボディに明示されたエラーメッセージを返す。エラーが無ければ None。"""
        if isinstance(self.error, str) and self.error:
            return self.error
        if isinstance(self.error, ApiErrorDetail):
            return self.error.describe() or UNKNOWN_UPSTREAM_ERROR
        if self.errors:
            for detail in self.errors:
                described = detail.describe()
                if described:
                    return described
            return UNKNOWN_UPSTREAM_ERROR
        return None


class FeatureFlagsPayload(ApiErrorEnvelope):
    """フラグ取得 API のレスポンスボディ。"""

    feature_flags: dict[str, FeatureFlagEntry] | None = None

    def to_flag_map(self) -> FlagMap:
        return {code: entry.value for code, entry in (self.feature_flags or {}).items()}


@dataclass
class FlagFetchSuccess:
    """フラグ取得成功。"""

    scope: FlagScope
    flags: FlagMap = field(default_factory=dict)
    ok: Literal[True] = field(default=True, init=False)


@dataclass
class FlagFetchFailure:
    """フラグ取得失敗。message は上流のメッセージまたは HTTP ステータス。"""

    scope: FlagScope
    message: str
    status_code: int | None = None
    ok: Literal[False] = field(default=False, init=False)


FlagFetchResult = Union[FlagFetchSuccess, FlagFetchFailure]


class FlagOverridesResponse(BaseModel):
    """GET /api/feature-flags の成功レスポンス。"""

    model_config = ConfigDict(populate_by_name=True)

    org_id: str = Field(alias="orgId")
    environment_flags: dict[str, StrictFlagValue] = Field(alias="environmentFlags")
    organization_flags: dict[str, StrictFlagValue] = Field(alias="organizationFlags")
    overrides: dict[str, bool]


class ErrorResponse(BaseModel):
    """エラーレスポンス。"""

    error: str
