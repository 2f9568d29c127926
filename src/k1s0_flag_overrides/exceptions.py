"""flag_overrides サービスの例外型定義"""

from __future__ import annotations


class FlagServiceError(Exception):
    """flag_overrides サービスのエラー基底クラス。"""

    def __init__(
        self,
        code: str,
        message: str,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(message)
        self.code = code
        self.message = message
        if cause is not None:
            self.__cause__ = cause

    def __str__(self) -> str:
        return f"{self.code}: {self.message}"


class FlagServiceErrorCodes:
    """FlagServiceError のエラーコード定数。"""

    CONFIG_ERROR: str = "CONFIG_ERROR"
    TOKEN_REQUEST_FAILED: str = "TOKEN_REQUEST_FAILED"
    NO_TOKEN: str = "NO_TOKEN"
    FETCH_FAILED: str = "FETCH_FAILED"
    INVALID_RESPONSE: str = "INVALID_RESPONSE"
    VALIDATION_ERROR: str = "VALIDATION_ERROR"


class ConfigurationError(FlagServiceError):
    """必須設定が欠落している。"""

    def __init__(self, message: str, cause: Exception | None = None) -> None:
        super().__init__(FlagServiceErrorCodes.CONFIG_ERROR, message, cause)


class UpstreamAuthError(FlagServiceError):
    """トークン取得に失敗した。"""

    def __init__(
        self,
        message: str,
        code: str = FlagServiceErrorCodes.TOKEN_REQUEST_FAILED,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(code, message, cause)


class UpstreamFetchError(FlagServiceError):
    """フラグ取得に失敗した。"""

    def __init__(
        self,
        message: str,
        code: str = FlagServiceErrorCodes.FETCH_FAILED,
        status_code: int | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(code, message, cause)
        self.status_code = status_code


class RequestValidationError(FlagServiceError):
    """リクエストパラメータが不正。"""

    def __init__(self, message: str) -> None:
        super().__init__(FlagServiceErrorCodes.VALIDATION_ERROR, message)
