"""HttpTokenProvider のユニットテスト（respx モック）"""

from urllib.parse import parse_qs

import httpx
import pytest
import respx
from helpers import ISSUER_URL, TOKEN_URL
from k1s0_flag_overrides import (
    ConfigurationError,
    FlagServiceConfig,
    HttpTokenProvider,
    UpstreamAuthError,
)
from k1s0_flag_overrides.exceptions import FlagServiceErrorCodes


@respx.mock
async def test_get_token_success(config: FlagServiceConfig) -> None:
    """トークン取得成功。"""
    respx.post(TOKEN_URL).mock(
        return_value=httpx.Response(
            200,
            json={"access_token": "tok123", "token_type": "bearer", "expires_in": 86400},
        )
    )
    token = await HttpTokenProvider(config).get_token()
    assert token.access_token == "tok123"
    assert token.expires_in == 86400


@respx.mock
async def test_get_token_sends_client_credentials_form(config: FlagServiceConfig) -> None:
    """client_credentials グラントをフォームで送信すること。"""
    route = respx.post(TOKEN_URL).mock(
        return_value=httpx.Response(200, json={"access_token": "tok"})
    )
    await HttpTokenProvider(config).get_token()

    request = route.calls.last.request
    assert request.headers["content-type"] == "application/x-www-form-urlencoded"
    assert request.headers["accept"] == "application/json"
    form = parse_qs(request.content.decode())
    assert form == {
        "client_id": ["my-client"],
        "client_secret": ["my-secret"],
        "grant_type": ["client_credentials"],
        "audience": [f"{ISSUER_URL}/api"],
    }


@respx.mock
async def test_get_token_uses_injected_client(config: FlagServiceConfig) -> None:
    respx.post(TOKEN_URL).mock(return_value=httpx.Response(200, json={"access_token": "tok"}))
    async with httpx.AsyncClient() as client:
        token = await HttpTokenProvider(config, client=client).get_token()
    assert token.access_token == "tok"


@respx.mock
async def test_get_token_failure_uses_upstream_message(config: FlagServiceConfig) -> None:
    """失敗時に上流のエラーメッセージを使うこと。"""
    respx.post(TOKEN_URL).mock(
        return_value=httpx.Response(
            401,
            json={"error": "invalid_client", "error_description": "Client authentication failed"},
        )
    )
    with pytest.raises(UpstreamAuthError) as exc_info:
        await HttpTokenProvider(config).get_token()
    assert exc_info.value.code == FlagServiceErrorCodes.TOKEN_REQUEST_FAILED
    assert exc_info.value.message == "Client authentication failed"


@respx.mock
async def test_get_token_failure_without_message_uses_status(config: FlagServiceConfig) -> None:
    respx.post(TOKEN_URL).mock(return_value=httpx.Response(503, text="Service Unavailable"))
    with pytest.raises(UpstreamAuthError) as exc_info:
        await HttpTokenProvider(config).get_token()
    assert exc_info.value.message == "HTTP 503"


@respx.mock
async def test_get_token_missing_access_token(config: FlagServiceConfig) -> None:
    """2xx でも access_token が無ければ NO_TOKEN。"""
    respx.post(TOKEN_URL).mock(return_value=httpx.Response(200, json={"token_type": "bearer"}))
    with pytest.raises(UpstreamAuthError) as exc_info:
        await HttpTokenProvider(config).get_token()
    assert exc_info.value.code == FlagServiceErrorCodes.NO_TOKEN
    assert exc_info.value.message == "no token in response"


@respx.mock
async def test_get_token_non_json_body(config: FlagServiceConfig) -> None:
    respx.post(TOKEN_URL).mock(return_value=httpx.Response(200, text="<html></html>"))
    with pytest.raises(UpstreamAuthError) as exc_info:
        await HttpTokenProvider(config).get_token()
    assert exc_info.value.code == FlagServiceErrorCodes.NO_TOKEN


async def test_get_token_network_error(config: FlagServiceConfig) -> None:
    """ネットワークエラーは UpstreamAuthError(TOKEN_REQUEST_FAILED)。"""
    with respx.mock:
        respx.post(TOKEN_URL).mock(side_effect=httpx.ConnectError("Connection refused"))
        with pytest.raises(UpstreamAuthError) as exc_info:
            await HttpTokenProvider(config).get_token()
        assert exc_info.value.code == FlagServiceErrorCodes.TOKEN_REQUEST_FAILED
        assert "Connection refused" in exc_info.value.message


@respx.mock(assert_all_called=False)
async def test_get_token_blank_credentials_makes_no_request() -> None:
    """認証情報が空なら通信せずに ConfigurationError。"""
    route = respx.post(TOKEN_URL).mock(return_value=httpx.Response(200, json={"access_token": "x"}))
    config = FlagServiceConfig.model_construct(
        issuer_url=ISSUER_URL,
        client_id="my-client",
        client_secret="",
        timeout_seconds=2.0,
    )
    with pytest.raises(ConfigurationError, match="client_secret"):
        await HttpTokenProvider(config).get_token()
    assert not route.called


@respx.mock
async def test_each_call_requests_new_token(config: FlagServiceConfig) -> None:
    """トークンはキャッシュしないこと。"""
    route = respx.post(TOKEN_URL).mock(return_value=httpx.Response(200, json={"access_token": "t"}))
    provider = HttpTokenProvider(config)
    await provider.get_token()
    await provider.get_token()
    assert route.call_count == 2
