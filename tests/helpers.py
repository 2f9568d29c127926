"""テスト共通の定数とヘルパー"""

from k1s0_flag_overrides import BearerToken, TokenProvider

ISSUER_URL = "https://example.kinde.com"
TOKEN_URL = f"{ISSUER_URL}/oauth2/token"
ENV_FLAGS_URL = f"{ISSUER_URL}/api/v1/environment/feature_flags"


def org_flags_url(org_id: str) -> str:
    return f"{ISSUER_URL}/api/v1/organizations/{org_id}/feature_flags"


def flags_body(flags: dict) -> dict:
    """Management API 形式のレスポンスボディを作る。"""
    return {
        "code": "OK",
        "message": "Success",
        "feature_flags": {key: {"type": "boolean", "value": value} for key, value in flags.items()},
    }


class StaticTokenProvider(TokenProvider):
    """固定トークンを返すテスト用プロバイダ。"""

    def __init__(self, access_token: str = "tok") -> None:
        self.access_token = access_token
        self.calls = 0

    async def get_token(self) -> BearerToken:
        self.calls += 1
        return BearerToken(access_token=self.access_token)
