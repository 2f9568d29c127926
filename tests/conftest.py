"""共通フィクスチャ"""

import pytest
from helpers import ISSUER_URL
from k1s0_flag_overrides import FlagServiceConfig


@pytest.fixture
def config() -> FlagServiceConfig:
    return FlagServiceConfig(
        issuer_url=ISSUER_URL,
        client_id="my-client",
        client_secret="my-secret",
        timeout_seconds=2.0,
    )
