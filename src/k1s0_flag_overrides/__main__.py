"""python -m k1s0_flag_overrides で HTTP サーバーを起動する。"""

from __future__ import annotations

import uvicorn

from .app import create_app
from .config import LogSettings, ServerSettings
from .logger import configure_logging


def main() -> None:
    logger = configure_logging(LogSettings.from_env())
    server = ServerSettings.from_env()
    logger.info("starting flag overrides service", host=server.host, port=server.port)
    uvicorn.run(create_app(), host=server.host, port=server.port, log_config=None)


if __name__ == "__main__":
    main()
