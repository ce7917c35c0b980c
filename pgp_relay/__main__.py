"""Entry point: ``python -m pgp_relay``."""

from __future__ import annotations

import uvicorn

from .config import RelaySettings
from .logging import setup_logging


def main() -> None:
    settings = RelaySettings()
    setup_logging(json=settings.log_json, level=settings.log_level)

    uvicorn.run(
        "pgp_relay.app:create_app",
        factory=True,
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
        log_config=None,
    )


if __name__ == "__main__":
    main()
