"""
mdcatalog.api.__main__

Entrypoint for running the catalog API via `python -m mdcatalog.api` (or `mdcatalog-api`).
"""

from __future__ import annotations

import uvicorn

from mdcatalog.api.app import create_app
from mdcatalog.settings import get_settings


def main() -> None:
    settings = get_settings()

    # Intranet privileges depend on the client address, so honour X-Forwarded-For only
    # from the configured proxies.
    uvicorn.run(
        create_app(settings=settings),
        host=settings.api_host,
        port=settings.api_port,
        proxy_headers=True,
        forwarded_allow_ips=settings.forwarded_allow_ips,
        log_config=None,
    )


if __name__ == "__main__":
    main()
