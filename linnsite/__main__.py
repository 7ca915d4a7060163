"""
Run the site backend with uvicorn.

Usage:
    python -m linnsite [--host HOST] [--port PORT]
"""

from __future__ import annotations

import argparse

import uvicorn

from linnsite.config import get_settings


def main() -> None:
    settings = get_settings()
    parser = argparse.ArgumentParser(description="Serve the linn.games site backend.")
    parser.add_argument("--host", default=settings.host)
    parser.add_argument("--port", type=int, default=settings.port)
    args = parser.parse_args()

    uvicorn.run(
        "linnsite.app:app",
        host=args.host,
        port=args.port,
        log_level=settings.log_level.lower(),
        proxy_headers=True,
    )


if __name__ == "__main__":
    main()
