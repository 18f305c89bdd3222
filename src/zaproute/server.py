"""Serve the API with uvicorn, honouring the platform-provided PORT."""

import logging

import uvicorn

from .config import settings


def main() -> None:
    logging.basicConfig(level=settings.log_level.upper(), format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    logging.info(f"Starting {settings.app_name} on {settings.host}:{settings.port}")
    # behind the platform proxy; trust its forwarded headers
    uvicorn.run(
        "zaproute.main:app",
        host=settings.host,
        port=settings.port,
        proxy_headers=True,
        forwarded_allow_ips="*",
    )


if __name__ == "__main__":
    main()
