# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""ASGI entry point.

    uvicorn coursehub.main:app --port 1010
    coursehub-api
"""

import uvicorn

from coursehub.api import create_app
from coursehub.core.config import get_settings

app = create_app()


def run() -> None:
    """Run the API with uvicorn using the configured host and port."""
    settings = get_settings()
    uvicorn.run(
        "coursehub.main:app",
        host=settings.api.host,
        port=settings.api.port,
        reload=settings.is_development,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    run()
