# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Gateway client package.

Provides the async HTTP client for the LMS API gateway and the catalog of
named sources and write routes behind it.
"""

from coursehub.infrastructure.gateway.client import ServiceGateway
from coursehub.infrastructure.gateway.exceptions import UpstreamError
from coursehub.infrastructure.gateway.sources import (
    CHILD_SOURCES,
    KNOWN_SOURCES,
    TOP_LEVEL_SOURCES,
    WRITE_ROUTES,
    CampusSources,
    ChildSource,
    ResourceRoute,
    TopLevelSource,
    fill_path,
)

__all__ = [
    "ServiceGateway",
    "UpstreamError",
    "CampusSources",
    "TopLevelSource",
    "ChildSource",
    "ResourceRoute",
    "TOP_LEVEL_SOURCES",
    "CHILD_SOURCES",
    "KNOWN_SOURCES",
    "WRITE_ROUTES",
    "fill_path",
]
