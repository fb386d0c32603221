# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Configuration package for CourseHub Views.

Example:
    >>> from coursehub.core.config import get_settings
    >>> settings = get_settings()
    >>> print(settings.environment)
    'development'
"""

from coursehub.core.config.settings import (
    ActivityLogSettings,
    AggregationSettings,
    APISettings,
    GatewaySettings,
    Settings,
    clear_settings_cache,
    get_settings,
)

__all__ = [
    "Settings",
    "GatewaySettings",
    "AggregationSettings",
    "ActivityLogSettings",
    "APISettings",
    "get_settings",
    "clear_settings_cache",
]
