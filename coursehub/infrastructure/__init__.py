# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Infrastructure layer for external service integrations.

This package contains clients for:
- The API gateway in front of the LMS microservices
- The activity-logs service
"""
