"""CourseHub Views.

Aggregation and reconciliation layer that assembles dashboards, rosters and
reports from the independently deployed LMS microservices.

Copyright (C) 2025 Global Digital Labs (gdlabs.io)
SPDX-License-Identifier: LGPL-3.0-or-later
"""

__version__ = "1.0.0"
