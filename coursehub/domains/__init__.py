# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Domain services layer for CourseHub Views.

Domains:
    aggregation: Multi-source fetch, reference normalization, joins and
        partial-result policy.
    analytics: Dashboard counters, rollups, attendance and grading statistics.
    lifecycle: Enrollment, payment, attendance and submission state machines.
"""
