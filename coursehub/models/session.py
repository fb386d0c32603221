# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Explicit session context.

Every aggregation and write call receives the acting user as a value; nothing
reads the current user from ambient storage.
"""

from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class SessionContext:
    """Acting user for one request.

    Attributes:
        token: Bearer token forwarded to the gateway (None for service calls).
        user_id: Identity of the acting user.
        email: Email of the acting user.
        role: "admin", "instructor" or "student".
        request_id: Correlation id for logs.
    """

    token: str | None = None
    user_id: str | None = None
    email: str | None = None
    role: str | None = None
    request_id: str | None = None
    extra: dict[str, Any] = field(default_factory=dict, compare=False)

    @property
    def is_authenticated(self) -> bool:
        return self.token is not None

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"

    def auth_headers(self) -> dict[str, str]:
        """Headers carrying this session to the gateway."""
        if not self.token:
            return {}
        return {"Authorization": f"Bearer {self.token}"}

    def log_fields(self) -> dict[str, Any]:
        """Fields identifying the actor in activity log entries."""
        return {
            "userId": self.user_id,
            "userEmail": self.email,
            "userName": self.email,
            "userRole": self.role,
        }

    @classmethod
    def anonymous(cls) -> "SessionContext":
        return cls()
