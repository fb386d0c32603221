# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Payment approval lifecycle.

    pending_paypal_approval -> completed | failed | cancelled

A payment is created pending when the student submits a payment request,
before any gateway interaction. Only an explicit status update (an admin
approving it, or a gateway capture/cancel/error callback) moves it on.
Terminal states are final and there is no timeout transition: re-fetching a
pending payment always yields a pending payment.
"""

from enum import Enum

from coursehub.domains.lifecycle.base import TransitionTable


class PaymentStatus(str, Enum):
    """Status of a payment record."""

    PENDING_PAYPAL_APPROVAL = "pending_paypal_approval"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"


INITIAL_PAYMENT_STATUS = PaymentStatus.PENDING_PAYPAL_APPROVAL

TERMINAL_PAYMENT_STATUSES = frozenset(
    {PaymentStatus.COMPLETED, PaymentStatus.FAILED, PaymentStatus.CANCELLED}
)

PAYMENT_LIFECYCLE: TransitionTable[PaymentStatus] = TransitionTable(
    "payment",
    PaymentStatus,
    {
        PaymentStatus.PENDING_PAYPAL_APPROVAL: TERMINAL_PAYMENT_STATUSES,
        PaymentStatus.COMPLETED: frozenset(),
        PaymentStatus.FAILED: frozenset(),
        PaymentStatus.CANCELLED: frozenset(),
    },
)
