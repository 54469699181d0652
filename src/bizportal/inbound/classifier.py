"""Keyword intent classification for inbound channel messages."""

from __future__ import annotations

import re

from bizportal.types import InboundKind

# Substring matches, not whole words: "repayment" is still a payment.
_PAYMENT = re.compile(r"pay|deposit|card|payment|visa|mastercard", re.IGNORECASE)
_BOOKING = re.compile(
    r"book|booking|appointm(?:e)?nt|appt|massage|hair|facial|slot|reserve|schedule",
    re.IGNORECASE,
)


def classify_text(text: str) -> InboundKind:
    """Return PAYMENT, BOOKING or FAQ; payment wins when both match."""
    if _PAYMENT.search(text):
        return InboundKind.PAYMENT
    if _BOOKING.search(text):
        return InboundKind.BOOKING
    return InboundKind.FAQ
