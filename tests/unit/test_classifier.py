import pytest

from bizportal.inbound.classifier import classify_text
from bizportal.types import InboundKind


@pytest.mark.parametrize(
    ("text", "expected"),
    [
        ("What are your opening hours?", InboundKind.FAQ),
        ("Where can I park?", InboundKind.FAQ),
        ("I'd like to book a massage tomorrow", InboundKind.BOOKING),
        ("Any appointment slots on Friday?", InboundKind.BOOKING),
        ("Need to reschedule my facial", InboundKind.BOOKING),
        ("Can I pay by card?", InboundKind.PAYMENT),
        ("Send me the payment link", InboundKind.PAYMENT),
        ("Can I pay a deposit for my massage booking?", InboundKind.PAYMENT),
        ("VISA accepted?", InboundKind.PAYMENT),
        ("book a massage and pay by card", InboundKind.PAYMENT),
    ],
)
def test_classify_text(text: str, expected: InboundKind) -> None:
    assert classify_text(text) is expected


def test_payment_takes_precedence_over_booking() -> None:
    text = "book a haircut and pay now"

    assert classify_text(text) is InboundKind.PAYMENT
