import json
import logging

import pytest

from utils.logger import JsonFormatter
from utils.models import PaymentLinkRecord, PaymentLinkStatus


@pytest.mark.parametrize(
    "source,target,allowed",
    [
        (PaymentLinkStatus.CREATED, PaymentLinkStatus.PAID, True),
        (PaymentLinkStatus.CREATED, PaymentLinkStatus.EXPIRED, True),
        (PaymentLinkStatus.PAID, PaymentLinkStatus.EXPIRED, False),
        (PaymentLinkStatus.EXPIRED, PaymentLinkStatus.PAID, False),
        (PaymentLinkStatus.PAID, PaymentLinkStatus.CREATED, False),
        (PaymentLinkStatus.CREATED, PaymentLinkStatus.CREATED, False),
    ],
)
def test_status_transitions(source, target, allowed):
    assert source.can_transition_to(target) is allowed


def test_record_from_document():
    record = PaymentLinkRecord.from_document(
        {"external_id": "plink_42", "status": "paid", "paid_at": "2026-03-01T09:30:00+00:00", "payment_id": "pay_1"}
    )
    assert record.status is PaymentLinkStatus.PAID
    assert record.status.is_terminal
    assert record.customer_name is None


@pytest.mark.parametrize("doc", [{"external_id": "plink_42", "status": "refunded"}, {"external_id": "plink_42"}])
def test_record_rejects_missing_or_unknown_status(doc):
    with pytest.raises(ValueError):
        PaymentLinkRecord.from_document(doc)


def test_record_key_read_through_key_attribute():
    record = PaymentLinkRecord.from_document({"link_id": "plink_9", "status": "created", "amount": 500}, key_attr="link_id")
    assert record.external_id == "plink_9"
    assert record.amount == 500


def test_terminal_statuses():
    assert not PaymentLinkStatus.CREATED.is_terminal
    assert PaymentLinkStatus.PAID.is_terminal
    assert PaymentLinkStatus.EXPIRED.is_terminal


def test_source_of_each_target():
    assert PaymentLinkStatus.source_of(PaymentLinkStatus.PAID) is PaymentLinkStatus.CREATED
    assert PaymentLinkStatus.source_of(PaymentLinkStatus.EXPIRED) is PaymentLinkStatus.CREATED
    with pytest.raises(ValueError):
        PaymentLinkStatus.source_of(PaymentLinkStatus.CREATED)


def test_json_formatter_includes_extra_fields():
    record = logging.LogRecord("guard", logging.WARNING, __file__, 1, "webhook.signature_invalid", None, None)
    record.body_length = 42
    line = json.loads(JsonFormatter().format(record))

    assert line["message"] == "webhook.signature_invalid"
    assert line["level"] == "WARNING"
    assert line["body_length"] == 42
