"""
Webhook Intake Guard.

Authenticates a processor notification and applies its payment-link state
change at most once. The processor delivers at least once and treats any
non-2xx answer as "retry", so every path past signature verification that
cannot be fixed by a retry answers 200.
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, Optional

from utils.config import WebhookConfig
from utils.errors import ConfigurationError, MalformedEvent, StoreUnavailable
from utils.events import PaymentLinkExpired, PaymentLinkPaid, parse_event
from utils.logger import get_logger
from utils.models import PaymentLinkRecord, PaymentLinkStatus
from utils.signature import SignatureCheck, verify_signature
from utils.store import DynamoDocumentStore

logger = get_logger("guard")


@dataclass(frozen=True)
class Outcome:
    status_code: int
    reason: str

    @property
    def body(self) -> dict:
        if self.status_code >= 400:
            return {"error": self.reason}
        return {"ok": True, "result": self.reason}


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class WebhookIntakeGuard:
    def __init__(
        self,
        config: WebhookConfig,
        store: DynamoDocumentStore,
        clock: Callable[[], datetime] = _utc_now,
    ):
        if not config.webhook_secret:
            raise ConfigurationError("WebhookIntakeGuard requires a webhook secret")
        self.config = config
        self.store = store
        self.clock = clock

    def handle_event(self, raw_body: bytes, signature_header: Optional[str]) -> Outcome:
        check = verify_signature(raw_body, signature_header, self.config.webhook_secret)

        if check is SignatureCheck.MISSING:
            logger.warning("webhook.signature_missing")
            return Outcome(401, "missing_signature")

        if check is SignatureCheck.INVALID:
            logger.warning(
                "webhook.signature_invalid",
                extra={"body_length": len(raw_body), "security_signal": "possible_spoofing"},
            )
            return Outcome(401, "invalid_signature")

        try:
            event = parse_event(raw_body)
        except MalformedEvent as e:
            logger.warning("webhook.malformed_event", extra={"error": str(e)})
            return Outcome(200, "malformed_ignored")

        logger.info(
            "webhook.event_received",
            extra={"kind": event.kind, "event_id": event.event_id},
        )

        try:
            if isinstance(event, PaymentLinkPaid):
                return self._on_paid(event)
            if isinstance(event, PaymentLinkExpired):
                return self._on_expired(event)
        except StoreUnavailable as e:
            logger.error("webhook.store_unavailable", extra={"kind": event.kind, "error": str(e)})
            return Outcome(500, "store_unavailable")

        # UnrecognizedEvent: newer event kinds must not fail delivery.
        logger.info("webhook.event_ignored", extra={"kind": event.kind})
        return Outcome(200, "ignored")

    def _on_paid(self, event: PaymentLinkPaid) -> Outcome:
        return self._transition(
            event.payment_link_id,
            PaymentLinkStatus.PAID,
            {"paid_at": self.clock().isoformat(), "payment_id": event.payment_id},
        )

    def _on_expired(self, event: PaymentLinkExpired) -> Outcome:
        return self._transition(
            event.payment_link_id,
            PaymentLinkStatus.EXPIRED,
            {"expired_at": self.clock().isoformat()},
        )

    def _transition(self, external_id: str, target: PaymentLinkStatus, fields: dict) -> Outcome:
        source = PaymentLinkStatus.source_of(target)
        result = self.store.conditional_update(
            self.config.table_name,
            external_id,
            expected={"status": source.value},
            new_fields={"status": target.value, **fields},
        )

        if result.applied:
            logger.info(
                f"webhook.{target.value}_applied",
                extra={"external_id": external_id, "payment_id": fields.get("payment_id")},
            )
            return Outcome(200, target.value)

        return self._precondition_failed(external_id, result.current, target)

    def _precondition_failed(self, external_id, current, target: PaymentLinkStatus) -> Outcome:
        if current is None:
            # Acknowledge: retrying a permanently missing record helps nobody.
            logger.warning("webhook.record_not_found", extra={"external_id": external_id})
            return Outcome(200, "not_found")

        try:
            record = PaymentLinkRecord.from_document(current, key_attr=self.store.key_attr)
        except ValueError as e:
            # No lifecycle status: a retry cannot repair the stored record.
            logger.error(
                "webhook.record_invalid",
                extra={"external_id": external_id, "requested": target.value, "error": str(e)},
            )
            return Outcome(200, "invalid_record")

        if record.status is target:
            logger.info(
                "webhook.replay_ignored",
                extra={"external_id": external_id, "status": record.status.value},
            )
            return Outcome(200, f"already_{target.value}")

        if record.status.is_terminal:
            logger.warning(
                "webhook.terminal_state_ignored",
                extra={
                    "external_id": external_id,
                    "status": record.status.value,
                    "requested": target.value,
                },
            )
            return Outcome(200, "ignored_terminal")

        # The old image still allows the transition, so the write lost to a
        # concurrent change; let the sender retry.
        logger.error(
            "webhook.transition_conflict",
            extra={"external_id": external_id, "status": record.status.value, "requested": target.value},
        )
        return Outcome(500, "transition_conflict")
