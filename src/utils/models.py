from decimal import Decimal
from enum import Enum
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict


class PaymentLinkStatus(str, Enum):
    CREATED = "created"
    PAID = "paid"
    EXPIRED = "expired"

    def can_transition_to(self, target: "PaymentLinkStatus") -> bool:
        # Forward-only: created is the sole non-terminal state.
        return self is PaymentLinkStatus.CREATED and target in (
            PaymentLinkStatus.PAID,
            PaymentLinkStatus.EXPIRED,
        )

    @property
    def is_terminal(self) -> bool:
        return not any(self.can_transition_to(target) for target in PaymentLinkStatus)

    @classmethod
    def source_of(cls, target: "PaymentLinkStatus") -> "PaymentLinkStatus":
        """The single status a record must hold for `target` to be applied."""
        sources = [status for status in cls if status.can_transition_to(target)]
        if len(sources) != 1:
            raise ValueError(f"no unique source status for {target.value}")
        return sources[0]


class PaymentLinkRecord(BaseModel):
    """One payment request shared with a customer, keyed by the processor's link id."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    external_id: str
    status: PaymentLinkStatus
    amount: Optional[Decimal] = None
    customer_name: Optional[str] = None
    customer_phone: Optional[str] = None
    bill_reference: Optional[str] = None
    payment_id: Optional[str] = None
    paid_at: Optional[str] = None
    expired_at: Optional[str] = None

    @classmethod
    def from_document(cls, doc: Dict[str, Any], key_attr: str = "external_id") -> "PaymentLinkRecord":
        """
        Build from a deserialized store document whose key lives under `key_attr`.
        A missing or unknown status raises pydantic's ValidationError (a ValueError).
        """
        data = dict(doc)
        data["external_id"] = doc.get(key_attr)
        return cls.model_validate(data)
