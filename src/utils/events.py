"""
Typed view of the processor's webhook envelope.

    {
      "event": "payment_link.paid",
      "payload": {
        "payment_link": {"entity": {"id": "plink_..."}},
        "payment": {"entity": {"id": "pay_..."}}
      }
    }

Only call parse_event() on a body whose signature has been verified.
"""

from typing import Annotated, Any, Dict, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError, field_validator

from utils.errors import MalformedEvent

PAYMENT_LINK_PAID = "payment_link.paid"
PAYMENT_LINK_EXPIRED = "payment_link.expired"


class Entity(BaseModel):
    id: str = Field(..., min_length=1)


class EntityRef(BaseModel):
    entity: Entity


class OptionalEntity(BaseModel):
    id: Optional[str] = None


class OptionalEntityRef(BaseModel):
    entity: Optional[OptionalEntity] = None


class PaidPayload(BaseModel):
    payment_link: EntityRef
    payment: Optional[OptionalEntityRef] = None


class ExpiredPayload(BaseModel):
    payment_link: EntityRef


class _Envelope(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore")

    event_id: Optional[str] = None

    @field_validator("event_id", mode="before")
    @classmethod
    def _drop_non_string_id(cls, value: Any) -> Optional[str]:
        return value if isinstance(value, str) else None


class PaymentLinkPaid(_Envelope):
    event: Literal[PAYMENT_LINK_PAID]
    payload: PaidPayload

    @property
    def kind(self) -> str:
        return self.event

    @property
    def payment_link_id(self) -> str:
        return self.payload.payment_link.entity.id

    @property
    def payment_id(self) -> Optional[str]:
        payment = self.payload.payment
        if payment is None or payment.entity is None:
            return None
        return payment.entity.id


class PaymentLinkExpired(_Envelope):
    event: Literal[PAYMENT_LINK_EXPIRED]
    payload: ExpiredPayload

    @property
    def kind(self) -> str:
        return self.event

    @property
    def payment_link_id(self) -> str:
        return self.payload.payment_link.entity.id


class UnrecognizedEvent(_Envelope):
    """Any envelope that is not a well-formed known kind, including future kinds."""

    event: Optional[str] = None

    @field_validator("event", mode="before")
    @classmethod
    def _drop_non_string_kind(cls, value: Any) -> Optional[str]:
        return value if isinstance(value, str) else None

    @property
    def kind(self) -> Optional[str]:
        return self.event


WebhookEvent = Union[PaymentLinkPaid, PaymentLinkExpired, UnrecognizedEvent]

_JSON_OBJECT = TypeAdapter(Dict[str, Any])
_KNOWN_EVENT = TypeAdapter(
    Annotated[Union[PaymentLinkPaid, PaymentLinkExpired], Field(discriminator="event")]
)


def parse_event(raw_body: bytes) -> WebhookEvent:
    try:
        envelope = _JSON_OBJECT.validate_json(raw_body)
    except ValidationError as e:
        raise MalformedEvent(f"event envelope must be a JSON object: {e.errors()[0]['msg']}") from e

    try:
        return _KNOWN_EVENT.validate_python(envelope)
    except ValidationError:
        return UnrecognizedEvent.model_validate(envelope)
