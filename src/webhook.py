import base64
import binascii
import json
from typing import Optional

from utils.config import load_config
from utils.errors import ConfigurationError
from utils.guard import Outcome, WebhookIntakeGuard
from utils.logger import get_logger
from utils.store import DynamoDocumentStore

logger = get_logger("webhook")

# Built on first POST and reused by later invocations in the same container.
_guard: Optional[WebhookIntakeGuard] = None


def _response(status_code: int, body: dict) -> dict:
    return {
        "statusCode": status_code,
        "headers": {"Content-Type": "application/json"},
        "body": json.dumps(body),
    }


def _respond(outcome: Outcome) -> dict:
    return _response(outcome.status_code, outcome.body)


def _get_guard() -> WebhookIntakeGuard:
    global _guard
    if _guard is None:
        config = load_config()
        logger.debug("webhook.config_loaded", extra={"config": repr(config)})
        _guard = WebhookIntakeGuard(config, DynamoDocumentStore(region_name=config.region))
    return _guard


def _method(event: dict) -> str:
    """HTTP API (v2) puts the method under requestContext.http; REST API (v1) uses httpMethod."""
    method = event.get("requestContext", {}).get("http", {}).get("method") or event.get("httpMethod")
    return (method or "").upper()


def _header(event: dict, name: str) -> Optional[str]:
    headers = event.get("headers") or {}
    wanted = name.lower()
    for key, value in headers.items():
        if key.lower() == wanted:
            return value
    return None


def _raw_body(event: dict) -> bytes:
    """
    The body exactly as the sender signed it. API Gateway hands text bodies
    over as str and binary ones base64-encoded; never re-serialize.
    """
    body = event.get("body") or ""
    if event.get("isBase64Encoded"):
        return base64.b64decode(body, validate=True)
    return body.encode("utf-8")


def lambda_handler(event, context):
    request_id = getattr(context, "aws_request_id", None)
    method = _method(event)

    if method != "POST":
        logger.info("webhook.method_not_allowed", extra={"method": method, "request_id": request_id})
        return _response(405, {"error": "method_not_allowed"})

    # 1) Configuration: fail closed when the secret is unavailable
    try:
        guard = _get_guard()
    except ConfigurationError as e:
        logger.error("webhook.config_error", extra={"error": str(e), "request_id": request_id})
        return _response(500, {"error": "server_misconfigured"})
    except Exception as e:
        logger.exception("webhook.config_unavailable", extra={"error": str(e), "request_id": request_id})
        return _response(500, {"error": "server_misconfigured"})

    try:
        raw_body = _raw_body(event)
    except binascii.Error as e:
        # An undecodable body cannot carry a valid signature.
        logger.warning("webhook.undecodable_body", extra={"error": str(e), "request_id": request_id})
        return _response(401, {"error": "invalid_signature"})

    # 2) Verify and apply
    try:
        signature = _header(event, guard.config.signature_header)
        outcome = guard.handle_event(raw_body, signature)
    except Exception as e:
        logger.exception("webhook.internal_error", extra={"error": str(e), "request_id": request_id})
        return _response(500, {"error": "internal_error"})

    logger.info(
        "webhook.responded",
        extra={"status_code": outcome.status_code, "result": outcome.reason, "request_id": request_id},
    )
    return _respond(outcome)
