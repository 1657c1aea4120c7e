import os
from dataclasses import dataclass, field

from utils.errors import ConfigurationError
from utils.logger import get_logger
from utils.secrets import get_webhook_secret

logger = get_logger("config")

DEFAULT_SIGNATURE_HEADER = "X-Signature"


@dataclass(frozen=True)
class WebhookConfig:
    """Settings injected into the guard; nothing downstream reads os.environ."""

    table_name: str
    webhook_secret: str = field(repr=False)
    signature_header: str = DEFAULT_SIGNATURE_HEADER
    region: str = "us-east-1"


def load_config() -> WebhookConfig:
    """
    Load configuration for the webhook function.

    PAYMENT_LINKS_TABLE: DynamoDB table keyed by external_id
    WEBHOOK_SECRET_NAME: Secrets Manager secret holding the shared secret
    WEBHOOK_SECRET_KEY: JSON field inside that secret (default: webhook_secret)
    SIGNATURE_HEADER: request header carrying the hex signature (default: X-Signature)
    AWS_REGION: defaults to us-east-1 if not set

    Raises ConfigurationError with a clear message if something is missing.
    """
    table_name = os.getenv("PAYMENT_LINKS_TABLE")
    secret_name = os.getenv("WEBHOOK_SECRET_NAME")
    secret_key = os.getenv("WEBHOOK_SECRET_KEY", "webhook_secret")
    signature_header = os.getenv("SIGNATURE_HEADER", DEFAULT_SIGNATURE_HEADER)
    region = os.getenv("AWS_REGION", "us-east-1")

    missing = []
    if not table_name:
        missing.append("PAYMENT_LINKS_TABLE")
    if not secret_name:
        missing.append("WEBHOOK_SECRET_NAME")

    if missing:
        msg = f"Missing required environment variables: {', '.join(missing)}"
        logger.error(msg)
        raise ConfigurationError(msg)

    secret = get_webhook_secret(secret_name, region, key=secret_key)

    return WebhookConfig(
        table_name=table_name,
        webhook_secret=secret,
        signature_header=signature_header,
        region=region,
    )
