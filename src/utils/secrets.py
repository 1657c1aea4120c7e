import json

import boto3

from utils.errors import ConfigurationError
from utils.logger import get_logger

logger = get_logger("secrets")


def get_webhook_secret(secret_name: str, region_name: str, key: str = "webhook_secret") -> str:
    """
    Fetch the shared webhook secret from AWS Secrets Manager.

    The SecretString may be a JSON object holding the secret under `key`, e.g.:

        {
          "webhook_secret": "...",
          "key_id": "...",
          "key_secret": "..."
        }

    or the bare secret itself. An absent or empty value raises
    ConfigurationError so the endpoint fails closed.
    """
    logger.info(
        "Fetching webhook secret from Secrets Manager",
        extra={"secret_name": secret_name, "region": region_name},
    )

    client = boto3.client("secretsmanager", region_name=region_name)

    resp = client.get_secret_value(SecretId=secret_name)
    secret_str = resp.get("SecretString")

    if not secret_str:
        msg = f"Secret '{secret_name}' has no SecretString payload"
        logger.error(msg)
        raise ConfigurationError(msg)

    try:
        data = json.loads(secret_str)
    except json.JSONDecodeError:
        # Plain-text secret
        return secret_str

    if not isinstance(data, dict):
        return secret_str

    value = data.get(key)
    if not value or not isinstance(value, str):
        msg = f"Secret '{secret_name}' has no '{key}' field"
        logger.error(msg, extra={"secret_name": secret_name, "field": key})
        raise ConfigurationError(msg)

    return value
