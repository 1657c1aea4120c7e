"""
Payment-Link Webhook Utilities
==============================

Shared modules for the Lambda handlers in this service:

- logger.py     → structured JSON logging
- config.py     → environment-driven WebhookConfig (loaded once per container)
- secrets.py    → AWS Secrets Manager lookup of the shared webhook secret
- signature.py  → constant-time HMAC-SHA256 verification
- events.py     → typed webhook event envelope
- models.py     → PaymentLinkRecord and its status lifecycle
- store.py      → DynamoDB document store with check-and-set updates
- guard.py      → Webhook Intake Guard (verify, dispatch, apply once)
- errors.py     → exception types

Environment variables expected:
  • AWS_REGION             - AWS region for all resources
  • PAYMENT_LINKS_TABLE    - DynamoDB table of payment-link records
  • WEBHOOK_SECRET_NAME    - Secrets Manager secret holding the webhook secret
  • WEBHOOK_SECRET_KEY     - JSON field of that secret (default: webhook_secret)
  • SIGNATURE_HEADER       - signature header name (default: X-Signature)
  • LOG_LEVEL              - Log verbosity (default: INFO)

All handlers are stateless apart from clients cached per Lambda container.
"""

__version__ = "1.0.0"
__author__ = "Payments Engineering"
__license__ = "MIT"

__all__ = ["__version__", "__author__"]
