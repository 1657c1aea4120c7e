import json

from utils import __version__
from utils.logger import log


def lambda_handler(event, context):
    http = event.get("requestContext", {}).get("http", {})
    path = http.get("path") or event.get("rawPath") or "/healthz"
    log("health.check", path=path, method=http.get("method", "GET"))

    if path.rstrip("/").endswith("/version"):
        body = {"version": __version__}
    else:
        body = {"status": "ok"}

    return {
        "statusCode": 200,
        "headers": {"Content-Type": "application/json"},
        "body": json.dumps(body),
    }
