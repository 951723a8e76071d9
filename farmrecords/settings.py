"""
farmrecords/settings.py

Environment configuration for the record services.

Reads (once, at import):
    AWS_REGION, DYNAMO_ENDPOINT_URL, DYNAMO_TABLE_PREFIX, DYNAMO_COUNTERS_TABLE,
    RECORDS_BACKEND, WEATHER_DELAY_SECONDS, UPCOMING_TASK_WINDOW_DAYS

A `.env` file in the working directory is loaded first when present.
"""
import logging
import os

from dotenv import load_dotenv

logger = logging.getLogger(__name__)

load_dotenv()


def _getenv_number(name, default, cast):
    """Numeric env var; a malformed value is logged and the default used instead."""
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return cast(raw.strip())
    except ValueError:
        logger.warning("Ignoring invalid %s=%r, using %s", name, raw, default)
        return default


AWS_REGION = os.getenv("AWS_REGION", "us-east-1")
# Point at DynamoDB Local / localstack during development
DYNAMO_ENDPOINT_URL = os.getenv("DYNAMO_ENDPOINT_URL") or None
DYNAMO_TABLE_PREFIX = os.getenv("DYNAMO_TABLE_PREFIX", "")
DYNAMO_COUNTERS_TABLE = os.getenv("DYNAMO_COUNTERS_TABLE", "record_counters")

# "dynamodb" builds the boto3 client lazily; "none" leaves the services without a client
RECORDS_BACKEND = os.getenv("RECORDS_BACKEND", "dynamodb").strip().lower()

WEATHER_DELAY_SECONDS = _getenv_number("WEATHER_DELAY_SECONDS", 0.4, float)
UPCOMING_TASK_WINDOW_DAYS = _getenv_number("UPCOMING_TASK_WINDOW_DAYS", 7, int)
