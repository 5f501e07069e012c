"""
Logging utilities.

Process-wide logging setup plus the request-level log helpers used around
the answer cycle.

Dependencies: logging (stdlib)
"""
import logging
from typing import Any

from .data_models import Metrics

logger = logging.getLogger("rag_service.requests")

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def configure_logging(level: str = "INFO") -> None:
    """Configure the root logger once for CLI / service entry points."""
    logging.basicConfig(level=getattr(logging, level.upper(), logging.INFO), format=LOG_FORMAT)
    # Third-party clients are chatty at INFO
    for noisy in ("chromadb", "httpx", "urllib3", "sentence_transformers"):
        logging.getLogger(noisy).setLevel(logging.WARNING)


def safe_log_value(value: Any, max_length: int = 100) -> str:
    """
    Convert a value to a bounded string for logging.

    Args:
        value: Value to convert
        max_length: Maximum length before truncating

    Returns:
        str: Safe string representation
    """
    if value is None:
        return "None"
    val_str = value if isinstance(value, str) else str(value)
    if len(val_str) > max_length:
        return val_str[:max_length] + f"... (truncated, {len(val_str)} total)"
    return val_str


def log_request(request_id: str, question: str) -> None:
    logger.info(
        "Request received request_id=%s question=%r",
        request_id, safe_log_value(question),
    )


def log_metrics(request_id: str, metrics: Metrics) -> None:
    fields = " ".join(f"{k}={v}" for k, v in metrics.to_dict().items())
    logger.info("Request completed request_id=%s %s", request_id, fields)


def log_guardrail_block(request_id: str, reason: str, policy: str) -> None:
    logger.warning(
        "Request blocked by guardrail request_id=%s policy=%s reason=%s",
        request_id, policy, reason,
    )
