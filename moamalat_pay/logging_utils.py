"""Logging helpers for Moamalat Pay."""
import logging
from typing import Optional

from .config import settings


LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def configure_logging(level: Optional[str] = None) -> None:
    """Configure default logging if the host application has not done so."""
    root = logging.getLogger()
    if root.handlers:
        return
    logging.basicConfig(
        level=getattr(logging, level or settings.log_level),
        format=LOG_FORMAT
    )


def mask(value: Optional[str], visible: int = 4) -> str:
    """Mask a secret or signature for log output."""
    if not value:
        return "<empty>"
    if len(value) <= visible:
        return "*" * len(value)
    return f"{value[:visible]}...({len(value)} chars)"
