"""Logging for largebatch.

Thin layer over the standard library: a ``ContextualLogger`` carries key/value
dimensions (accumulator id, group index, ...) that are appended to every
message and attached to the record as ``extra``.
"""

import logging
import sys
from typing import Any, Dict, MutableMapping, Optional, Tuple

from largebatch.core.config import settings

LOGGER_NAME = "largebatch"


class ContextualLogger(logging.LoggerAdapter):
    """Logger adapter that carries contextual dimensions."""

    def __init__(self, logger: logging.Logger, dimensions: Optional[Dict[str, Any]] = None):
        """Initialize the adapter.

        Args:
            logger: Underlying stdlib logger
            dimensions: Key/value context added to every record
        """
        super().__init__(logger, dict(dimensions or {}))
        self.dimensions: Dict[str, Any] = dict(dimensions or {})

    def with_context(self, **dimensions: Any) -> "ContextualLogger":
        """Return a child logger with additional dimensions merged in."""
        merged = {**self.dimensions, **dimensions}
        return ContextualLogger(self.logger, merged)

    def process(
        self, msg: Any, kwargs: MutableMapping[str, Any]
    ) -> Tuple[Any, MutableMapping[str, Any]]:
        """Attach dimensions to the record and render them after the message."""
        if not self.dimensions:
            return msg, kwargs

        extra = dict(kwargs.get("extra") or {})
        extra.setdefault("dimensions", self.dimensions)
        kwargs["extra"] = extra

        rendered = " ".join(f"{key}={value}" for key, value in self.dimensions.items())
        return f"{msg} [{rendered}]", kwargs


def _configure_base_logger() -> logging.Logger:
    base = logging.getLogger(LOGGER_NAME)
    base.setLevel(settings.LOG_LEVEL)

    # Avoid adding handlers multiple times
    if not base.handlers:
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(
            logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")
        )
        base.addHandler(handler)

    return base


def get_logger(name: Optional[str] = None, **dimensions: Any) -> ContextualLogger:
    """Get a contextual logger under the ``largebatch`` namespace.

    Args:
        name: Optional child logger name (e.g. ``"accumulator"``)
        **dimensions: Initial context dimensions

    Returns:
        ContextualLogger bound to the requested logger
    """
    base = _configure_base_logger()
    target = base.getChild(name) if name else base
    return ContextualLogger(target, dimensions)


logger = get_logger()
