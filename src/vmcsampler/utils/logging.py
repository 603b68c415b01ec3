from __future__ import annotations

import json
import logging

import numpy as np


def configure_logging(level: int | str = logging.INFO) -> None:
    """Configure root logging once for CLI scripts and experiments.

    ``level`` accepts either a numeric level or a name such as ``"DEBUG"``.
    """

    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            raise ValueError(f"unknown log level: {level!r}")
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )


def _to_builtin(obj: object) -> object:
    if isinstance(obj, np.generic):
        return obj.item()
    if isinstance(obj, np.ndarray):
        return obj.tolist()
    return str(obj)


def log_event(logger: logging.Logger, event: str, **payload: object) -> None:
    """Emit one JSON line per sampling or training event.

    Numpy scalars and arrays are converted to plain JSON values.
    """

    if not logger.isEnabledFor(logging.INFO):
        return
    body = {"event": event, **payload}
    logger.info(json.dumps(body, sort_keys=True, default=_to_builtin))
