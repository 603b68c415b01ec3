from vmcsampler.utils.checks import (
    require_finite,
    require_positive_int,
    require_shape,
)
from vmcsampler.utils.io import ensure_dir, save_json, save_samples
from vmcsampler.utils.logging import configure_logging, log_event
from vmcsampler.utils.rng import RngStreams, process_rank

__all__ = [
    "RngStreams",
    "configure_logging",
    "ensure_dir",
    "log_event",
    "process_rank",
    "require_finite",
    "require_positive_int",
    "require_shape",
    "save_json",
    "save_samples",
]
