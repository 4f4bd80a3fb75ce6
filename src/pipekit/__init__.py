"""pipekit: chainable value pipelines with configurable error handling.

Public API:
    - start_pipeline(): error-aware pipeline from a producer
    - make_pipeline(): error-aware pipeline from an existing value
    - PipeResult: the error-aware pipeline
    - PipeSegment: plain pipeline, failures propagate immediately
    - ErrorPolicy: ignore / recover / short-circuit settings
"""

from __future__ import annotations

import logging

from pipekit.core.records import ErrorRecord
from pipekit.errors import AggregateStepError, ConfigurationError, PipekitError
from pipekit.pipeline import (
    make_pipeline,
    make_segment,
    process_and_transform,
    start_pipeline,
    start_segment,
)
from pipekit.policy import ErrorPolicy
from pipekit.result import PipeResult
from pipekit.segment import PipeSegment

try:
    from importlib.metadata import PackageNotFoundError, version

    __version__ = version("pipekit")
except PackageNotFoundError:
    __version__ = "0.0.0+unknown"

# Library-level NullHandler: stay silent unless the consumer configures logging.
logging.getLogger("pipekit").addHandler(logging.NullHandler())

__all__ = [
    "AggregateStepError",
    "ConfigurationError",
    "ErrorPolicy",
    "ErrorRecord",
    "PipeResult",
    "PipeSegment",
    "PipekitError",
    "make_pipeline",
    "make_segment",
    "process_and_transform",
    "start_pipeline",
    "start_segment",
]
