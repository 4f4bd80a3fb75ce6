"""Core building blocks shared by the pipeline types."""

from pipekit.core.records import ErrorLog, ErrorRecord
from pipekit.core.result_primitives import Failure, Result, Success, attempt

__all__ = ["ErrorLog", "ErrorRecord", "Failure", "Result", "Success", "attempt"]
