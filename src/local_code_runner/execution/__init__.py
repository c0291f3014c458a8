from .types import CodeExecutionResult, DetectedLanguage, ErrorKind, ExecutionArtifacts, ExecutionRequest
from .scratch import ScratchDirectory, SweepSummary
from .engine import CodeRunner

__all__ = [
    "CodeExecutionResult",
    "CodeRunner",
    "DetectedLanguage",
    "ErrorKind",
    "ExecutionArtifacts",
    "ExecutionRequest",
    "ScratchDirectory",
    "SweepSummary",
]
