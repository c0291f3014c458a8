from .execution import (
    CodeExecutionResult,
    CodeRunner,
    DetectedLanguage,
    ErrorKind,
    ExecutionRequest,
    ScratchDirectory,
)
from .detector import ToolchainDetectionError, ToolchainDetector
from .languages import LANGUAGES, LanguageSpec, MissingEntryTypeError, get_language
from .runner import detect_languages, run_code
from .settings import RunnerSettings

__all__ = [
    "CodeExecutionResult",
    "CodeRunner",
    "DetectedLanguage",
    "ErrorKind",
    "ExecutionRequest",
    "LANGUAGES",
    "LanguageSpec",
    "MissingEntryTypeError",
    "RunnerSettings",
    "ScratchDirectory",
    "ToolchainDetectionError",
    "ToolchainDetector",
    "detect_languages",
    "get_language",
    "run_code",
]
