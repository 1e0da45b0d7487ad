"""
ContractScan Exceptions

Error taxonomy shared by the analysis pipeline and the request handlers.
"""

from enum import Enum


class ErrorKind(str, Enum):
    """Category of a failed analysis, used to pick the caller-facing status."""

    VALIDATION = "validation"   # malformed caller input
    RESOURCE = "resource"       # sandbox allocation / write failures
    ENGINE = "engine"           # engine could not be launched
    TIMEOUT = "timeout"         # engine exceeded its wall-clock budget
    INTERNAL = "internal"       # anything unexpected


class ContractScanError(Exception):
    """Base exception for ContractScan errors"""

    kind = ErrorKind.INTERNAL

    def __init__(self, message: str, **context):
        self.message = message
        self.context = {k: v for k, v in context.items() if v is not None}
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        parts = [self.message]
        for key, value in self.context.items():
            parts.append(f"{key}={value}")
        return " | ".join(parts)


class ConfigError(ContractScanError):
    """Invalid configuration (unknown engine, bad port, ...)"""
    pass


class InvalidRequestError(ContractScanError):
    """Caller input rejected before any sandbox or engine work"""

    kind = ErrorKind.VALIDATION


class UnsafePathError(InvalidRequestError):
    """A declared file path would escape the sandbox root"""

    def __init__(self, message: str, path: str = None):
        self.path = path
        super().__init__(message, path=path)


class SandboxCreationError(ContractScanError):
    """Sandbox directory could not be allocated or populated"""

    kind = ErrorKind.RESOURCE


class EngineLaunchError(ContractScanError):
    """External engine could not be started"""

    kind = ErrorKind.ENGINE


class EngineTimeoutError(EngineLaunchError):
    """External engine exceeded its timeout and was killed"""

    kind = ErrorKind.TIMEOUT

    def __init__(self, message: str, timeout: float = None, **kwargs):
        self.timeout = timeout
        super().__init__(message, timeout=timeout, **kwargs)
