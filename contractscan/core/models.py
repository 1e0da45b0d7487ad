"""
ContractScan Data Models

FileBundle validation, cache entries and the tagged analysis result.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Mapping, Optional, Tuple

from .exceptions import ContractScanError, ErrorKind, InvalidRequestError


# FileBundle: relative path -> file content
FileBundle = Dict[str, str]


def validate_bundle(files: Any) -> FileBundle:
    """
    Check that a caller-supplied value is a usable FileBundle.

    Path safety is checked separately by the sandbox manager, which knows
    the layout policy of the active engine.

    Raises:
        InvalidRequestError: empty bundle, non-mapping, or entries that are
            not strings encodable as UTF-8
    """
    if not files or not isinstance(files, Mapping):
        raise InvalidRequestError("no files provided")

    for path, content in files.items():
        if not isinstance(path, str) or not path.strip():
            raise InvalidRequestError("file paths must be non-empty strings")
        if not _encodable(path):
            raise InvalidRequestError("file paths must be valid UTF-8 text")
        if not isinstance(content, str):
            raise InvalidRequestError(
                f"content for '{path}' must be a string",
                type=type(content).__name__,
            )
        if not _encodable(content):
            raise InvalidRequestError(f"content for '{path}' is not valid UTF-8 text")

    return dict(files)


def _encodable(text: str) -> bool:
    # Lone surrogates survive JSON decoding but cannot be written to disk or hashed
    try:
        text.encode("utf-8")
    except UnicodeEncodeError:
        return False
    return True


@dataclass(frozen=True)
class CacheEntry:
    """
    Stored output of one successful analysis.

    Owned by the ResultCache, never mutated after creation.
    """

    output: str
    analyzed_paths: Tuple[str, ...]
    created_at: datetime = field(default_factory=datetime.now)

    def to_dict(self) -> dict:
        return {
            "output": self.output,
            "analyzed_paths": list(self.analyzed_paths),
            "created_at": self.created_at.isoformat(),
        }


@dataclass(frozen=True)
class AnalysisResult:
    """
    Outcome of an analysis request.

    Either Success{output, analyzed_paths} or Failure{error_msg}, never both.
    Use AnalysisResult.ok() / AnalysisResult.fail() to build one.
    """

    success: bool
    output: Optional[str] = None
    analyzed_paths: Tuple[str, ...] = ()
    error_msg: Optional[str] = None
    error_kind: Optional[ErrorKind] = None
    cached: bool = False

    def __post_init__(self):
        if self.success and self.error_msg is not None:
            raise ValueError("successful result cannot carry an error message")
        if not self.success and self.output is not None:
            raise ValueError("failed result cannot carry output")
        if not self.success and not self.error_msg:
            raise ValueError("failed result requires an error message")

    @classmethod
    def ok(
        cls,
        output: str,
        analyzed_paths: Optional[List[str]] = None,
        cached: bool = False,
    ) -> "AnalysisResult":
        return cls(
            success=True,
            output=output,
            analyzed_paths=tuple(analyzed_paths or ()),
            cached=cached,
        )

    @classmethod
    def fail(cls, error_msg: str, kind: ErrorKind = ErrorKind.INTERNAL) -> "AnalysisResult":
        return cls(success=False, error_msg=error_msg, error_kind=kind)

    @classmethod
    def from_error(cls, error: ContractScanError) -> "AnalysisResult":
        return cls.fail(error.message, error.kind)

    @classmethod
    def from_entry(cls, entry: CacheEntry) -> "AnalysisResult":
        return cls.ok(entry.output, list(entry.analyzed_paths), cached=True)

    def to_entry(self) -> CacheEntry:
        if not self.success:
            raise ValueError("only successful results can be cached")
        return CacheEntry(output=self.output, analyzed_paths=self.analyzed_paths)

    def to_dict(self) -> Dict[str, Any]:
        if self.success:
            return {
                "success": True,
                "output": self.output,
                "analyzed_paths": list(self.analyzed_paths),
                "cached": self.cached,
            }
        return {
            "success": False,
            "error": self.error_msg,
            "error_kind": self.error_kind.value if self.error_kind else None,
        }
