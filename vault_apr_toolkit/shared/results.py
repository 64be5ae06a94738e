"""
Outcome types for APR computations.

A vault can fail to produce an APR for ordinary reasons (no campaign,
rewards ended, nothing staked) or for real problems (unknown vault token,
RPC down). ``Result`` carries the value together with every reason
collected on the way, graded by ``ErrorSeverity``:

- INFO: the vault simply has nothing to report
- WARNING: a degraded input (default decimals, missing price) or an
  unknown vault token
- ERROR / CRITICAL: the computation itself broke
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Generic, List, Optional, TypeVar

T = TypeVar("T")


class ErrorSeverity(Enum):
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


_FAILURES = (ErrorSeverity.ERROR, ErrorSeverity.CRITICAL)


@dataclass
class ProcessingError:
    """
    One reason attached to a ``Result``.

    Attributes:
        source: Pipeline step that raised it ("guard", "metadata", "price")
        message: Text shown to the user
        severity: Grade of the problem
        context: chain_id, vault, pool and similar identifiers
        exception: Exception behind it, never serialized
    """

    source: str
    message: str
    severity: ErrorSeverity
    context: Dict[str, Any] = field(default_factory=dict)
    exception: Optional[Exception] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "source": self.source,
            "message": self.message,
            "severity": self.severity.value,
            "context": self.context,
        }


@dataclass
class Result(Generic[T]):
    """
    Value of a computation plus the reasons collected while producing it.

    A successful result may still carry WARNING entries.
    """

    success: bool
    data: Optional[T] = None
    errors: List[ProcessingError] = field(default_factory=list)

    @classmethod
    def ok(cls, data: T) -> "Result[T]":
        return cls(success=True, data=data)

    @classmethod
    def fail(cls, error: ProcessingError) -> "Result[T]":
        return cls(success=False, errors=[error])

    @classmethod
    def fail_with_message(
        cls,
        source: str,
        message: str,
        severity: ErrorSeverity = ErrorSeverity.ERROR,
        context: Optional[Dict[str, Any]] = None,
        exception: Optional[Exception] = None,
    ) -> "Result[T]":
        """Failed result holding a single freshly built error."""
        return cls.fail(
            ProcessingError(source, message, severity, context or {}, exception)
        )

    def add_error(self, error: ProcessingError) -> "Result[T]":
        self.errors.append(error)
        return self

    def add_warning(
        self,
        source: str,
        message: str,
        context: Optional[Dict[str, Any]] = None,
    ) -> "Result[T]":
        return self.add_error(
            ProcessingError(
                source, message, ErrorSeverity.WARNING, context or {}
            )
        )

    def has_errors(self) -> bool:
        """True when any entry is ERROR or CRITICAL."""
        return any(e.severity in _FAILURES for e in self.errors)

    def has_warnings(self) -> bool:
        return any(e.severity == ErrorSeverity.WARNING for e in self.errors)

    def is_not_applicable(self) -> bool:
        """Failed for INFO reasons only: nothing to compute, nothing wrong."""
        return not self.success and all(
            e.severity == ErrorSeverity.INFO for e in self.errors
        )

    def get_error_messages(self) -> List[str]:
        return [e.message for e in self.errors]


@dataclass
class AprBatchSummary:
    """
    Tally of an APR run over many vaults.

    Every vault lands in exactly one bucket: computed, not applicable
    (INFO-only failure), invalid (failed with warnings) or failed
    (ERROR/CRITICAL). Reasons are kept for every bucket except not
    applicable.
    """

    chain_ids: List[int] = field(default_factory=list)

    vaults_computed: int = 0
    vaults_not_applicable: int = 0
    vaults_invalid: int = 0
    vaults_failed: int = 0

    errors: List[ProcessingError] = field(default_factory=list)
    failed_vaults: List[Dict[str, Any]] = field(default_factory=list)

    def record(self, vault_address: str, chain_id: int, result: Result) -> None:
        if chain_id not in self.chain_ids:
            self.chain_ids.append(chain_id)

        if result.is_not_applicable():
            self.vaults_not_applicable += 1
            return

        self.errors.extend(result.errors)
        if result.success:
            self.vaults_computed += 1
        elif result.has_errors():
            self.vaults_failed += 1
            self.failed_vaults.append(
                {
                    "vault": vault_address,
                    "chain_id": chain_id,
                    "errors": result.get_error_messages(),
                }
            )
        else:
            self.vaults_invalid += 1

    def has_critical_errors(self) -> bool:
        return any(e.severity == ErrorSeverity.CRITICAL for e in self.errors)

    def warning_count(self) -> int:
        return sum(e.severity == ErrorSeverity.WARNING for e in self.errors)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "chain_ids": self.chain_ids,
            "counts": {
                "vaults_computed": self.vaults_computed,
                "vaults_not_applicable": self.vaults_not_applicable,
                "vaults_invalid": self.vaults_invalid,
                "vaults_failed": self.vaults_failed,
            },
            "warning_count": self.warning_count(),
            "errors": [e.to_dict() for e in self.errors],
            # first 100 only
            "failed_vaults": self.failed_vaults[:100],
        }
