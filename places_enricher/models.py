"""
Typed data models for the Places enrichment pipeline.
All data structures shared between modules should be defined here.
"""
from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Any, Dict, List, Optional


@dataclass(frozen=True)
class InputRecord:
    """One spreadsheet row, identified by its position in the sheet."""
    business_name: str
    address: str

    @property
    def is_complete(self) -> bool:
        return bool(self.business_name and self.business_name.strip()) and bool(
            self.address and self.address.strip()
        )


@dataclass
class QuotaState:
    """Persisted daily request counter."""
    count: int
    last_reset: date

    def to_dict(self) -> Dict[str, Any]:
        return {"count": self.count, "last_reset": self.last_reset.isoformat()}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "QuotaState":
        """Parse a stored counter; also accepts the older {"count", "lastReset": "Mon Oct 19 2026"} layout."""
        if "last_reset" in data:
            last_reset = date.fromisoformat(data["last_reset"])
        else:
            last_reset = datetime.strptime(data["lastReset"], "%a %b %d %Y").date()
        count = int(data["count"])
        if count < 0:
            raise ValueError(f"negative request count {count}")
        return cls(count=count, last_reset=last_reset)


@dataclass(frozen=True)
class QuotaDecision:
    """Result of QuotaTracker.try_consume()."""
    permitted: bool
    count: int


class LookupStatus(str, Enum):
    MATCH = "match"
    NOT_FOUND = "not_found"
    TRANSIENT_FAILURE = "transient_failure"


@dataclass(frozen=True)
class LookupResult:
    """Outcome of a single Places lookup."""
    status: LookupStatus
    candidate: Optional[Dict[str, Any]] = None  # Raw Places result, stored verbatim
    score: Optional[float] = None
    reason: Optional[str] = None

    @classmethod
    def match(cls, candidate: Dict[str, Any], score: float) -> "LookupResult":
        return cls(LookupStatus.MATCH, candidate=candidate, score=score)

    @classmethod
    def not_found(cls, reason: Optional[str] = None) -> "LookupResult":
        return cls(LookupStatus.NOT_FOUND, reason=reason)

    @classmethod
    def transient_failure(cls, reason: str) -> "LookupResult":
        return cls(LookupStatus.TRANSIENT_FAILURE, reason=reason)


@dataclass(frozen=True)
class NotFoundRecord:
    """A record with no acceptable Places candidate."""
    business_name: str
    address: str
    partition_id: int

    def to_dict(self) -> Dict[str, Any]:
        # Key names match the not-found log written by earlier runs
        return {
            "businessName": self.business_name,
            "address": self.address,
            "sheetNumber": self.partition_id,
        }


@dataclass(frozen=True)
class HttpResponse:
    """Status and decoded JSON body of an HTTP GET."""
    status: int
    body: Dict[str, Any]


class RunStatus(str, Enum):
    IDLE = "idle"
    RUNNING = "running"
    QUOTA_EXHAUSTED = "quota_exhausted"
    COMPLETED = "completed"
    FAILED = "failed"


@dataclass
class RunReport:
    """Summary of one BatchDriver.run() call."""
    partition_id: int
    status: RunStatus = RunStatus.IDLE
    start_index: int = 0
    next_index: int = 0
    matched: int = 0
    not_found: int = 0
    skipped: int = 0
    failed_indices: List[int] = field(default_factory=list)
