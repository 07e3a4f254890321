"""Domain models - pure Python dataclasses representing business entities"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Dict, Optional, Union


class JobType(str, Enum):
    """Kinds of asynchronous work the worker knows how to run"""

    PARSE_CSV = "parse_csv"
    RESCORE_ALL = "rescore_all"


class JobStatus(str, Enum):
    """Job lifecycle: pending -> processing -> done | failed"""

    PENDING = "pending"
    PROCESSING = "processing"
    DONE = "done"
    FAILED = "failed"


@dataclass(frozen=True)
class TransactionDraft:
    """Canonical transaction fields before scoring and persistence"""

    amount: float
    country: str
    merchant: str
    timestamp: Union[str, datetime, None]


@dataclass(frozen=True)
class RiskWeights:
    """Tunable parameters of the heuristic risk score"""

    large_amount_threshold: float = 1000.0
    large_amount_weight: float = 0.4
    unusual_country_weight: float = 0.25
    off_hours_weight: float = 0.2
    blacklist_weight: float = 0.15


@dataclass(frozen=True)
class RiskAssessment:
    """Output of the risk estimator"""

    score: float
    signals: Dict[str, float] = field(default_factory=dict)


@dataclass
class JobResult:
    """Summary of a finished job run"""

    job_id: str
    job_type: str
    processed: int = 0
    skipped: int = 0
    file_locator: Optional[str] = None
