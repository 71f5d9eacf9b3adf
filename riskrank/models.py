"""
RiskRank — Data Models.

Dataclasses for findings flowing through the engine, plus the Pydantic
schema every ranking entry (AI or fallback) is validated against.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

DEFAULT_BUSINESS_IMPACT = "Security impact unknown or not evaluated."
DEFAULT_REMEDIATION = "Review code and apply secure coding practices."


class Severity(str, Enum):
    """Normalized severity. Distinct from the scanner's raw token."""

    CRITICAL = "Critical"
    HIGH = "High"
    MEDIUM = "Medium"
    LOW = "Low"


class Confidence(str, Enum):
    """Likelihood that a finding is a true positive."""

    HIGH = "High"
    MEDIUM = "Medium"
    LOW = "Low"


class Strategy(str, Enum):
    """Which ranking strategy produced a result."""

    AI = "ai"
    FALLBACK = "fallback"


@dataclass(frozen=True)
class Finding:
    """A raw finding as reported by the scanner."""

    id: str | None = None
    path: str | None = None
    start_line: int | None = None
    end_line: int | None = None
    message: str = ""
    severity: str = ""
    snippet: str | None = None
    metadata: dict[str, Any] | None = None

    @property
    def is_valid(self) -> bool:
        return bool(self.id) or bool(self.path)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Finding:
        """Build from a mapping using either snake_case or wire names."""
        return cls(
            id=data.get("id"),
            path=data.get("path"),
            start_line=data.get("start_line", data.get("startLine")),
            end_line=data.get("end_line", data.get("endLine")),
            message=data.get("message") or "",
            severity=data.get("severity") or "",
            snippet=data.get("snippet"),
            metadata=data.get("metadata"),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "path": self.path,
            "startLine": self.start_line,
            "endLine": self.end_line,
            "message": self.message,
            "severity": self.severity,
            "snippet": self.snippet,
            "metadata": self.metadata,
        }


@dataclass(frozen=True)
class NormalizedFinding:
    """A finding prepared for ranking.

    ``index`` is the only key rankings use to point back at it.
    ``snippet`` is the trimmed, bounded excerpt sent to the LLM; the
    untouched original stays on ``finding``.
    """

    index: int
    finding: Finding
    severity_key: str
    snippet: str

    @property
    def id(self) -> str | None:
        return self.finding.id

    @property
    def message(self) -> str:
        return self.finding.message

    def to_prompt_record(self) -> dict[str, Any]:
        return {
            "index": self.index,
            "id": self.finding.id,
            "path": self.finding.path,
            "message": self.finding.message,
            "severity": self.finding.severity,
            "snippet": self.snippet,
        }


class RankingEntry(BaseModel):
    """One ranking decision, as returned by the LLM or the fallback scorer."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    original_index: int = Field(..., alias="originalIndex", ge=0, strict=True)
    rank: int = Field(..., ge=1, le=10, strict=True)
    title: str | None = None
    explanation: str | None = None
    business_impact: str | None = Field(None, alias="businessImpact")
    remediation: str | None = None
    confidence: Confidence | None = None
    severity: Severity | None = None

    @field_validator("confidence", "severity", mode="before")
    @classmethod
    def fold_case(cls, v: Any) -> Any:
        # "HIGH" / "high" → "High"; unknown words still fail the enum
        if isinstance(v, str):
            return v.strip().capitalize()
        return v


@dataclass
class RankedFinding:
    """A finding with its rank and risk narrative attached."""

    rank: int
    title: str
    explanation: str
    severity: Severity
    confidence: Confidence = Confidence.MEDIUM
    business_impact: str = DEFAULT_BUSINESS_IMPACT
    remediation: str = DEFAULT_REMEDIATION
    id: str | None = None
    path: str | None = None
    start_line: int | None = None
    end_line: int | None = None
    message: str = ""
    raw_severity: str = ""
    snippet: str | None = None
    metadata: dict[str, Any] | None = None

    def to_dict(self) -> dict[str, Any]:
        """Serialize to the camelCase report shape."""
        return {
            "rank": self.rank,
            "id": self.id,
            "title": self.title,
            "path": self.path,
            "startLine": self.start_line,
            "endLine": self.end_line,
            "message": self.message,
            "severity": self.severity.value,
            "rawSeverity": self.raw_severity,
            "confidence": self.confidence.value,
            "explanation": self.explanation,
            "businessImpact": self.business_impact,
            "remediation": self.remediation,
            "snippet": self.snippet,
            "metadata": self.metadata,
        }


@dataclass(frozen=True)
class ProjectContext:
    """Project metadata used to enrich the AI prompt."""

    name: str | None = None
    version: str | None = None
    frameworks: list[str] = field(default_factory=list)
    dependencies: dict[str, str] = field(default_factory=dict)
    dev_dependencies: dict[str, str] = field(default_factory=dict)


@dataclass
class Verdict:
    """Outcome of the severity gate."""

    should_fail: bool
    threshold: Severity | None = None
    offending: list[RankedFinding] = field(default_factory=list)

    @property
    def exit_code(self) -> int:
        return 1 if self.should_fail else 0
