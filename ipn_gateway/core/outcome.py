"""Results of best-effort side effects, reported back to the caller."""
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional


class SideEffectStatus(str, Enum):
    OK = "ok"
    FAILED = "failed"
    SKIPPED = "skipped"


@dataclass(frozen=True)
class SideEffectResult:
    """Outcome of one notification, archive or hook step."""

    step: str
    status: SideEffectStatus
    detail: Optional[str] = None

    @classmethod
    def ok(cls, step: str, detail: Optional[str] = None) -> "SideEffectResult":
        return cls(step, SideEffectStatus.OK, detail)

    @classmethod
    def failed(cls, step: str, detail: str) -> "SideEffectResult":
        return cls(step, SideEffectStatus.FAILED, detail)

    @classmethod
    def skipped(cls, step: str, detail: str) -> "SideEffectResult":
        return cls(step, SideEffectStatus.SKIPPED, detail)

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"step": self.step, "status": self.status.value}
        if self.detail is not None:
            data["detail"] = self.detail
        return data
