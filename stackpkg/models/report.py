"""Run report models: what each pipeline step did during one invocation."""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

from stackpkg.models.config import InvocationRequest
from stackpkg.models.platform import PlatformDescriptor


class StepState(str, Enum):
    """Outcome of a single pipeline step."""

    PASSED = "passed"
    FAILED = "failed"
    SKIPPED = "skipped"


class Step(str, Enum):
    """Pipeline steps in execution order."""

    PLATFORM = "platform"
    RESOLVE = "resolve"
    CACHE = "cache"
    FETCH = "fetch"
    VERIFY = "verify"
    EXTRACT = "extract"
    DISPATCH = "dispatch"
    PERMISSIONS = "permissions"
    RECORD = "record"


class StepRecord(BaseModel):
    """Records a single step outcome for the run report."""

    model_config = ConfigDict(frozen=True)

    step: Step
    state: StepState
    detail: str = ""
    timestamp_utc: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc)
    )


class RunReport(BaseModel):
    """Summary of one invocation, successful or not."""

    model_config = ConfigDict(frozen=True)

    request: InvocationRequest
    platform: PlatformDescriptor | None = None
    identifier: str | None = None  # the active identifier, once known
    from_cache: bool = False
    used_fallback: bool = False
    steps: list[StepRecord] = []

    @property
    def succeeded(self) -> bool:
        return bool(self.steps) and all(
            s.state != StepState.FAILED for s in self.steps
        )

    def state_of(self, step: Step) -> StepState | None:
        for record in self.steps:
            if record.step == step:
                return record.state
        return None
