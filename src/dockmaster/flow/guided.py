"""
Guided flow - the five-step walkthrough of one service request, plus the
request queue and the pipeline timeline shown while the AI "works".
"""
from dataclasses import dataclass
from enum import Enum
from typing import Optional

import structlog

logger = structlog.get_logger(__name__)


class GuidedStep(str, Enum):
    INTAKE = "intake"
    PIPELINE = "pipeline"
    REVIEW = "review"
    APPROVAL = "approval"
    ESTIMATE = "estimate"


STEP_ORDER = list(GuidedStep)

STEP_LABELS = {
    GuidedStep.INTAKE: "Customer Request",
    GuidedStep.PIPELINE: "AI Service Analysis",
    GuidedStep.REVIEW: "Service Review",
    GuidedStep.APPROVAL: "Approval",
    GuidedStep.ESTIMATE: "Estimate",
}


class RequestStatus(str, Enum):
    NEW = "new"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


class GuidedFlow:
    """
    Forward-only walkthrough with a single step back.

    Scenario ids are tracked in a request queue: a request is new until it
    leaves intake and completed once its estimate has been reached.
    """

    def __init__(self, scenario_ids: list[str]):
        if not scenario_ids:
            raise ValueError("GuidedFlow needs at least one scenario")
        self.scenario_ids = list(scenario_ids)
        self.scenario_index = 0
        self.step = GuidedStep.INTAKE
        self.statuses: dict[str, RequestStatus] = {sid: RequestStatus.NEW for sid in self.scenario_ids}

    @property
    def scenario_id(self) -> str:
        return self.scenario_ids[self.scenario_index]

    @property
    def step_number(self) -> int:
        return STEP_ORDER.index(self.step) + 1

    def next_step(self) -> GuidedStep:
        index = STEP_ORDER.index(self.step)
        if index < len(STEP_ORDER) - 1:
            self.step = STEP_ORDER[index + 1]
            self._track_progress()
        return self.step

    def prev_step(self) -> GuidedStep:
        index = STEP_ORDER.index(self.step)
        if index > 0:
            self.step = STEP_ORDER[index - 1]
        return self.step

    def reset(self) -> None:
        self.step = GuidedStep.INTAKE

    def select_scenario(self, index: int) -> None:
        """Switch to another request; the walkthrough restarts at intake."""
        if not 0 <= index < len(self.scenario_ids):
            raise IndexError(f"No scenario at index {index}")
        if index != self.scenario_index:
            self.scenario_index = index
            self.step = GuidedStep.INTAKE

    def add_scenario(self, scenario_id: str) -> int:
        """Register a newly generated request at the top of the queue."""
        if scenario_id in self.statuses:
            return self.scenario_ids.index(scenario_id)
        current = self.scenario_id
        self.scenario_ids.insert(0, scenario_id)
        self.statuses[scenario_id] = RequestStatus.NEW
        self.scenario_index = self.scenario_ids.index(current)
        logger.info("request_added", scenario_id=scenario_id)
        return 0

    def status_counts(self) -> dict[str, int]:
        counts = {status.value: 0 for status in RequestStatus}
        for status in self.statuses.values():
            counts[status.value] += 1
        return counts

    def _track_progress(self) -> None:
        sid = self.scenario_id
        if self.step == GuidedStep.ESTIMATE:
            self.statuses[sid] = RequestStatus.COMPLETED
        elif self.statuses[sid] == RequestStatus.NEW:
            self.statuses[sid] = RequestStatus.IN_PROGRESS


class PipelineStage(str, Enum):
    ENTITY_EXTRACTION = "entity-extraction"
    DIAGNOSTIC_RETRIEVAL = "diagnostic-retrieval"
    WORK_ORDER_ASSEMBLY = "work-order-assembly"
    MARGIN_CHECK = "margin-check"


STAGE_DURATIONS_MS = {
    PipelineStage.ENTITY_EXTRACTION: 1500,
    PipelineStage.DIAGNOSTIC_RETRIEVAL: 2000,
    PipelineStage.WORK_ORDER_ASSEMBLY: 2500,
    PipelineStage.MARGIN_CHECK: 1800,
}

STAGE_GAP_MS = 300


@dataclass(frozen=True)
class StageWindow:
    stage: PipelineStage
    start_ms: int
    end_ms: int


class PipelineTimeline:
    """
    Fixed schedule of the four pipeline stages. Each stage starts after a
    short gap and completes after its duration; the next stage is measured
    from the previous completion.
    """

    def __init__(self, durations: Optional[dict] = None, gap_ms: int = STAGE_GAP_MS):
        durations = durations or STAGE_DURATIONS_MS
        self.windows: list[StageWindow] = []
        cursor = 0
        for stage in PipelineStage:
            start = cursor + gap_ms
            end = start + durations[stage]
            self.windows.append(StageWindow(stage, start, end))
            cursor = end

    @property
    def total_duration_ms(self) -> int:
        return self.windows[-1].end_ms

    def status_at(self, elapsed_ms: float) -> dict[PipelineStage, str]:
        statuses = {}
        for window in self.windows:
            if elapsed_ms >= window.end_ms:
                statuses[window.stage] = "complete"
            elif elapsed_ms >= window.start_ms:
                statuses[window.stage] = "processing"
            else:
                statuses[window.stage] = "pending"
        return statuses

    def is_complete(self, elapsed_ms: float) -> bool:
        return elapsed_ms >= self.total_duration_ms
