"""Core data models for the debrief evaluation engine."""

from debrief.models.snapshot import (
    SimPhase,
    Rhythm,
    Vitals,
    StateSnapshot,
    baseline_snapshot,
)
from debrief.models.session import (
    Speaker,
    ActionResult,
    Message,
    ActionLogEntry,
    NurseCatch,
    ReconstructionInput,
)
from debrief.models.timeline import (
    EventType,
    EventActor,
    StateTrigger,
    TimelineEvent,
)
from debrief.models.evaluation import (
    Impact,
    IMPACT_RANK,
    PivotType,
    CommunicationWindow,
    Alternative,
    StateImpact,
    PivotPoint,
    CausalLink,
    Breakpoint,
    CausalChain,
    OutcomeProjection,
    InterventionSpec,
    Counterfactual,
    DialogueHook,
    EmotionalTrajectory,
    KeyMoment,
    CharacterPerspective,
    Scores,
    Trajectory,
    PivotalMoment,
    TheOneThing,
    EvaluationResult,
    SessionRecord,
    QuickSummary,
)

__all__ = [
    # Snapshots
    "SimPhase",
    "Rhythm",
    "Vitals",
    "StateSnapshot",
    "baseline_snapshot",
    # Session input
    "Speaker",
    "ActionResult",
    "Message",
    "ActionLogEntry",
    "NurseCatch",
    "ReconstructionInput",
    # Timeline
    "EventType",
    "EventActor",
    "StateTrigger",
    "TimelineEvent",
    # Evaluation
    "Impact",
    "IMPACT_RANK",
    "PivotType",
    "CommunicationWindow",
    "Alternative",
    "StateImpact",
    "PivotPoint",
    "CausalLink",
    "Breakpoint",
    "CausalChain",
    "OutcomeProjection",
    "InterventionSpec",
    "Counterfactual",
    "DialogueHook",
    "EmotionalTrajectory",
    "KeyMoment",
    "CharacterPerspective",
    "Scores",
    "Trajectory",
    "PivotalMoment",
    "TheOneThing",
    "EvaluationResult",
    "SessionRecord",
    "QuickSummary",
]
