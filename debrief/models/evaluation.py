"""Evaluation artifacts: windows, pivots, causal chains, counterfactuals, scores."""

from __future__ import annotations

from enum import Enum
from typing import Optional

from pydantic import Field

from debrief.models.base import DebriefModel
from debrief.models.timeline import EventActor, TimelineEvent


class Impact(str, Enum):
    """How much a window or pivot matters for learning."""

    CRITICAL = "critical"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


# Sort rank, most severe first
IMPACT_RANK: dict[Impact, int] = {
    Impact.CRITICAL: 0,
    Impact.HIGH: 1,
    Impact.MEDIUM: 2,
    Impact.LOW: 3,
}


class PivotType(str, Enum):
    """Classification of pivot points."""

    DECISION = "decision"                      # Active choice (e.g. skipped vagal)
    MISSED_OPPORTUNITY = "missed_opportunity"  # Failed to act when should have
    ERROR = "error"                            # Made a mistake (caught or not)
    SUCCESS = "success"                        # Did something well


# =============================================================================
# Communication windows
# =============================================================================


class CommunicationWindow(DebriefModel):
    """
    A window of opportunity for communication.

    Identifies an interval during which the learner was expected to say
    something specific to the family.
    """

    id: str
    name: str

    # Timing
    start_timestamp: int
    end_timestamp: int
    duration: int

    # What opened and closed this window
    trigger_event_id: str
    closing_event_id: str

    # Analysis
    optimal_message: str
    actual_messages: list[str] = Field(default_factory=list)
    was_missed: bool

    # Impact of missing it
    impact: Impact
    impact_description: str


# =============================================================================
# Pivot points
# =============================================================================


class Alternative(DebriefModel):
    """A different course of action the learner could have taken."""

    action: str
    rationale: str
    expected_outcome: str
    is_preferred_practice: bool


class StateImpact(DebriefModel):
    """Emotional cost attributed to a pivot. Deltas are never negative."""

    mark_anxiety_delta: int = Field(default=0, ge=0)
    lily_fear_delta: int = Field(default=0, ge=0)


class PivotPoint(DebriefModel):
    """A rule-detected, educationally significant moment in the session."""

    id: str  # pivot_<rule id>
    timestamp: int

    type: PivotType
    impact: Impact

    # What happened
    description: str
    decision: str

    alternatives: list[Alternative] = Field(default_factory=list)
    actual_outcome: str

    # Who was affected
    affected_characters: list[EventActor] = Field(default_factory=list)
    state_impact: StateImpact = Field(default_factory=StateImpact)

    # Teaching
    teaching_point: str
    expert_would_say: Optional[str] = None

    # Id of the chain this pivot triggered (lookup key, set by the chain builder)
    causal_chain_id: Optional[str] = None


# =============================================================================
# Causal chains
# =============================================================================


class CausalLink(DebriefModel):
    """One cause -> effect step in a chain."""

    from_event_id: str
    to_event_id: str
    mechanism: str  # How A caused B


class Breakpoint(DebriefModel):
    """Where a chain could have been broken."""

    after_event_id: str
    intervention: str
    alternative_chain: str


class CausalChain(DebriefModel):
    """
    A chain of causally linked events.

    Shows how one decision cascaded into consequences.
    """

    id: str
    name: str

    root_cause_event_id: str
    links: list[CausalLink] = Field(default_factory=list)
    final_effect: str

    breakpoints: list[Breakpoint] = Field(default_factory=list)

    narrative_summary: str

    def to_networkx(self):
        """Convert to NetworkX DiGraph for graph analysis."""
        import networkx as nx

        G = nx.DiGraph(chain_id=self.id, name=self.name)

        for index, link in enumerate(self.links):
            G.add_edge(
                link.from_event_id,
                link.to_event_id,
                mechanism=link.mechanism,
                order=index,
            )

        if self.root_cause_event_id not in G:
            G.add_node(self.root_cause_event_id)
        G.nodes[self.root_cause_event_id]["root_cause"] = True

        return G


# =============================================================================
# Counterfactuals
# =============================================================================


class OutcomeProjection(DebriefModel):
    """Emotional and trust outcome of one branch of a counterfactual."""

    mark_anxiety_peak: float
    lily_fear_peak: float
    trust_delta: float
    outcome: str


class InterventionSpec(DebriefModel):
    """The concrete intervention that would have changed things."""

    timestamp: int
    action: str
    exact_words: Optional[str] = None


class Counterfactual(DebriefModel):
    """A "what if" analysis for a pivot point."""

    pivot_id: str

    actual: OutcomeProjection
    alternative: OutcomeProjection

    intervention: InterventionSpec

    difference_narrative: str


# =============================================================================
# Dialogue hooks and perspectives
# =============================================================================


class DialogueHook(DebriefModel):
    """A question for the interactive debrief quiz."""

    id: str
    question: str
    options: list[str] = Field(default_factory=list)

    # -1 when the item is reflective and has no single correct answer
    correct_option_index: int

    follow_up_correct: str = ""
    follow_up_incorrect: str = ""

    allow_free_text: bool = False
    free_text_prompt: Optional[str] = None

    # Reference answer; grading free text against it is left to the caller
    ideal_free_text_response: Optional[str] = None


class EmotionalTrajectory(DebriefModel):
    start: int
    peak: int
    end: int


class KeyMoment(DebriefModel):
    timestamp: int
    description: str
    impact: str


class CharacterPerspective(DebriefModel):
    """First-person narrative from a character's point of view."""

    character: EventActor
    narrative: str = ""
    emotional_trajectory: EmotionalTrajectory
    key_moment: KeyMoment

    # Nurse only: would_work_with_again | needs_improvement | concerning
    assessment: Optional[str] = None


# =============================================================================
# Evaluation result
# =============================================================================


class Scores(DebriefModel):
    """Session scores on a 1-5 scale, rounded to one decimal."""

    clinical: float
    communication: float
    overall: float


class Trajectory(DebriefModel):
    """Cross-session progress context."""

    sessions_completed: int = 1
    improvement: str = "plateau"  # declining | plateau | improving | rapid_improvement
    rate_limiter: str = "neither"  # clinical | communication | neither


class PivotalMoment(DebriefModel):
    pivot_id: str = ""
    why_this_matters: str = ""
    the_one_insight: str = ""


class TheOneThing(DebriefModel):
    behavior: str
    exact_words: str = ""
    exact_moment: str = ""


class EvaluationResult(DebriefModel):
    """
    Complete evaluation of a simulation session.

    Perspectives and dialogue hooks are attached later by separate
    enrichment steps and are not part of this result.
    """

    session_id: str

    timeline: list[TimelineEvent] = Field(default_factory=list)
    communication_windows: list[CommunicationWindow] = Field(default_factory=list)

    pivot_points: list[PivotPoint] = Field(default_factory=list)
    causal_chains: list[CausalChain] = Field(default_factory=list)
    counterfactuals: list[Counterfactual] = Field(default_factory=list)

    pivotal_moment: PivotalMoment = Field(default_factory=PivotalMoment)
    the_one_thing: TheOneThing

    scores: Scores
    trajectory: Trajectory = Field(default_factory=Trajectory)


class SessionRecord(DebriefModel):
    """Minimal record of a finished session for cross-session trajectory."""

    id: str
    timestamp: int
    scenario: str

    outcome: str  # converted | failed | incomplete
    time_to_conversion: Optional[int] = None

    pivot_point_count: int = 0
    critical_pivots: list[str] = Field(default_factory=list)
    missed_windows: list[str] = Field(default_factory=list)

    scores: Scores
    the_one_thing: str = ""


class QuickSummary(DebriefModel):
    """Headline numbers shown before the full debrief loads."""

    overall_score: float
    clinical_score: float
    communication_score: float
    critical_issue_count: int
    success_count: int
    the_one_thing: str
    has_trauma: bool
