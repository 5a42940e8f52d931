"""
Causal chain templates.

Each template narrates how one detected pivot cascades into
consequences. Templates are keyed by the pivot that triggers them.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Optional, Sequence

from debrief.models.evaluation import PivotPoint
from debrief.models.snapshot import SimPhase
from debrief.models.timeline import EventActor, EventType, StateTrigger, TimelineEvent


@dataclass(frozen=True)
class LinkTemplate:
    cause: str
    effect: str
    mechanism: str  # How the cause produces the effect


@dataclass(frozen=True)
class BreakpointTemplate:
    description: str
    intervention: str
    alternative_outcome: str


# (timeline, trigger pivot) -> real events anchoring the chain, in link order
EventScanner = Callable[[Sequence[TimelineEvent], PivotPoint], list[TimelineEvent]]


@dataclass(frozen=True)
class ChainTemplate:
    id: str
    name: str
    trigger_pivot_id: str
    links: tuple[LinkTemplate, ...]
    breakpoint: BreakpointTemplate
    narrative: str
    scan: Optional[EventScanner] = None

    @property
    def final_effect(self) -> str:
        return self.links[-1].effect


SCREAM_KEYWORDS = ("FLAT", "HEART", "STOP")


def scan_asystole_trauma(timeline: Sequence[TimelineEvent], pivot: PivotPoint) -> list[TimelineEvent]:
    """
    Locate the asystole onset, dad's scream and the anxiety spike.

    Only events at or after the pivot are considered. Any of the three
    may be missing. The onset must be a transition into asystole, so a
    spike recorded while already in asystole never fills two slots.
    """
    after_pivot = [e for e in timeline if e.timestamp >= pivot.timestamp]
    found = []

    onset = next(
        (
            e for e in after_pivot
            if e.type == EventType.STATE_CHANGE
            and e.state_before.phase != SimPhase.ASYSTOLE
            and e.state_after.phase == SimPhase.ASYSTOLE
        ),
        None,
    )
    if onset is not None:
        found.append(onset)

    scream = next(
        (
            e for e in after_pivot
            if e.actor == EventActor.MARK
            and any(word in e.content.upper() for word in SCREAM_KEYWORDS)
        ),
        None,
    )
    if scream is not None:
        found.append(scream)

    spike = next(
        (
            e for e in after_pivot
            if e.type == EventType.STATE_CHANGE
            and e.metadata.get("trigger") == StateTrigger.ANXIETY_SPIKE.value
        ),
        None,
    )
    if spike is not None:
        found.append(spike)

    return found


CHAIN_TEMPLATES: tuple[ChainTemplate, ...] = (
    ChainTemplate(
        id="asystole_trauma_cascade",
        name="Asystole Trauma Cascade",
        trigger_pivot_id="pivot_no_warning_before_asystole",
        links=(
            LinkTemplate(
                cause="No warning given before adenosine",
                effect="Dad sees flatline without context",
                mechanism="Dad has no mental model for expected asystole",
            ),
            LinkTemplate(
                cause="Dad sees flatline without context",
                effect="Dad interprets as cardiac arrest",
                mechanism='Only framework available is "flatline = death"',
            ),
            LinkTemplate(
                cause="Dad interprets as cardiac arrest",
                effect="Dad panics and screams",
                mechanism="Belief that daughter is dying triggers fight-or-flight",
            ),
            LinkTemplate(
                cause="Dad panics and screams",
                effect="Lily hears father's terror",
                mechanism="Screaming audible to child despite illness",
            ),
            LinkTemplate(
                cause="Lily hears father's terror",
                effect="Lily's fear spikes to maximum",
                mechanism="Child mirrors parent's emotional state",
            ),
            LinkTemplate(
                cause="Lily's fear spikes",
                effect="Potential lasting medical trauma",
                mechanism="Terrifying medical experience at age 5 can create healthcare avoidance",
            ),
        ),
        breakpoint=BreakpointTemplate(
            description="Before adenosine takes effect",
            intervention="Warn dad: \"Her heart will pause briefly - that's the medicine working\"",
            alternative_outcome=(
                "Dad prepared → stays tense but silent → Lily unaware → "
                "fear stays at 4 → no trauma"
            ),
        ),
        narrative="""Your decision not to warn Mr. Henderson before adenosine created a cascade:

1. When asystole appeared, he had no framework to understand it
2. His scream ("HER HEART STOPPED!") was audible to Lily
3. Lily's fear spiked to 5/5 at the moment she most needed to feel safe
4. Dad's trust decreased (he learned critical info from the monitor, not from you)

**The 10-second intervention that would have changed everything:**
"Mr. Henderson, watch the monitor with me. Her heart will pause briefly - that's the medicine working.\"""",
        scan=scan_asystole_trauma,
    ),
    ChainTemplate(
        id="dose_error_chain",
        name="Underdose Failure Chain",
        trigger_pivot_id="pivot_significant_underdose",
        links=(
            LinkTemplate(
                cause="Underdosed adenosine given",
                effect="Insufficient AV node blockade",
                mechanism="Adenosine needs threshold concentration to terminate re-entry",
            ),
            LinkTemplate(
                cause="Insufficient AV node blockade",
                effect="Transient asystole but no conversion",
                mechanism="Re-entry circuit survives the brief pause",
            ),
            LinkTemplate(
                cause="Transient asystole but no conversion",
                effect="Family witnesses scary flatline with no benefit",
                mechanism="All the terror, none of the therapeutic effect",
            ),
            LinkTemplate(
                cause="Failed conversion",
                effect="Need for additional interventions",
                mechanism="Must try higher dose or move to cardioversion",
            ),
        ),
        breakpoint=BreakpointTemplate(
            description="At dose calculation",
            intervention="Calculate 0.1 mg/kg (first dose) or 0.2 mg/kg (second dose)",
            alternative_outcome="Correct dose → optimal chance of conversion → fewer interventions needed",
        ),
        narrative="""The underdosed adenosine created unnecessary suffering:

1. The dose was too low to terminate the re-entry circuit
2. Family watched the terrifying asystole period
3. Heart returned to SVT - all that fear for nothing
4. Now need additional intervention with additional risk

**Correct dosing:** 0.1 mg/kg first dose, 0.2 mg/kg second dose. For 18.5kg: 1.85mg then 3.7mg.""",
    ),
    ChainTemplate(
        id="communication_void_chain",
        name="Communication Void Chain",
        trigger_pivot_id="pivot_silence_during_asystole",
        links=(
            LinkTemplate(
                cause="No communication during asystole",
                effect="Family left alone with terror",
                mechanism="Silence interpreted as \"doctor doesn't know what's happening\"",
            ),
            LinkTemplate(
                cause="Family left alone with terror",
                effect="Anxiety peaks and sustains",
                mechanism="No new information to process, fear loops",
            ),
            LinkTemplate(
                cause="Anxiety peaks and sustains",
                effect="Trust in medical team erodes",
                mechanism="\"They didn't seem to know what was going on\"",
            ),
        ),
        breakpoint=BreakpointTemplate(
            description="During asystole period",
            intervention="Narrate: \"This is expected, watch with me, should come back any second...\"",
            alternative_outcome="Ongoing narration → family has something to hold onto → anxiety manageable",
        ),
        narrative="""During the asystole, your silence left the family isolated:

1. With no words from you, they assumed you were as scared as they were
2. Their anxiety peaked and stayed high with no relief
3. Even after conversion, they remember: "The doctor didn't say anything"

**Simple fix:** Narrate during the flatline. Even just "This is expected... watching..." helps enormously.""",
    ),
    ChainTemplate(
        id="cardioversion_shock_chain",
        name="Cardioversion Without Warning Chain",
        trigger_pivot_id="pivot_no_cardioversion_warning",
        links=(
            LinkTemplate(
                cause="No warning before cardioversion",
                effect="Dad sees child's body convulse",
                mechanism="Electrical shock causes visible muscle contraction",
            ),
            LinkTemplate(
                cause="Dad sees body convulse",
                effect="Dad interprets as violence/harm",
                mechanism="Without context, shocking a child looks like assault",
            ),
            LinkTemplate(
                cause="Dad interprets as violence",
                effect="Trust destroyed, potential interference",
                mechanism="Protective parent instinct to stop perceived harm",
            ),
        ),
        breakpoint=BreakpointTemplate(
            description="Before delivering shock",
            intervention=(
                "Explain: \"She's sedated, won't feel it. "
                "You'll see her body jump - that's normal.\""
            ),
            alternative_outcome="Dad prepared → understands body movement → stays out of way → trust preserved",
        ),
        narrative="""Cardioversion without warning looked like violence to Mr. Henderson:

1. He saw you shock his sedated daughter
2. Her body jumped from the electricity
3. Without warning, this looked like you were hurting her
4. His trust in you is now severely damaged

**Always explain:** "She's sedated, won't feel anything. Her body will jump when we deliver the pulse - that's the electricity, not pain.\"""",
    ),
)
