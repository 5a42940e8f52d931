"""
Dialogue hooks for the interactive debrief.

Hooks are quiz items built from detected pivots. Free-text answers are
not graded here; a hook only carries the ideal response for the caller
to grade against.
"""

from __future__ import annotations

from typing import Sequence

from debrief.models.evaluation import (
    CharacterPerspective,
    Counterfactual,
    DialogueHook,
    EmotionalTrajectory,
    KeyMoment,
    PivotPoint,
)
from debrief.models.timeline import EventActor

VAGAL_FOLLOW_UP = (
    "That's reasonable clinical thinking. For future reference: vagal works about 25% of "
    "the time with essentially zero risk. It's worth the 30 seconds even if you expect it to fail."
)


def _has_pivot(pivots: Sequence[PivotPoint], pivot_id: str) -> bool:
    return any(p.id == pivot_id for p in pivots)


def generate_dialogue_hooks(
    pivots: Sequence[PivotPoint],
    counterfactuals: Sequence[Counterfactual] = (),
) -> list[DialogueHook]:
    """
    Generate dialogue hooks for the interactive debrief.

    Args:
        pivots: Detected pivot points
        counterfactuals: Generated counterfactuals; the asystole one, when
            present, supplies the ideal free-text answer

    Returns:
        Hooks in presentation order
    """
    hooks = []

    if _has_pivot(pivots, "pivot_no_warning_before_asystole"):
        ideal = next(
            (
                cf.intervention.exact_words for cf in counterfactuals
                if cf.pivot_id == "pivot_no_warning_before_asystole"
            ),
            None,
        ) or (
            "Mr. Henderson, watch the monitor with me. Her heart will pause briefly - "
            "that's the medicine working. It looks scary but it's temporary."
        )

        hooks.append(DialogueHook(
            id="hook_why_dad_screamed",
            question="When the flatline appeared, dad screamed. What do you think caused that reaction?",
            options=[
                "He didn't know it was coming",
                "He's just an anxious person",
                "The flatline is scary regardless of warning",
                "I'm not sure",
            ],
            correct_option_index=0,
            follow_up_correct=(
                "Exactly. He had no mental model for what was about to happen. When he saw the "
                "flatline, his only interpretation was 'my daughter's heart stopped.' He couldn't "
                "know it was expected, temporary, and therapeutic."
            ),
            follow_up_incorrect=(
                "Actually, the key factor was lack of preparation. Even anxious parents can stay "
                "composed if they know what to expect. The flatline IS scary, but with warning, it "
                "becomes 'the expected scary thing' rather than 'sudden death.'"
            ),
            allow_free_text=False,
        ))

        hooks.append(DialogueHook(
            id="hook_what_to_say",
            question=(
                'What could you have said in the 6 seconds between "flush going in" '
                "and the flatline appearing?"
            ),
            options=[],
            correct_option_index=-1,
            allow_free_text=True,
            free_text_prompt="Type what you would say to Mr. Henderson...",
            ideal_free_text_response=ideal,
        ))

    if _has_pivot(pivots, "pivot_skipped_vagal"):
        hooks.append(DialogueHook(
            id="hook_vagal_decision",
            question=(
                "You went straight to adenosine without trying vagal maneuvers. "
                "Walk me through that decision."
            ),
            options=[
                "Vagal rarely works, wanted to move faster",
                "Forgot about vagal as an option",
                "Patient seemed too unstable for vagal",
                "Wanted to give her the best chance with medication",
            ],
            correct_option_index=-1,  # reflective, no single right answer
            follow_up_correct=VAGAL_FOLLOW_UP,
            follow_up_incorrect=VAGAL_FOLLOW_UP,
            allow_free_text=True,
        ))

    return hooks


def create_empty_perspectives() -> dict[str, CharacterPerspective]:
    """Placeholder perspectives, filled in later by the narrative service."""
    def blank(character: EventActor, start: int, peak: int, end: int, **extra) -> CharacterPerspective:
        return CharacterPerspective(
            character=character,
            narrative="",
            emotional_trajectory=EmotionalTrajectory(start=start, peak=peak, end=end),
            key_moment=KeyMoment(timestamp=0, description="", impact=""),
            **extra,
        )

    return {
        "mark": blank(EventActor.MARK, 3, 5, 4),
        "lily": blank(EventActor.LILY, 4, 5, 3),
        "nurse": blank(EventActor.NURSE, 2, 3, 2, assessment="needs_improvement"),
    }
