"""The fixed library of counterfactual models, keyed by pivot id."""

from debrief.counterfactual.models import (
    ActualModel,
    AlternativeModel,
    CounterfactualModel,
    InterventionTemplate,
    constant,
    peak_anxiety,
    peak_fear,
)
from debrief.models.snapshot import SimPhase


NO_WARNING_BEFORE_ASYSTOLE = CounterfactualModel(
    pivot_id="pivot_no_warning_before_asystole",
    actual=ActualModel(
        mark_anxiety_peak=peak_anxiety(floor=3),
        lily_fear_peak=peak_fear(floor=4),
        trust_delta=-2,
        outcome="Dad blindsided by flatline. Screamed. Lily terrified. Trust damaged.",
    ),
    alternative=AlternativeModel(
        mark_anxiety_peak=4,  # still anxious, not panicked
        lily_fear_peak=4,     # dad doesn't scream, so no spike
        trust_delta=0,
        outcome="Dad prepared for flatline. Tense but silent. Lily protected. Trust maintained.",
    ),
    intervention=InterventionTemplate(
        timing="6 seconds before asystole onset",
        action="Warn dad about expected asystole",
        exact_words=(
            "Mr. Henderson, watch the monitor with me. Her heart will pause briefly - "
            "that's the medicine working. It looks scary but it's temporary."
        ),
    ),
    difference_narrative="""**What actually happened:**
Dad's anxiety: 3 → 5 (panic spike)
Lily's fear: 4 → 5 (heard dad scream)
Family trust: Decreased significantly

**What would have happened with warning:**
Dad's anxiety: 3 → 4 (controlled tension)
Lily's fear: 4 → 4 (protected from dad's reaction)
Family trust: Maintained

**The difference:** A 10-second warning transforms a traumatic experience into a stressful but manageable one.""",
)


SILENCE_DURING_ASYSTOLE = CounterfactualModel(
    pivot_id="pivot_silence_during_asystole",
    actual=ActualModel(
        mark_anxiety_peak=peak_anxiety(floor=4, phase=SimPhase.ASYSTOLE),
        lily_fear_peak=peak_fear(floor=4, phase=SimPhase.ASYSTOLE),
        trust_delta=-1,
        outcome="Family isolated during flatline. Doctor seemed as uncertain as they were.",
    ),
    alternative=AlternativeModel(
        mark_anxiety_peak=4,
        lily_fear_peak=4,
        trust_delta=0,
        outcome="Ongoing narration gave family something to hold onto. Doctor appeared confident.",
    ),
    intervention=InterventionTemplate(
        timing="Throughout asystole period",
        action="Provide ongoing reassurance",
        exact_words=(
            "This is exactly what we expected. Watch with me - her heart is resetting. "
            "Should come back any second now..."
        ),
    ),
    difference_narrative="""**What actually happened:**
Silence during the flatline left family alone with their terror.
They remember: "The doctor didn't say anything - maybe they didn't know what was happening."

**What would have happened with narration:**
Ongoing commentary: "This is expected... watching for rhythm... any second..."
Family has your voice as an anchor through the scariest moment.

**The difference:** Your voice is the lifeline. Silence = uncertainty.""",
)


SKIPPED_VAGAL = CounterfactualModel(
    pivot_id="pivot_skipped_vagal",
    actual=ActualModel(
        mark_anxiety_peak=constant(5),
        lily_fear_peak=constant(5),
        trust_delta=0,
        outcome="Proceeded directly to medication. Vagal never attempted.",
    ),
    alternative=AlternativeModel(
        mark_anxiety_peak=4,
        lily_fear_peak=4,
        trust_delta=0,
        outcome=(
            "25% chance: converts without medication. "
            "75% chance: vagal fails, proceed to adenosine anyway."
        ),
    ),
    intervention=InterventionTemplate(
        timing="Before ordering adenosine",
        action="Attempt vagal maneuvers first",
        exact_words=(
            "Let's try something simple first. Nurse, can we get some ice? Lily, I'm going to "
            "put something cold on your face - it might help your heart slow down."
        ),
    ),
    difference_narrative="""**What actually happened:**
Went straight to adenosine (60% success, causes scary asystole)

**What would have happened with vagal first:**
25% chance: Converts with ice to face. No medications needed.
75% chance: Vagal fails, but you lose only 30 seconds before adenosine anyway.

**The calculation:** 30 seconds of low-risk attempt vs. 1-in-4 chance of avoiding medication entirely.

**Guideline practice:** Vagal first for stable SVT.""",
)


NO_CARDIOVERSION_WARNING = CounterfactualModel(
    pivot_id="pivot_no_cardioversion_warning",
    actual=ActualModel(
        mark_anxiety_peak=constant(5),
        lily_fear_peak=constant(3),  # sedated
        trust_delta=-2,
        outcome="Dad watched child shocked without preparation. Looked like violence.",
    ),
    alternative=AlternativeModel(
        mark_anxiety_peak=4,
        lily_fear_peak=3,
        trust_delta=0,
        outcome="Dad understood the body movement was electrical, not pain. Trusted the process.",
    ),
    intervention=InterventionTemplate(
        timing="Before delivering shock",
        action="Explain cardioversion",
        exact_words=(
            "Mr. Henderson, we're going to reset her heart with a small electrical pulse. "
            "She's sedated so she won't feel it. You'll see her body jump - "
            "that's the electricity, not pain."
        ),
    ),
    difference_narrative="""**What actually happened:**
Dad saw you shock his daughter
Her body convulsed from the electricity
Without context, this looked like you were hurting her

**What would have happened with explanation:**
Dad knows: sedated = no pain
Dad knows: body jump = expected electrical response
Dad's interpretation: "They're helping her" not "They're hurting her"

**The difference:** Context transforms apparent violence into visible healing.""",
)


SIGNIFICANT_UNDERDOSE = CounterfactualModel(
    pivot_id="pivot_significant_underdose",
    actual=ActualModel(
        mark_anxiety_peak=constant(5),
        lily_fear_peak=constant(5),
        trust_delta=-1,
        outcome="Underdosed adenosine failed. Family experienced terrifying asystole with no benefit.",
    ),
    alternative=AlternativeModel(
        mark_anxiety_peak=5,  # asystole is still scary
        lily_fear_peak=5,
        trust_delta=0,
        outcome=(
            "Correct dose: 60% chance of success on first try. "
            "Family experiences asystole once, with purpose."
        ),
    ),
    intervention=InterventionTemplate(
        timing="When calculating dose",
        action="Use correct weight-based dosing",
        exact_words="Adenosine 1.85mg - that's 0.1 mg/kg for 18.5kg. Rapid push with flush.",
    ),
    difference_narrative="""**What actually happened:**
Underdosed → asystole → back to SVT → need another attempt
Family watched the flatline TWICE for one conversion

**What would have happened with correct dose:**
Correct dose → asystole → 60% convert on first try
If it works: one scary moment instead of two

**The math:** Each underdosed attempt means another round of terror for the family.""",
)


COUNTERFACTUAL_MODELS: dict[str, CounterfactualModel] = {
    model.pivot_id: model
    for model in (
        NO_WARNING_BEFORE_ASYSTOLE,
        SILENCE_DURING_ASYSTOLE,
        SKIPPED_VAGAL,
        NO_CARDIOVERSION_WARNING,
        SIGNIFICANT_UNDERDOSE,
    )
}
