"""
Timeline reconstruction and communication window detection.

Turns the raw session record into:
- A unified, time-sorted event stream
- The communication windows the learner was expected to use
"""

from debrief.reconstruction.timeline import (
    reconstruct_timeline,
    detect_state_changes,
    find_silence_gaps,
    get_events_in_phase,
    calculate_emotional_trajectory,
    detect_addressed_to,
    is_explanatory,
    SnapshotIndex,
)
from debrief.reconstruction.windows import (
    identify_communication_windows,
    get_window,
    WindowTemplate,
    WINDOW_TEMPLATES,
)

__all__ = [
    "reconstruct_timeline",
    "detect_state_changes",
    "find_silence_gaps",
    "get_events_in_phase",
    "calculate_emotional_trajectory",
    "detect_addressed_to",
    "is_explanatory",
    "SnapshotIndex",
    "identify_communication_windows",
    "get_window",
    "WindowTemplate",
    "WINDOW_TEMPLATES",
]
