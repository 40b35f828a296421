"""Signal detectors.

Each detector is a pure function ``(events, preferences, workload, signal,
*, thresholds) -> list[OptimizationSuggestion]`` that can run in parallel with
the others against the same snapshot.
"""

from collections.abc import Callable

from lifeos.optimization.detectors.buffer import detect_buffer_deficiency
from lifeos.optimization.detectors.burnout import detect_burnout_risk
from lifeos.optimization.detectors.energy import detect_energy_misalignment
from lifeos.optimization.detectors.focus import detect_focus_violations
from lifeos.optimization.detectors.thresholds import DetectorThresholds
from lifeos.optimization.detectors.travel import TravelSignals, detect_travel_disruption

Detector = Callable[..., list]

DETECTORS: dict[str, Detector] = {
    "energy": detect_energy_misalignment,
    "buffer": detect_buffer_deficiency,
    "focus": detect_focus_violations,
    "burnout": detect_burnout_risk,
    "travel": detect_travel_disruption,
}

__all__ = [
    "DETECTORS",
    "Detector",
    "DetectorThresholds",
    "TravelSignals",
    "detect_buffer_deficiency",
    "detect_burnout_risk",
    "detect_energy_misalignment",
    "detect_focus_violations",
    "detect_travel_disruption",
]
