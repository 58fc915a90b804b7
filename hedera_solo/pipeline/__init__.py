"""Pipeline of phases run by every command.

A command is an ordered list of `Phase` objects executed by a `Pipeline`.
Phases may contain sequential or concurrent sub-phases and a skip predicate,
so the control flow of a command is plain data.
"""

from .deadline import run_with_deadline
from .phase import Mode, Phase
from .readiness import wait_for_pods, wait_for_pods_ready
from .runner import Pipeline

__all__ = [
    "Mode",
    "Phase",
    "Pipeline",
    "run_with_deadline",
    "wait_for_pods",
    "wait_for_pods_ready",
]
