"""Core wizard components for CancelFlow."""

from cancelflow.core.engine import WizardEngine
from cancelflow.core.protocols import (
    CancellationData,
    CancellationReason,
    Step,
    Variant,
    WizardResult,
    WizardSession,
)
from cancelflow.core.states import WizardStateMachine

__all__ = [
    "CancellationData",
    "CancellationReason",
    "Step",
    "Variant",
    "WizardEngine",
    "WizardResult",
    "WizardSession",
    "WizardStateMachine",
]
