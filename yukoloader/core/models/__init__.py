"""
Domain models — Pydantic types for the bootstrapper.

All models are re-exported here for convenient access:

    from yukoloader.core.models import Action, Receipt, Stage, BootstrapSettings
"""

from yukoloader.core.models.action import Action, Receipt
from yukoloader.core.models.settings import BootstrapSettings
from yukoloader.core.models.stage import (
    PipelineReport,
    Probe,
    Stage,
    StageOutcome,
    StageResult,
)

__all__ = [
    # action.py
    "Action",
    # settings.py
    "BootstrapSettings",
    # stage.py
    "PipelineReport",
    "Probe",
    "Receipt",
    "Stage",
    "StageOutcome",
    "StageResult",
]
