"""
Data Models Layer.

This package contains the Pydantic configuration models and the small
dataclasses passed between the maintenance activities.
"""

from .config import AppConfig, GuiSettings, SourceSettings, SubscriptionItem
from .engine import ENGINE_SPECS, EngineSpec, EngineType
from .results import (
    ArtifactBatch,
    ArtifactOutcome,
    ArtifactStatus,
    DownloadedArtifact,
    SubscriptionOutcome,
    UpdateResult,
)

__all__ = [
    "AppConfig",
    "ArtifactBatch",
    "ArtifactOutcome",
    "ArtifactStatus",
    "DownloadedArtifact",
    "ENGINE_SPECS",
    "EngineSpec",
    "EngineType",
    "GuiSettings",
    "SourceSettings",
    "SubscriptionItem",
    "SubscriptionOutcome",
    "UpdateResult",
]
