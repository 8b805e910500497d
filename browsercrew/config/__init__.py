"""Configuration helpers."""

from .settings import (
    GovernanceSettings,
    ModelRoutingSettings,
    ObservabilitySettings,
    Settings,
    WorkspaceSettings,
    get_settings,
)

__all__ = [
    "GovernanceSettings",
    "ModelRoutingSettings",
    "ObservabilitySettings",
    "Settings",
    "WorkspaceSettings",
    "get_settings",
]
