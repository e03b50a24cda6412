"""Render module for FI projection output display."""

from render.renderers import (
    BaseRenderer,
    ProjectionRenderer,
    SummaryRenderer,
    AchievableFIRenderer,
    GoalGuidanceRenderer,
    format_multiline_headers,
    RENDERER_REGISTRY,
)

__all__ = [
    'BaseRenderer',
    'ProjectionRenderer',
    'SummaryRenderer',
    'AchievableFIRenderer',
    'GoalGuidanceRenderer',
    'format_multiline_headers',
    'RENDERER_REGISTRY',
]
