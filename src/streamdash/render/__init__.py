"""Chart rendering: draw commands, QPainter execution and render backends."""

from .backends import DirectRenderBackend, OffscreenRenderBackend, RenderBackend, create_backend
from .charts import ChartFrame, Padding, sample_indices
from .commands import (
    CircleCommand,
    DrawCommand,
    PathCommand,
    RectCommand,
    TextCommand,
    command_from_message,
    command_to_message,
)
from .painter import SurfaceUnavailableError, create_surface, execute_commands
from .pipeline import ChartKind, RenderPipeline

__all__ = [
    "ChartFrame",
    "ChartKind",
    "CircleCommand",
    "DirectRenderBackend",
    "DrawCommand",
    "OffscreenRenderBackend",
    "Padding",
    "PathCommand",
    "RectCommand",
    "RenderBackend",
    "RenderPipeline",
    "SurfaceUnavailableError",
    "TextCommand",
    "command_from_message",
    "command_to_message",
    "create_backend",
    "create_surface",
    "execute_commands",
    "sample_indices",
]
