"""Serializable draw commands shared by the direct and offscreen backends.

Charts only ever produce these records; nothing in a chart policy touches a
``QPainter``. That keeps the same command list valid on the GUI thread and
inside the offscreen render worker.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping, Optional, Sequence, Union

Point = tuple[float, float]


@dataclass(frozen=True, slots=True)
class PathCommand:
    points: tuple[Point, ...]
    stroke_style: str
    line_width: float = 1.0


@dataclass(frozen=True, slots=True)
class CircleCommand:
    x: float
    y: float
    radius: float
    fill_style: str
    stroke_style: Optional[str] = None
    line_width: float = 0.0


@dataclass(frozen=True, slots=True)
class TextCommand:
    text: str
    x: float
    y: float
    font: str
    fill_style: str
    align: str = "left"
    baseline: str = "alphabetic"


@dataclass(frozen=True, slots=True)
class RectCommand:
    x: float
    y: float
    width: float
    height: float
    fill_style: str


DrawCommand = Union[PathCommand, CircleCommand, TextCommand, RectCommand]

TEXT_ALIGNMENTS = ("left", "center", "right")
TEXT_BASELINES = ("alphabetic", "middle", "top")


def command_to_message(command: DrawCommand) -> dict[str, Any]:
    """Return the tagged mapping sent to the offscreen worker."""
    if isinstance(command, PathCommand):
        return {
            "type": "path",
            "points": [[x, y] for x, y in command.points],
            "strokeStyle": command.stroke_style,
            "lineWidth": command.line_width,
        }
    if isinstance(command, CircleCommand):
        message: dict[str, Any] = {
            "type": "circle",
            "x": command.x,
            "y": command.y,
            "radius": command.radius,
            "fillStyle": command.fill_style,
        }
        if command.stroke_style is not None:
            message["strokeStyle"] = command.stroke_style
            message["lineWidth"] = command.line_width
        return message
    if isinstance(command, TextCommand):
        return {
            "type": "text",
            "text": command.text,
            "x": command.x,
            "y": command.y,
            "font": command.font,
            "fillStyle": command.fill_style,
            "align": command.align,
            "baseline": command.baseline,
        }
    if isinstance(command, RectCommand):
        return {
            "type": "rect",
            "x": command.x,
            "y": command.y,
            "width": command.width,
            "height": command.height,
            "fillStyle": command.fill_style,
        }
    raise TypeError(f"Unsupported draw command {command!r}")


def command_from_message(message: Mapping[str, Any]) -> DrawCommand:
    kind = message.get("type")
    if kind == "path":
        return PathCommand(
            points=tuple((float(x), float(y)) for x, y in message["points"]),
            stroke_style=str(message["strokeStyle"]),
            line_width=float(message.get("lineWidth", 1.0)),
        )
    if kind == "circle":
        stroke = message.get("strokeStyle")
        return CircleCommand(
            x=float(message["x"]),
            y=float(message["y"]),
            radius=float(message["radius"]),
            fill_style=str(message["fillStyle"]),
            stroke_style=None if stroke is None else str(stroke),
            line_width=float(message.get("lineWidth", 0.0)),
        )
    if kind == "text":
        align = str(message.get("align", "left"))
        if align not in TEXT_ALIGNMENTS:
            raise ValueError(f"Unknown text alignment {align!r}")
        baseline = str(message.get("baseline", "alphabetic"))
        if baseline not in TEXT_BASELINES:
            raise ValueError(f"Unknown text baseline {baseline!r}")
        return TextCommand(
            text=str(message["text"]),
            x=float(message["x"]),
            y=float(message["y"]),
            font=str(message["font"]),
            fill_style=str(message["fillStyle"]),
            align=align,
            baseline=baseline,
        )
    if kind == "rect":
        return RectCommand(
            x=float(message["x"]),
            y=float(message["y"]),
            width=float(message["width"]),
            height=float(message["height"]),
            fill_style=str(message["fillStyle"]),
        )
    raise ValueError(f"Unknown draw command type {kind!r}")


def commands_to_messages(commands: Sequence[DrawCommand]) -> list[dict[str, Any]]:
    return [command_to_message(c) for c in commands]


def commands_from_messages(messages: Sequence[Mapping[str, Any]]) -> list[DrawCommand]:
    return [command_from_message(m) for m in messages]
