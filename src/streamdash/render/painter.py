"""Execute draw commands on a ``QImage`` with ``QPainter``."""

from __future__ import annotations

import logging
import re
from typing import Iterable

from PySide6.QtCore import QPointF, QRectF, Qt
from PySide6.QtGui import QBrush, QColor, QFont, QFontMetricsF, QImage, QPainter, QPainterPath, QPen

from .commands import CircleCommand, DrawCommand, PathCommand, RectCommand, TextCommand

logger = logging.getLogger(__name__)

_FONT_RE = re.compile(r"^(?:(?P<weight>bold|normal)\s+)?(?P<size>\d+(?:\.\d+)?)px\s+(?P<family>.+)$")


class SurfaceUnavailableError(RuntimeError):
    """Raised when a chart cannot obtain a drawing surface."""


def create_surface(width: int, height: int, device_pixel_ratio: float = 1.0) -> QImage:
    """
    Allocate a transparent image sized for ``width`` x ``height`` logical pixels.

    The backing store is scaled by ``device_pixel_ratio`` so command
    coordinates stay in logical pixels.
    """
    if width <= 0 or height <= 0:
        raise SurfaceUnavailableError(f"Invalid surface size {width}x{height}")
    dpr = device_pixel_ratio if device_pixel_ratio > 0 else 1.0
    image = QImage(int(round(width * dpr)), int(round(height * dpr)), QImage.Format_ARGB32_Premultiplied)
    if image.isNull():
        raise SurfaceUnavailableError(f"Could not allocate a {width}x{height} surface")
    image.setDevicePixelRatio(dpr)
    image.fill(Qt.transparent)
    return image


def begin_painter(image: QImage) -> QPainter:
    painter = QPainter()
    if not painter.begin(image):
        raise SurfaceUnavailableError("QPainter could not begin on the chart surface")
    painter.setRenderHint(QPainter.Antialiasing, True)
    painter.setRenderHint(QPainter.TextAntialiasing, True)
    return painter


def render_to_image(image: QImage, commands: Iterable[DrawCommand], width: float, height: float) -> None:
    painter = begin_painter(image)
    try:
        execute_commands(painter, commands, width, height)
    finally:
        painter.end()


def execute_commands(painter: QPainter, commands: Iterable[DrawCommand], width: float, height: float) -> None:
    """Clear the ``width`` x ``height`` area, then draw each command in order."""
    painter.save()
    painter.setCompositionMode(QPainter.CompositionMode_Clear)
    painter.fillRect(QRectF(0.0, 0.0, width, height), Qt.transparent)
    painter.restore()

    for command in commands:
        if isinstance(command, PathCommand):
            _draw_path(painter, command)
        elif isinstance(command, CircleCommand):
            _draw_circle(painter, command)
        elif isinstance(command, TextCommand):
            _draw_text(painter, command)
        elif isinstance(command, RectCommand):
            painter.fillRect(
                QRectF(command.x, command.y, command.width, command.height),
                QColor(command.fill_style),
            )
        else:
            raise TypeError(f"Unsupported draw command {command!r}")


def parse_font(spec: str) -> QFont:
    """Translate a ``"12px Arial"`` / ``"bold 12px Arial"`` font string."""
    font = QFont()
    match = _FONT_RE.match(spec.strip())
    if match is None:
        logger.debug("Unrecognised font spec %r; using default font", spec)
        return font
    font.setFamily(match.group("family"))
    font.setPixelSize(max(1, int(float(match.group("size")))))
    if match.group("weight") == "bold":
        font.setBold(True)
    return font


def _draw_path(painter: QPainter, command: PathCommand) -> None:
    if len(command.points) < 2:
        return
    path = QPainterPath(QPointF(*command.points[0]))
    for x, y in command.points[1:]:
        path.lineTo(x, y)
    pen = QPen(QColor(command.stroke_style))
    pen.setWidthF(command.line_width)
    painter.setPen(pen)
    painter.setBrush(Qt.NoBrush)
    painter.drawPath(path)


def _draw_circle(painter: QPainter, command: CircleCommand) -> None:
    if command.stroke_style is not None and command.line_width > 0:
        pen = QPen(QColor(command.stroke_style))
        pen.setWidthF(command.line_width)
        painter.setPen(pen)
    else:
        painter.setPen(Qt.NoPen)
    painter.setBrush(QBrush(QColor(command.fill_style)))
    painter.drawEllipse(QPointF(command.x, command.y), command.radius, command.radius)


def _draw_text(painter: QPainter, command: TextCommand) -> None:
    font = parse_font(command.font)
    painter.setFont(font)
    painter.setPen(QColor(command.fill_style))
    metrics = QFontMetricsF(font)
    x = command.x
    if command.align != "left":
        advance = metrics.horizontalAdvance(command.text)
        x -= advance if command.align == "right" else advance / 2.0
    y = command.y
    if command.baseline == "middle":
        y += (metrics.ascent() - metrics.descent()) / 2.0
    elif command.baseline == "top":
        y += metrics.ascent()
    painter.drawText(QPointF(x, y), command.text)
