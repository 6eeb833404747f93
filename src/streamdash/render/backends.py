"""Render backends: paint on the GUI thread, or hand the surface to a worker.

Both backends take the same command lists and expose the last finished
frame through :meth:`image`. Hosts listen to ``frame_ready`` and repaint.
"""

from __future__ import annotations

import logging
from typing import Any, Optional, Protocol, Sequence

from PySide6.QtCore import QObject, QThread, Signal, Slot
from PySide6.QtGui import QImage

from ..tools.debug import time_block
from .commands import DrawCommand, commands_from_messages, commands_to_messages
from .painter import SurfaceUnavailableError, create_surface, render_to_image

logger = logging.getLogger(__name__)


class RenderBackend(Protocol):
    using_offscreen: bool

    def submit(self, commands: Sequence[DrawCommand]) -> None: ...

    def image(self) -> Optional[QImage]: ...

    def resize(self, width: int, height: int) -> None: ...

    def close(self) -> None: ...


class DirectRenderBackend(QObject):
    """Paints synchronously into an image owned by the GUI thread."""

    frame_ready = Signal()

    using_offscreen = False

    def __init__(self, width: int, height: int, device_pixel_ratio: float = 1.0, parent: QObject | None = None) -> None:
        super().__init__(parent)
        self._width = width
        self._height = height
        self._dpr = device_pixel_ratio
        self._image = create_surface(width, height, device_pixel_ratio)
        self.last_render_ms: Optional[float] = None

    def submit(self, commands: Sequence[DrawCommand]) -> None:
        with time_block(f"render[direct, {len(commands)} commands]") as timing:
            render_to_image(self._image, commands, self._width, self._height)
        self.last_render_ms = timing.elapsed_ms
        self.frame_ready.emit()

    def image(self) -> Optional[QImage]:
        return self._image

    def resize(self, width: int, height: int) -> None:
        if (width, height) == (self._width, self._height):
            return
        self._image = create_surface(width, height, self._dpr)
        self._width = width
        self._height = height

    def close(self) -> None:
        pass


class OffscreenRenderWorker(QObject):
    """
    Lives in a worker thread and owns the chart surface there.

    An init message ``{width, height, device_pixel_ratio, surface}`` hands
    over a surface allocated by the GUI thread; every ``{"commands": [...]}``
    message repaints it and emits a copy. A message that does not decode is
    logged and the previous frame stays on screen.
    """

    frame_ready = Signal(QImage, float)

    def __init__(self) -> None:
        super().__init__()
        self._image: Optional[QImage] = None
        self._width = 0
        self._height = 0

    @Slot(dict)
    def initialize(self, message: dict[str, Any]) -> None:
        self._image = message["surface"]
        self._width = int(message["width"])
        self._height = int(message["height"])

    @Slot(dict)
    def render(self, message: dict[str, Any]) -> None:
        if self._image is None:
            return
        try:
            commands = commands_from_messages(message.get("commands", []))
        except (KeyError, TypeError, ValueError):
            logger.exception("Dropping undecodable render message")
            return
        with time_block(f"render[offscreen, {len(commands)} commands]") as timing:
            render_to_image(self._image, commands, self._width, self._height)
        self.frame_ready.emit(self._image.copy(), timing.elapsed_ms)


class OffscreenRenderBackend(QObject):
    """
    GUI-thread handle on an :class:`OffscreenRenderWorker`.

    Surfaces are allocated here, before any message is posted, so a missing
    surface raises :class:`SurfaceUnavailableError` from the constructor (or
    from :meth:`resize`) rather than failing silently on the worker.
    """

    frame_ready = Signal()
    _init_request = Signal(dict)
    _render_request = Signal(dict)

    using_offscreen = True

    def __init__(self, width: int, height: int, device_pixel_ratio: float = 1.0, parent: QObject | None = None) -> None:
        super().__init__(parent)
        self._dpr = device_pixel_ratio
        self._image: Optional[QImage] = None
        self.last_render_ms: Optional[float] = None
        surface = create_surface(width, height, device_pixel_ratio)

        self._thread = QThread(self)
        self._thread.setObjectName("StreamDashRender")
        self._worker = OffscreenRenderWorker()
        self._worker.moveToThread(self._thread)
        self._thread.finished.connect(self._worker.deleteLater)

        self._init_request.connect(self._worker.initialize)
        self._render_request.connect(self._worker.render)
        self._worker.frame_ready.connect(self._on_frame)

        self._thread.start()
        if not self._thread.isRunning():
            raise RuntimeError("Offscreen render thread failed to start")
        self._transfer(surface, width, height)

    def _transfer(self, surface: QImage, width: int, height: int) -> None:
        self._init_request.emit(
            {"width": width, "height": height, "device_pixel_ratio": self._dpr, "surface": surface}
        )

    def submit(self, commands: Sequence[DrawCommand]) -> None:
        self._render_request.emit({"commands": commands_to_messages(commands)})

    def image(self) -> Optional[QImage]:
        return self._image

    def resize(self, width: int, height: int) -> None:
        self._transfer(create_surface(width, height, self._dpr), width, height)

    def close(self) -> None:
        if not self._thread.isRunning():
            return
        self._thread.quit()
        if not self._thread.wait(2000):
            logger.warning("Render worker did not stop within 2000 ms")

    @Slot(QImage, float)
    def _on_frame(self, image: QImage, elapsed_ms: float) -> None:
        self._image = image
        self.last_render_ms = elapsed_ms
        self.frame_ready.emit()


def offscreen_supported() -> bool:
    return QThread.idealThreadCount() > 1


def create_backend(
    width: int,
    height: int,
    device_pixel_ratio: float = 1.0,
    use_offscreen: bool = True,
    parent: QObject | None = None,
) -> RenderBackend:
    """
    Build the render backend for one chart.

    Offscreen mode silently degrades to direct mode when the machine offers a
    single thread or the worker thread cannot start. Either mode raises
    :class:`SurfaceUnavailableError` if no surface can be allocated.
    """
    if use_offscreen:
        if not offscreen_supported():
            logger.info("Offscreen rendering unavailable on a single core; using main-thread rendering")
        else:
            try:
                return OffscreenRenderBackend(width, height, device_pixel_ratio, parent)
            except SurfaceUnavailableError:
                raise
            except RuntimeError as exc:
                logger.warning("Falling back to main-thread rendering: %s", exc)
    return DirectRenderBackend(width, height, device_pixel_ratio, parent)
