"""Chart widgets: paint the backend's frame and forward pan/zoom input."""

from __future__ import annotations

import logging
from typing import Optional, Sequence

from PySide6.QtCore import QObject, QRectF, Qt, QTimer, Signal, Slot
from PySide6.QtGui import QColor, QMouseEvent, QPainter, QPaintEvent, QResizeEvent, QWheelEvent
from PySide6.QtWidgets import QSizePolicy, QWidget

from ..config.runtime import DashboardConfig
from ..core.models import Observation, ViewBounds
from ..core.viewport import ViewportController
from ..render.backends import create_backend
from ..render.pipeline import ChartKind, RenderPipeline
from ..tools.debug import time_block

logger = logging.getLogger(__name__)


class FrameClock(QObject):
    """~60 Hz precise timer that drives chart rendering and the sampler."""

    tick = Signal()

    def __init__(self, interval_ms: int = 16, parent: QObject | None = None) -> None:
        super().__init__(parent)
        self._timer = QTimer(self)
        self._timer.setTimerType(Qt.PreciseTimer)
        self._timer.setInterval(max(1, int(interval_ms)))
        self._timer.timeout.connect(self.tick)

    @property
    def interval_ms(self) -> int:
        return self._timer.interval()

    def is_active(self) -> bool:
        return self._timer.isActive()

    def start(self) -> None:
        self._timer.start()

    def stop(self) -> None:
        self._timer.stop()


class ChartWidget(QWidget):
    """
    One chart surface.

    The widget keeps the latest summary series and only rebuilds commands on
    a frame tick after the series or the bounds changed. Dragging pans,
    the wheel zooms around the cursor and a double click drops the pinned
    bounds so the chart follows the stream again.
    """

    bounds_changed = Signal(object)  # ViewBounds

    def __init__(
        self,
        kind: ChartKind,
        config: DashboardConfig | None = None,
        *,
        use_offscreen: Optional[bool] = None,
        parent: QWidget | None = None,
    ) -> None:
        super().__init__(parent)
        cfg = config or DashboardConfig()
        offscreen = cfg.use_offscreen if use_offscreen is None else use_offscreen

        self.setMinimumSize(cfg.chart_width // 2, cfg.chart_height // 2)
        self.setSizePolicy(QSizePolicy.Expanding, QSizePolicy.Expanding)
        self.setMouseTracking(False)

        backend = create_backend(
            cfg.chart_width,
            cfg.chart_height,
            cfg.device_pixel_ratio,
            offscreen,
            parent=self,
        )
        backend.frame_ready.connect(self.update)
        self._pipeline = RenderPipeline(
            kind,
            backend,
            cfg.chart_width,
            cfg.chart_height,
            line_max_points=cfg.line_max_points,
            bar_max_bins=cfg.bar_max_bins,
            scatter_max_points=cfg.scatter_max_points,
            heatmap_cols=cfg.heatmap_cols,
            heatmap_rows=cfg.heatmap_rows,
        )
        self._viewport = ViewportController(self._on_bounds_changed)
        self._series: list[Observation] = []
        self._dirty = True
        self.resize(cfg.chart_width, cfg.chart_height)

    # ----------------------------------------------------------------- state
    @property
    def kind(self) -> ChartKind:
        return self._pipeline.kind

    @property
    def pipeline(self) -> RenderPipeline:
        return self._pipeline

    @property
    def viewport(self) -> ViewportController:
        return self._viewport

    @property
    def using_offscreen(self) -> bool:
        return self._pipeline.using_offscreen

    @Slot(object)
    def set_series(self, series: Sequence[Observation]) -> None:
        self._series = list(series)
        self._dirty = True

    def render_frame(self) -> float:
        """Rebuild and submit the chart if anything changed; returns elapsed ms."""
        if not self._dirty:
            return 0.0
        with time_block(f"frame[{self.kind.value}]") as timing:
            self._pipeline.render(self._series)
        self._dirty = False
        return timing.elapsed_ms

    def reset_view(self) -> None:
        logger.debug("Resetting %s chart view", self.kind.value)
        self._viewport.reset()
        self._pipeline.reset_view()
        self._dirty = True

    def close_backend(self) -> None:
        self._pipeline.close()

    # ------------------------------------------------------------------ Qt
    def paintEvent(self, event: QPaintEvent) -> None:
        painter = QPainter(self)
        try:
            painter.fillRect(self.rect(), QColor("#fafafa"))
            image = self._pipeline.backend.image()
            if image is not None and not image.isNull():
                painter.drawImage(QRectF(self.rect()), image)
        finally:
            painter.end()

    def resizeEvent(self, event: QResizeEvent) -> None:
        size = event.size()
        self._pipeline.resize(size.width(), size.height())
        self._dirty = True
        super().resizeEvent(event)

    def mousePressEvent(self, event: QMouseEvent) -> None:
        if event.button() == Qt.LeftButton:
            pos = event.position()
            self._viewport.pointer_down(pos.x(), pos.y())
        super().mousePressEvent(event)

    def mouseMoveEvent(self, event: QMouseEvent) -> None:
        bounds = self._pipeline.effective_bounds(self._series)
        if bounds is not None:
            pos = event.position()
            self._viewport.pointer_move(pos.x(), pos.y(), bounds, self.width(), self.height())
        super().mouseMoveEvent(event)

    def mouseReleaseEvent(self, event: QMouseEvent) -> None:
        if event.button() == Qt.LeftButton:
            self._viewport.pointer_up()
        super().mouseReleaseEvent(event)

    def mouseDoubleClickEvent(self, event: QMouseEvent) -> None:
        self.reset_view()
        super().mouseDoubleClickEvent(event)

    def wheelEvent(self, event: QWheelEvent) -> None:
        bounds = self._pipeline.effective_bounds(self._series)
        if bounds is not None:
            pos = event.position()
            # Qt reports wheel-away-from-user as positive; that is a zoom in.
            delta_y = -event.angleDelta().y()
            self._viewport.wheel(pos.x(), pos.y(), delta_y, bounds, self.width(), self.height())
        event.accept()

    def _on_bounds_changed(self, bounds: ViewBounds) -> None:
        self._pipeline.set_bounds(bounds)
        self._dirty = True
        self.bounds_changed.emit(bounds)
