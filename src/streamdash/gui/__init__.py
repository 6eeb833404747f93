"""Qt layer: ingestion controller, chart widgets, main window and benchmark."""

from .chart_widget import ChartWidget, FrameClock
from .main_window import MainWindow
from .stream_controller import StreamController

__all__ = ["ChartWidget", "FrameClock", "MainWindow", "StreamController"]
