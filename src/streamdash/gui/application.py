"""Qt application entry point for the StreamDash desktop GUI.

Every launch (``python main.py``, the ``streamdash`` console script or
``python -m streamdash.gui.application``) goes through :func:`main`, which
parses our own flags, hands the rest to Qt, loads the YAML configuration and
starts the event loop.
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Optional, Tuple

from PySide6.QtCore import QLoggingCategory
from PySide6.QtWidgets import QApplication

from ..config.runtime import CONFIG_ENV_VAR, DashboardConfig, config_path_from_env, load_config
from .benchmark import BenchmarkDriver, BenchmarkOptions
from .main_window import MainWindow

logger = logging.getLogger(__name__)


def _build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="streamdash",
        description="Real-time streaming dashboard with worker-thread aggregation",
    )
    dashboard = parser.add_argument_group("dashboard")
    dashboard.add_argument(
        "--config",
        metavar="PATH",
        default=None,
        help=f"YAML configuration file (default: ${CONFIG_ENV_VAR} if set)",
    )
    dashboard.add_argument(
        "--no-stream",
        action="store_true",
        help="Seed the history but start with streaming paused",
    )
    dashboard.add_argument(
        "--main-thread",
        action="store_true",
        help="Paint charts on the GUI thread instead of render threads",
    )
    dashboard.add_argument(
        "--log-level",
        default="INFO",
        choices=("DEBUG", "INFO", "WARNING", "ERROR"),
    )

    bench = parser.add_argument_group("benchmark")
    bench.add_argument(
        "--benchmark",
        action="store_true",
        help="Sample performance snapshots for a fixed duration, then quit",
    )
    bench.add_argument("--bench-duration", type=float, default=30.0, metavar="SECONDS")
    bench.add_argument("--bench-interval", type=float, default=1.0, metavar="SECONDS")
    bench.add_argument("--bench-csv", metavar="PATH", default=None, help="Write sampled rows to this CSV file")
    bench.add_argument(
        "--bench-keep-open",
        action="store_true",
        help="Leave the window open once the run is summarized",
    )
    return parser


def _parse_cli_args(argv: list[str]) -> tuple[argparse.Namespace, list[str]]:
    """Split ``argv`` into our namespace and the argv Qt should see."""
    args, unknown = _build_arg_parser().parse_known_args(argv[1:])
    return args, [argv[0], *unknown]


def resolve_config(path: str | None) -> DashboardConfig:
    """Load ``path``, falling back to ``$STREAMDASH_CONFIG`` and then defaults."""
    cfg_path = Path(path).expanduser() if path else config_path_from_env()
    config = load_config(cfg_path)
    if cfg_path is not None:
        logger.info("Loaded configuration from %s", cfg_path)
    return config


def create_app(
    argv: list[str] | None = None,
    *,
    config: DashboardConfig | None = None,
    streaming: bool = True,
    use_offscreen: Optional[bool] = None,
) -> Tuple[QApplication, MainWindow]:
    """
    Create (or reuse) the QApplication and build the dashboard window.

    ``use_offscreen=False`` forces main-thread rendering; ``None`` defers to
    ``config.use_offscreen``. The window is not started; call
    :meth:`MainWindow.start` after showing it.
    """
    app = QApplication.instance() or QApplication(argv if argv is not None else sys.argv)
    # QStyleHints and friends spam connect warnings under some platform plugins
    QLoggingCategory.setFilterRules("qt.core.qobject.connect=false")
    return app, MainWindow(config, streaming=streaming, use_offscreen=use_offscreen)


def main(argv: list[str] | None = None) -> None:
    args, qt_argv = _parse_cli_args(list(argv if argv is not None else sys.argv))
    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    app, window = create_app(
        qt_argv,
        config=resolve_config(args.config),
        streaming=not args.no_stream,
        use_offscreen=False if args.main_thread else None,
    )
    driver = BenchmarkDriver(app, window, BenchmarkOptions.from_args(args)) if args.benchmark else None

    window.show()
    window.start()
    if driver is not None:
        driver.start()
    raise SystemExit(app.exec())


if __name__ == "__main__":
    main()
