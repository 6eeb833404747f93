"""Run StreamDash from a source checkout.

``STREAMDASH_PROFILE=1 python main.py --benchmark`` runs the GUI under
cProfile; set ``STREAMDASH_PROFILE`` to a file path to also keep the raw
stats for ``snakeviz``/``pstats``.
"""

from __future__ import annotations

import os
import sys
from collections.abc import Sequence
from pathlib import Path

# 'src' must be importable when running without an editable install
SRC_DIR = Path(__file__).resolve().parent / "src"
if str(SRC_DIR) not in sys.path:
    sys.path.insert(0, str(SRC_DIR))

from streamdash.gui.application import main as run_gui_main  # noqa: E402


def _run_with_cprofile(argv: Sequence[str], dump_path: str | None) -> None:
    import cProfile
    import io
    import pstats

    profiler = cProfile.Profile()
    try:
        profiler.runcall(run_gui_main, list(argv))
    finally:
        if dump_path:
            profiler.dump_stats(dump_path)
        buffer = io.StringIO()
        pstats.Stats(profiler, stream=buffer).sort_stats("cumulative").print_stats(40)
        print(buffer.getvalue())


if __name__ == "__main__":
    profile = os.getenv("STREAMDASH_PROFILE", "").strip()
    if profile:
        _run_with_cprofile(sys.argv, None if profile.lower() in {"1", "true", "yes", "on"} else profile)
    else:
        run_gui_main(sys.argv)
