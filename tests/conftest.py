from __future__ import annotations

import os
import time
from typing import Callable

import pytest

os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

from PySide6.QtWidgets import QApplication  # noqa: E402


@pytest.fixture(scope="session")
def qapp() -> QApplication:
    app = QApplication.instance() or QApplication([])
    return app


@pytest.fixture
def wait_until(qapp: QApplication) -> Callable[..., bool]:
    """Pump the Qt event loop until ``predicate`` holds or the timeout expires."""

    def _wait(predicate: Callable[[], bool], timeout: float = 2.0) -> bool:
        deadline = time.time() + timeout
        while time.time() < deadline:
            qapp.processEvents()
            if predicate():
                return True
            time.sleep(0.01)
        qapp.processEvents()
        return predicate()

    return _wait
