from __future__ import annotations

import pytest

from streamdash.tools import debug


def test_timing_filled_without_debug(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(debug, "DEBUG_STREAMDASH", False)
    messages: list[str] = []

    with debug.time_block("quiet", emitter=messages.append) as timing:
        sum(range(1000))

    assert timing.label == "quiet"
    assert timing.elapsed_ms >= 0.0
    assert messages == []
    assert not debug.debug_enabled()


def test_timing_emitted_when_debugging(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(debug, "DEBUG_STREAMDASH", True)
    messages: list[str] = []

    with debug.time_block("aggregate[3 points]", emitter=messages.append):
        pass

    assert len(messages) == 1
    assert messages[0].startswith("[DEBUG] aggregate[3 points] took ")


def test_timing_recorded_when_block_raises(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(debug, "DEBUG_STREAMDASH", False)
    with pytest.raises(RuntimeError):
        with debug.time_block("boom") as timing:
            raise RuntimeError("boom")
    assert timing.elapsed_ms >= 0.0
