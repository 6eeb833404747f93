from __future__ import annotations

import pytest

from helpers import make_point
from streamdash.core import aggregation_worker
from streamdash.core.aggregation import aggregate
from streamdash.core.aggregation_worker import (
    AggregationClient,
    AggregationFailure,
    AggregationRequest,
    AggregationResult,
    process_message,
    process_request,
    response_from_message,
)
from streamdash.core.models import AggregationPeriod, FilterConfig

MINUTE = 60_000


def _points():
    return tuple(make_point(i * 20_000, float(i)) for i in range(9))


def test_process_request_matches_direct_aggregation() -> None:
    config = FilterConfig.pass_through(AggregationPeriod.ONE_MINUTE)
    request = AggregationRequest(request_id=4, data=_points(), config=config)

    response = process_request(request)

    assert isinstance(response, AggregationResult)
    assert response.request_id == 4
    assert list(response.data) == aggregate(_points(), config)
    assert response.elapsed_ms >= 0.0


def test_process_request_converts_exceptions(monkeypatch: pytest.MonkeyPatch) -> None:
    def boom(*_args, **_kwargs):
        raise RuntimeError("bad bin")

    monkeypatch.setattr(aggregation_worker, "aggregate", boom)
    request = AggregationRequest(request_id=1, data=_points(), config=FilterConfig.pass_through())

    response = process_request(request)

    assert isinstance(response, AggregationFailure)
    assert response.error == "bad bin"


def test_process_message_wire_format() -> None:
    request = AggregationRequest(request_id=2, data=_points(), config=FilterConfig.pass_through())

    reply = process_message(request.to_message())

    assert reply["type"] == "result"
    assert reply["request_id"] == 2
    assert [row["id"] for row in reply["data"]] == ["agg-0", "agg-60000", "agg-120000"]
    parsed = response_from_message(reply)
    assert isinstance(parsed, AggregationResult)
    assert [p.value for p in parsed.data] == [1.0, 4.0, 7.0]


def test_process_message_rejects_malformed_request() -> None:
    reply = process_message({"request_id": 9, "data": []})

    assert reply["type"] == "error"
    assert reply["request_id"] == -1
    assert "Malformed" in reply["error"]


def test_unknown_response_type() -> None:
    with pytest.raises(ValueError):
        response_from_message({"type": "progress", "request_id": 1})


def test_inline_client_delivers_result(qapp) -> None:
    client = AggregationClient(threaded=False)
    received: list[list] = []
    client.result_ready.connect(received.append)

    request_id = client.submit(_points(), FilterConfig.pass_through())

    assert request_id == 0
    assert len(received) == 1
    assert [p.timestamp for p in received[0]] == [0, MINUTE, 2 * MINUTE]
    assert client.latest == received[0]
    assert client.last_processing_ms is not None
    assert not client.is_threaded


def test_stale_response_is_dropped(qapp) -> None:
    client = AggregationClient(threaded=False)
    received: list[list] = []
    client.result_ready.connect(received.append)
    newer = (make_point(MINUTE, 5.0),)
    older = (make_point(0, 1.0),)

    client._on_response(AggregationResult(request_id=5, data=newer))
    client._on_response(AggregationResult(request_id=3, data=older))

    assert client.dropped_stale == 1
    assert received == [list(newer)]
    assert client.latest == list(newer)


def test_failure_keeps_previous_series(qapp) -> None:
    client = AggregationClient(threaded=False)
    errors: list[str] = []
    client.processing_error.connect(errors.append)
    series = (make_point(0, 1.0),)

    client._on_response(AggregationResult(request_id=0, data=series))
    client._on_response(AggregationFailure(request_id=1, error="worker exploded"))

    assert errors == ["worker exploded"]
    assert client.latest == list(series)


def test_threaded_client_round_trip(qapp, wait_until) -> None:
    client = AggregationClient()
    received: list[list] = []
    client.result_ready.connect(received.append)
    try:
        assert client.is_threaded
        client.submit(_points(), FilterConfig.pass_through())
        client.submit(_points()[:3], FilterConfig.pass_through())

        assert wait_until(lambda: len(received) >= 1 and client.latest == aggregate(_points()[:3], FilterConfig.pass_through()))
    finally:
        client.shutdown()
