"""Tests for ResultHistory."""

import pytest

from partyline.application.services import ResultHistory
from partyline.domain.entities import ResultType, RouterResult


class TestResultHistory:
    """ResultHistory tests."""

    def test_records_results(self) -> None:
        history = ResultHistory()
        history(RouterResult(type=ResultType.REQUESTED))
        history(RouterResult(type=ResultType.CONNECTED))

        assert len(history) == 2
        assert [r.type for r in history.results()] == [
            ResultType.REQUESTED,
            ResultType.CONNECTED,
        ]

    def test_drops_oldest_when_full(self) -> None:
        history = ResultHistory(max_size=2)
        for result_type in (
            ResultType.REQUESTED,
            ResultType.CONNECTED,
            ResultType.DISCONNECTED,
        ):
            history(RouterResult(type=result_type))

        assert [r.type for r in history.results()] == [
            ResultType.CONNECTED,
            ResultType.DISCONNECTED,
        ]

    def test_clear(self) -> None:
        history = ResultHistory()
        history(RouterResult.no_action())

        history.clear()

        assert len(history) == 0

    @pytest.mark.parametrize("max_size", [0, -1])
    def test_invalid_size(self, max_size: int) -> None:
        with pytest.raises(ValueError):
            ResultHistory(max_size=max_size)
