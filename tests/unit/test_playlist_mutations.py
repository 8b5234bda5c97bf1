"""Tests for the playlist mutation executor."""

import math
from unittest.mock import AsyncMock, patch

import pytest

from likesync.application.services import HEAD_POSITION, PlaylistMutationExecutor
from likesync.domain.exceptions import PartialApplicationError, TransportError

PLAYLIST = "playlist-1"


@pytest.fixture
def executor_factory():
    def _make(api, **kwargs):
        kwargs.setdefault("insert_delay", 0)
        return PlaylistMutationExecutor(api=api, **kwargs)

    return _make


class TestInsertion:
    @pytest.mark.asyncio
    async def test_one_head_insert_per_track(self, track_factory, mutation_api_factory, executor_factory):
        api = mutation_api_factory()
        added = [track_factory("A", 1), track_factory("B", 2), track_factory("C", 3)]

        await executor_factory(api).apply(PLAYLIST, added, [])

        assert api.calls == [
            ("insert", PLAYLIST, ["spotify:track:A"], HEAD_POSITION),
            ("insert", PLAYLIST, ["spotify:track:B"], HEAD_POSITION),
            ("insert", PLAYLIST, ["spotify:track:C"], HEAD_POSITION),
        ]

    @pytest.mark.asyncio
    async def test_final_order_is_most_recent_first(
        self, track_factory, mutation_api_factory, executor_factory
    ):
        api = mutation_api_factory(playlist=["spotify:track:old"])
        added = [track_factory("A", 1), track_factory("B", 2)]

        await executor_factory(api).apply(PLAYLIST, added, [])

        assert api.playlist == ["spotify:track:B", "spotify:track:A", "spotify:track:old"]

    @pytest.mark.asyncio
    async def test_insert_delay_paces_calls(self, track_factory, mutation_api_factory, executor_factory):
        api = mutation_api_factory()

        with patch(
            "likesync.application.services.playlist_mutations.asyncio.sleep",
            new_callable=AsyncMock,
        ) as sleep:
            await executor_factory(api, insert_delay=1.0).apply(
                PLAYLIST, [track_factory("A", 1), track_factory("B", 2)], []
            )

        assert sleep.await_count == 2
        sleep.assert_awaited_with(1.0)


class TestRemoval:
    @pytest.mark.asyncio
    @pytest.mark.parametrize("count", [1, 99, 100, 101, 150, 250])
    async def test_removal_chunking(self, count, track_factory, mutation_api_factory, executor_factory):
        api = mutation_api_factory()
        removed = [track_factory(f"t{i}") for i in range(count)]

        await executor_factory(api).apply(PLAYLIST, [], removed)

        assert len(api.calls) == math.ceil(count / 100)
        assert all(len(call[2]) <= 100 for call in api.calls)
        removed_uris = [uri for call in api.calls for uri in call[2]]
        assert sorted(removed_uris) == sorted(t.uri for t in removed)

    @pytest.mark.asyncio
    async def test_150_removals_use_two_calls(self, track_factory, mutation_api_factory, executor_factory):
        api = mutation_api_factory()
        removed = [track_factory(f"t{i}") for i in range(150)]

        await executor_factory(api).apply(PLAYLIST, [], removed)

        assert [len(call[2]) for call in api.calls] == [100, 50]

    @pytest.mark.asyncio
    async def test_insertions_run_before_removals(
        self, track_factory, mutation_api_factory, executor_factory
    ):
        api = mutation_api_factory(playlist=["spotify:track:B"])

        await executor_factory(api).apply(PLAYLIST, [track_factory("A", 1)], [track_factory("B")])

        assert [call[0] for call in api.calls] == ["insert", "remove"]
        assert api.playlist == ["spotify:track:A"]

    @pytest.mark.asyncio
    async def test_no_calls_for_empty_diff(self, mutation_api_factory, executor_factory):
        api = mutation_api_factory()

        await executor_factory(api).apply(PLAYLIST, [], [])

        assert api.calls == []


class TestFailures:
    @pytest.mark.asyncio
    async def test_first_call_failure_propagates_original_error(
        self, track_factory, mutation_api_factory, executor_factory
    ):
        api = mutation_api_factory(fail_at=0)

        with pytest.raises(TransportError) as exc_info:
            await executor_factory(api).apply(PLAYLIST, [track_factory("A", 1)], [track_factory("B")])

        assert not isinstance(exc_info.value, PartialApplicationError)
        assert exc_info.value is api.error
        assert api.calls == []

    @pytest.mark.asyncio
    async def test_failure_after_success_is_partial(
        self, track_factory, mutation_api_factory, executor_factory
    ):
        api = mutation_api_factory(fail_at=2)
        added = [track_factory(i, n) for n, i in enumerate("ABCD")]

        with pytest.raises(PartialApplicationError) as exc_info:
            await executor_factory(api).apply(PLAYLIST, added, [track_factory("Z")])

        error = exc_info.value
        assert error.applied == 2
        assert error.total == 5
        assert error.http_status == 500
        assert error.__cause__ is api.error
        assert "2/5 calls applied" in error.message

    @pytest.mark.asyncio
    async def test_failure_aborts_remaining_calls(
        self, track_factory, mutation_api_factory, executor_factory
    ):
        api = mutation_api_factory(fail_at=1)
        removed = [track_factory(f"t{i}") for i in range(300)]

        with pytest.raises(PartialApplicationError):
            await executor_factory(api).apply(PLAYLIST, [], removed)

        assert len(api.calls) == 1


class TestAppend:
    @pytest.mark.asyncio
    async def test_append_chunks_keep_order(self, track_factory, mutation_api_factory, executor_factory):
        api = mutation_api_factory(playlist=["spotify:track:existing"])
        tracks = [track_factory(f"t{i}") for i in range(230)]

        await executor_factory(api).append(PLAYLIST, tracks)

        assert [len(call[2]) for call in api.calls] == [100, 100, 30]
        assert all(call[3] is None for call in api.calls)
        assert api.playlist == ["spotify:track:existing"] + [t.uri for t in tracks]


class TestConfiguration:
    def test_batch_size_ceiling(self, mutation_api_factory):
        with pytest.raises(ValueError):
            PlaylistMutationExecutor(api=mutation_api_factory(), batch_size=101)

    def test_negative_delay_rejected(self, mutation_api_factory):
        with pytest.raises(ValueError):
            PlaylistMutationExecutor(api=mutation_api_factory(), insert_delay=-1)
