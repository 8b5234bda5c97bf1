"""Domain tests for the library diff.

Pure functions, no mocks needed.
"""

from likesync.domain.workflows import diff, index_by_id, missing_from


class TestDiffScenarios:
    """End-to-end reconciliation cases."""

    def test_library_and_playlist_disjoint(self, track_factory):
        """Library {A}, playlist {B}: add A, remove B."""
        a, b = track_factory("A", 1), track_factory("B")

        result = diff([a], [b])

        assert [t.id for t in result.added] == ["A"]
        assert [t.id for t in result.removed] == ["B"]

    def test_playlist_has_extra_track(self, track_factory):
        """Library {A}, playlist {A, B}: nothing to add, remove B."""
        a, b = track_factory("A", 1), track_factory("B")

        result = diff([a], [track_factory("A"), b])

        assert result.added == []
        assert [t.id for t in result.removed] == ["B"]

    def test_equal_sets_produce_empty_diff(self, track_factory):
        library = [track_factory("A", 1), track_factory("B", 2)]
        playlist = [track_factory("B"), track_factory("A")]

        result = diff(library, playlist)

        assert result.added == []
        assert result.removed == []
        assert not result.has_changes

    def test_empty_collections(self):
        result = diff([], [])
        assert not result.has_changes

    def test_empty_library_removes_everything(self, track_factory):
        playlist = [track_factory(i) for i in "ABC"]

        result = diff([], playlist)

        assert result.added == []
        assert [t.id for t in result.removed] == ["A", "B", "C"]

    def test_empty_playlist_adds_everything(self, track_factory):
        library = [track_factory("B", 2), track_factory("A", 1)]

        result = diff(library, [])

        assert [t.id for t in result.added] == ["A", "B"]
        assert result.removed == []

    def test_playlist_missing_older_track(self, track_factory):
        """Library {A(t=1), B(t=2)}, playlist {B}: add A only."""
        library = [track_factory("A", 1), track_factory("B", 2)]

        result = diff(library, [track_factory("B")])

        assert [t.id for t in result.added] == ["A"]
        assert result.removed == []


class TestDiffInvariants:
    """Properties that must hold for any input."""

    def test_added_and_removed_are_disjoint(self, track_factory):
        library = [track_factory(i, n) for n, i in enumerate("ABCDE")]
        playlist = [track_factory(i) for i in "CDEFG"]

        result = diff(library, playlist)

        added_ids = {t.id for t in result.added}
        removed_ids = {t.id for t in result.removed}
        assert added_ids == {"A", "B"}
        assert removed_ids == {"F", "G"}
        assert not added_ids & removed_ids

    def test_added_sorted_by_ascending_added_at(self, track_factory):
        library = [track_factory("new", 30), track_factory("old", 10), track_factory("mid", 20)]

        result = diff(library, [])

        assert [t.id for t in result.added] == ["old", "mid", "new"]

    def test_sort_is_stable_for_equal_timestamps(self, track_factory):
        library = [track_factory("X", 5), track_factory("Y", 5), track_factory("Z", 1)]

        result = diff(library, [])

        assert [t.id for t in result.added] == ["Z", "X", "Y"]

    def test_tracks_without_timestamp_sort_first(self, track_factory):
        library = [track_factory("dated", 1), track_factory("undated")]

        result = diff(library, [])

        assert [t.id for t in result.added] == ["undated", "dated"]

    def test_duplicates_count_once(self, track_factory):
        """A duplicated playlist entry is removed once; the first record is kept."""
        library = [track_factory("A", 1)]
        playlist = [track_factory("B", name="first"), track_factory("B", name="second")]

        result = diff(library, playlist)

        assert len(result.removed) == 1
        assert result.removed[0].name == "first"

    def test_identity_is_id_only(self, track_factory):
        """Metadata differences do not make two records different tracks."""
        library = [track_factory("A", 1, name="Live version")]
        playlist = [track_factory("A", name="Studio version")]

        assert not diff(library, playlist).has_changes


class TestHelpers:
    def test_index_by_id_keeps_first_occurrence_and_order(self, track_factory):
        tracks = [track_factory("B", name="b1"), track_factory("A"), track_factory("B", name="b2")]

        indexed = index_by_id(tracks)

        assert list(indexed) == ["B", "A"]
        assert indexed["B"].name == "b1"

    def test_missing_from_keeps_source_order(self, track_factory):
        source = [track_factory(i) for i in "ZYXW"]
        target = [track_factory("Y")]

        assert [t.id for t in missing_from(source, target)] == ["Z", "X", "W"]

    def test_missing_from_ignores_source_duplicates(self, track_factory):
        source = [track_factory("A"), track_factory("A")]

        assert [t.id for t in missing_from(source, [])] == ["A"]
