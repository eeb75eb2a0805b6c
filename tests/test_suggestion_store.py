"""
Suggestion bookkeeping tests.
"""

import pytest

from curation.models.place import FirestoreTimestamp, SuggestionStatus
from curation.services import suggestion_store
from curation.services.field_path import InvalidPathError


class TestAddSuggestion:

    def test_creates_pending_suggestion(self, place):
        suggestion = suggestion_store.add_suggestion(place, "attributes.withKids", "lee", "true")

        assert suggestion.status == SuggestionStatus.PENDING
        assert suggestion.author == "lee"
        assert suggestion.content == "true"
        assert suggestion.id.startswith("sugg_")
        assert place.suggestions["attributes.withKids"] == [suggestion]

    def test_preserves_insertion_order(self, place):
        first = suggestion_store.add_suggestion(place, "tags", "a", "x")
        second = suggestion_store.add_suggestion(place, "tags", "b", "y")

        assert [s.id for s in suggestion_store.list_suggestions(place, "tags")] == [first.id, second.id]

    def test_ids_are_unique(self, place):
        ids = {suggestion_store.add_suggestion(place, "tags", "a", str(i)).id for i in range(50)}
        assert len(ids) == 50

    def test_uses_given_timestamp(self, place):
        stamp = FirestoreTimestamp(seconds=1700000000, nanoseconds=5)
        suggestion = suggestion_store.add_suggestion(place, "tags", "a", "x", now=stamp)
        assert suggestion.created_at == stamp

    def test_rejects_malformed_path(self, place):
        with pytest.raises(InvalidPathError):
            suggestion_store.add_suggestion(place, "tags..x", "a", "x")
        assert place.suggestions == {}

    @pytest.mark.parametrize("path", [
        "edit_history",
        "edit_history[0].accepted_by",
        "suggestions",
        "suggestions.tags",
        "place_id",
        "updated_at.seconds",
    ])
    def test_rejects_bookkeeping_paths(self, place, path):
        with pytest.raises(InvalidPathError):
            suggestion_store.add_suggestion(place, path, "a", "x")
        assert place.suggestions == {}

    def test_nested_field_named_like_bookkeeping_is_allowed(self, place):
        suggestion_store.add_suggestion(place, "public_info.suggestions", "a", "x")
        assert suggestion_store.has_pending(place, "public_info.suggestions")

    def test_does_not_touch_field_value(self, place):
        suggestion_store.add_suggestion(place, "place_name", "a", "Other name")
        assert place.place_name == "Seongsan Sunrise Peak"


class TestQueries:

    def test_unknown_path_is_empty(self, place):
        assert suggestion_store.list_suggestions(place, "nope") == []
        assert not suggestion_store.has_pending(place, "nope")

    def test_list_returns_copy(self, place):
        suggestion_store.add_suggestion(place, "tags", "a", "x")
        listed = suggestion_store.list_suggestions(place, "tags")
        listed.clear()
        assert len(place.suggestions["tags"]) == 1

    def test_has_pending_ignores_resolved(self, place):
        suggestion = suggestion_store.add_suggestion(place, "tags", "a", "x")
        assert suggestion_store.has_pending(place, "tags")

        suggestion.status = SuggestionStatus.REJECTED
        assert not suggestion_store.has_pending(place, "tags")

    def test_find_suggestion(self, place):
        suggestion = suggestion_store.add_suggestion(place, "tags", "a", "x")
        assert suggestion_store.find_suggestion(place, "tags", suggestion.id) is suggestion
        assert suggestion_store.find_suggestion(place, "tags", "sugg_missing") is None
        assert suggestion_store.find_suggestion(place, "place_name", suggestion.id) is None

    def test_pending_paths_and_counts(self, place):
        suggestion_store.add_suggestion(place, "tags", "a", "x")
        done = suggestion_store.add_suggestion(place, "place_name", "a", "y")
        done.status = SuggestionStatus.ACCEPTED

        assert suggestion_store.pending_paths(place) == ["tags"]
        assert suggestion_store.count_by_status(place) == {"pending": 1, "accepted": 1, "rejected": 0}
