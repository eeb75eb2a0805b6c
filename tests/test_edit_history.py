"""
Edit history views.
"""

from curation.models.place import FirestoreTimestamp
from curation.services import edit_history


STAMP = FirestoreTimestamp(seconds=1741944600)


def _log(place, path, prev, new, sid):
    return edit_history.append_entry(
        place,
        field_path=path,
        previous_value=prev,
        new_value=new,
        accepted_by="admin",
        accepted_at=STAMP,
        suggestion_id=sid,
    )


class TestEditHistory:

    def test_append_keeps_order(self, place):
        _log(place, "tags", None, ["a"], "s1")
        _log(place, "place_name", "old", "new", "s2")

        assert [e.suggestion_id for e in place.edit_history] == ["s1", "s2"]
        assert [e.suggestion_id for e in edit_history.latest_first(place)] == ["s2", "s1"]

    def test_latest_first_does_not_reorder_storage(self, place):
        _log(place, "tags", None, ["a"], "s1")
        _log(place, "tags", ["a"], ["b"], "s2")
        edit_history.latest_first(place)

        assert place.edit_history[0].suggestion_id == "s1"

    def test_filters(self, place):
        _log(place, "tags", None, ["a"], "s1")
        _log(place, "place_name", "old", "new", "s2")

        assert [e.suggestion_id for e in edit_history.entries_for_path(place, "tags")] == ["s1"]
        assert edit_history.entry_for_suggestion(place, "s2").new_value == "new"
        assert edit_history.entry_for_suggestion(place, "s3") is None

    def test_describe(self, place):
        entry = _log(place, "tags", None, ["a", "b"], "s1")
        assert edit_history.describe(entry) == "admin updated tags: (none) -> a, b"

        entry = _log(place, "place_name", "Old", "New", "s2")
        assert edit_history.describe(entry, empty_label="-") == "admin updated place_name: Old -> New"

    def test_wire_format_is_camel_case(self, place):
        _log(place, "tags", None, ["a"], "s1")
        document = place.to_document()

        assert document["edit_history"][0] == {
            "fieldPath": "tags",
            "previousValue": None,
            "newValue": ["a"],
            "acceptedBy": "admin",
            "acceptedAt": {"seconds": 1741944600, "nanoseconds": 0},
            "suggestionId": "s1",
        }
