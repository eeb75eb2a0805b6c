"""
Resolution policy transform tests.
"""

from datetime import datetime, timezone
from types import SimpleNamespace

from curation.services.resolution_policy import (
    DEFAULT_POLICY_TABLE,
    ResolutionPolicy,
    TransformKind,
    append_note,
    split_list,
)


NOW = datetime(2025, 3, 14, 9, 30, tzinfo=timezone.utc)


class TestSplitList:

    def test_trims_and_drops_empty_pieces(self):
        assert split_list("a, b ,, c") == ["a", "b", "c"]

    def test_blank_string_yields_empty_list(self):
        assert split_list("  ,  ") == []

    def test_list_passes_through(self):
        assert split_list(["x", "y"]) == ["x", "y"]


class TestAppendNote:

    def test_first_note_has_no_separator(self):
        assert append_note("Bring water", None, NOW) == "[2025-03-14] Bring water"

    def test_appends_after_blank_line(self):
        assert append_note("Bring water", "Go early.", NOW) == "Go early.\n\n[2025-03-14] Bring water"

    def test_empty_existing_treated_as_absent(self):
        assert append_note("x", "", NOW) == "[2025-03-14] x"

    def test_custom_date_format(self):
        assert append_note("x", None, NOW, date_format="%Y.%m.%d") == "[2025.03.14] x"


class TestResolutionPolicy:

    def test_default_table(self):
        policy = ResolutionPolicy()
        assert policy.kind_for("tags") == TransformKind.SPLIT_LIST
        assert policy.kind_for("expert_tip_final") == TransformKind.APPEND_NOTE
        assert policy.kind_for("attributes.withKids") == TransformKind.IDENTITY

    def test_identity_returns_content_unchanged(self):
        assert ResolutionPolicy().apply("place_name", "  New name ") == "  New name "

    def test_lookup_is_exact_path(self):
        policy = ResolutionPolicy()
        assert policy.apply("tags[0]", "a, b") == "a, b"

    def test_apply_split_list(self):
        assert ResolutionPolicy().apply("tags", "beach, sunset") == ["beach", "sunset"]

    def test_apply_append_note_sequence(self):
        policy = ResolutionPolicy()
        first = policy.apply("expert_tip_final", "one", existing=None, now=NOW)
        second = policy.apply("expert_tip_final", "two", existing=first, now=NOW)

        assert second == "[2025-03-14] one\n\n[2025-03-14] two"

    def test_register_new_path(self):
        policy = ResolutionPolicy()
        policy.register("interest_tags", TransformKind.SPLIT_LIST)
        assert policy.apply("interest_tags", "food,  art") == ["food", "art"]

    def test_register_many(self):
        policy = ResolutionPolicy(table={})
        policy.register_many(["a", "b"], TransformKind.APPEND_NOTE)
        assert policy.kind_for("a") == policy.kind_for("b") == TransformKind.APPEND_NOTE

    def test_instances_do_not_share_table(self):
        policy = ResolutionPolicy()
        policy.register("tags", TransformKind.IDENTITY)
        assert DEFAULT_POLICY_TABLE["tags"] == TransformKind.SPLIT_LIST
        assert ResolutionPolicy().kind_for("tags") == TransformKind.SPLIT_LIST

    def test_from_settings(self):
        settings = SimpleNamespace(
            list_field_paths=["tags", "interest_tags"],
            append_note_field_paths=["expert_tip_final"],
            note_date_format="%d/%m/%Y",
        )
        policy = ResolutionPolicy.from_settings(settings)

        assert policy.kind_for("interest_tags") == TransformKind.SPLIT_LIST
        assert policy.apply("expert_tip_final", "x", now=NOW) == "[14/03/2025] x"
