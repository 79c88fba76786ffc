"""
Unit tests for the advertisement-ID assignment rules.

These functions are pure, so no database is needed.
"""

import pytest

from dealer_console.constants import AdvertisementIdSource
from dealer_console.exceptions import ErrorCode, ValidationError
from dealer_console.processing.credential_assignment import (
    add_id,
    build_editable_state,
    convert_legacy_to_enhanced,
    is_using_legacy_fields_only,
    prepare_commit,
    reconcile,
    remove_id,
    resolve_advertiser_id,
    set_primary,
    update_id,
    valid_ids,
)
from dealer_console.schemas.credential_schemas import EditableState, StoredCredentialFields


class TestReconcile:
    """Test merging the enhanced and legacy shapes."""

    def test_empty_record(self):
        """No record and a record with no IDs both reconcile to nothing."""
        for record in (None, {}, StoredCredentialFields()):
            reconciled = reconcile(record)
            assert reconciled.entries == []
            assert reconciled.primary_id == ""

    def test_enhanced_shape(self):
        reconciled = reconcile(
            {"advertisement_id": "A", "additional_advertisement_ids": ["B", "C"]}
        )

        assert reconciled.ids == ["A", "B", "C"]
        assert reconciled.primary_id == "A"
        assert reconciled.entries[0].is_primary is True
        assert reconciled.entries[0].source == AdvertisementIdSource.ENHANCED_PRIMARY
        assert all(e.source == AdvertisementIdSource.ENHANCED_ADDITIONAL for e in reconciled.entries[1:])
        assert reconciled.additional_ids == ["B", "C"]

    def test_duplicates_keep_first_source(self):
        """An ID present in several columns appears once, under the highest-precedence column."""
        reconciled = reconcile(
            {
                "advertisement_id": "X",
                "additional_advertisement_ids": ["Y", "X"],
                "primary_advertisement_id": "Y",
                "advertisement_ids": ["X", "Y", "Z"],
            }
        )

        assert reconciled.ids == ["X", "Y", "Z"]
        sources = {e.id: e.source for e in reconciled.entries}
        assert sources["X"] == AdvertisementIdSource.ENHANCED_PRIMARY
        assert sources["Y"] == AdvertisementIdSource.ENHANCED_ADDITIONAL
        assert sources["Z"] == AdvertisementIdSource.LEGACY_ADDITIONAL

    def test_legacy_only_scenario(self):
        """Legacy primary LP1 with list [LP1, LP2] reconciles to LP1, LP2 with LP1 primary."""
        reconciled = reconcile(
            {"primary_advertisement_id": "LP1", "advertisement_ids": ["LP1", "LP2"]}
        )

        assert [(e.id, e.source, e.is_primary) for e in reconciled.entries] == [
            ("LP1", AdvertisementIdSource.LEGACY_PRIMARY, False),
            ("LP2", AdvertisementIdSource.LEGACY_ADDITIONAL, False),
        ]
        assert reconciled.primary_id == "LP1"

    def test_enhanced_primary_wins_over_legacy_primary(self):
        """A different legacy primary is demoted to a plain entry."""
        reconciled = reconcile({"advertisement_id": "E1", "primary_advertisement_id": "L1"})

        assert reconciled.ids == ["E1", "L1"]
        assert reconciled.primary_id == "E1"
        assert reconciled.entries[1].is_primary is False

    def test_values_are_trimmed_and_blanks_dropped(self):
        reconciled = reconcile(
            {
                "advertisement_id": "  A  ",
                "additional_advertisement_ids": ["", "   ", " B", "A"],
            }
        )

        assert reconciled.ids == ["A", "B"]

    def test_json_string_encodings(self):
        """List columns stored as JSON text, and a primary stored as a JSON array, are parsed."""
        reconciled = reconcile(
            {
                "advertisement_id": '["P1", "P2"]',
                "additional_advertisement_ids": '["A1"]',
                "advertisement_ids": '["L1", 5, "L2"]',
            }
        )

        assert reconciled.ids == ["P1", "A1", "L1", "5", "L2"]
        assert reconciled.primary_id == "P1"

    def test_numeric_ids_are_kept_as_text(self):
        """Older clients stored some advertiser IDs as numbers."""
        reconciled = reconcile(
            {"additional_advertisement_ids": [10012345, "B", None, True], "advertisement_ids": 42}
        )

        assert reconciled.ids == ["10012345", "B", "42"]

    def test_invalid_json_list_is_ignored(self):
        reconciled = reconcile({"advertisement_ids": "[not json", "primary_advertisement_id": "L1"})

        assert reconciled.ids == ["L1"]

    def test_plain_string_list_column_is_one_id(self):
        reconciled = reconcile({"advertisement_ids": "L9"})

        assert reconciled.ids == ["L9"]

    def test_accepts_objects_with_attributes(self):
        class Row:
            advertisement_id = None
            additional_advertisement_ids = None
            primary_advertisement_id = "R1"
            advertisement_ids = ["R2"]

        assert reconcile(Row()).ids == ["R1", "R2"]


class TestEditableState:
    """Test building and editing the flat slot list."""

    def test_empty_record_gets_one_blank_slot(self):
        assert build_editable_state(None) == EditableState(ids=[""], primary_id="")
        assert build_editable_state(reconcile(None)).ids == [""]

    def test_build_from_reconciled(self):
        state = build_editable_state(
            reconcile({"primary_advertisement_id": "LP1", "advertisement_ids": ["LP1", "LP2"]})
        )

        assert state.ids == ["LP1", "LP2"]
        assert state.primary_id == "LP1"

    def test_add_id_appends_blank_slot(self):
        state = EditableState(ids=["A"], primary_id="A")

        new_state = add_id(state)

        assert new_state.ids == ["A", ""]
        assert new_state.primary_id == "A"
        assert state.ids == ["A"]

    def test_remove_last_slot_fails(self):
        """Removing the only slot fails whatever it holds."""
        for value in ("", "A", "   "):
            with pytest.raises(ValidationError) as exc_info:
                remove_id(EditableState(ids=[value], primary_id=value), 0)
            assert exc_info.value.message == "cannot remove last slot"

    def test_remove_out_of_range(self):
        with pytest.raises(ValidationError) as exc_info:
            remove_id(EditableState(ids=["A", "B"], primary_id="A"), 2)

        assert exc_info.value.error_code == ErrorCode.INVALID_INDEX

    def test_remove_primary_clears_primary(self):
        new_state = remove_id(EditableState(ids=["A", "B"], primary_id="A"), 0)

        assert new_state.ids == ["B"]
        assert new_state.primary_id == ""

    def test_remove_other_keeps_primary(self):
        new_state = remove_id(EditableState(ids=["A", "B", "C"], primary_id="A"), 1)

        assert new_state.ids == ["A", "C"]
        assert new_state.primary_id == "A"

    def test_update_primary_slot_moves_primary(self):
        new_state = update_id(EditableState(ids=["A", "B"], primary_id="A"), 0, "C")

        assert new_state == EditableState(ids=["C", "B"], primary_id="C")

    def test_update_other_slot_keeps_primary(self):
        new_state = update_id(EditableState(ids=["A", "B"], primary_id="A"), 1, "D")

        assert new_state == EditableState(ids=["A", "D"], primary_id="A")

    def test_update_out_of_range(self):
        with pytest.raises(ValidationError):
            update_id(EditableState(ids=["A"], primary_id="A"), -1, "B")

    def test_set_primary(self):
        new_state = set_primary(EditableState(ids=["A", "B"], primary_id="A"), "B")

        assert new_state.primary_id == "B"

    def test_set_primary_stores_trimmed_value(self):
        new_state = set_primary(EditableState(ids=["A", " B "], primary_id="A"), "  B")

        assert new_state.primary_id == "B"
        assert prepare_commit(new_state).primary == "B"

    def test_set_primary_unknown_value(self):
        with pytest.raises(ValidationError) as exc_info:
            set_primary(EditableState(ids=["A", "B"], primary_id="A"), "Z")

        assert exc_info.value.message == "value not in id list"

    def test_set_primary_blank_value(self):
        with pytest.raises(ValidationError):
            set_primary(EditableState(ids=["A", ""], primary_id="A"), "")


class TestPrepareCommit:
    """Test the values written back on commit."""

    def test_blanks_and_repeats_are_dropped(self):
        state = EditableState(ids=["", " ", "X", "X"], primary_id="X")

        prepared = prepare_commit(state)

        assert valid_ids(state) == ["X"]
        assert prepared.valid_ids == ["X"]
        assert prepared.primary == "X"
        assert prepared.additional == []

    def test_missing_primary_falls_back_to_first(self):
        prepared = prepare_commit(EditableState(ids=["A", "B"], primary_id=""))

        assert prepared.primary == "A"
        assert prepared.additional == ["B"]

    def test_stale_primary_falls_back_to_first(self):
        prepared = prepare_commit(EditableState(ids=["A", "B"], primary_id="Z"))

        assert prepared.primary == "A"

    def test_no_ids(self):
        prepared = prepare_commit(EditableState(ids=["", "  "], primary_id=""))

        assert prepared.valid_ids == []
        assert prepared.primary == ""
        assert prepared.as_columns() == {
            "primary_advertisement_id": None,
            "advertisement_ids": [],
            "advertisement_id": None,
            "additional_advertisement_ids": [],
        }

    def test_columns_for_both_shapes(self):
        prepared = prepare_commit(EditableState(ids=["A", " B ", "C"], primary_id="B"))

        assert prepared.as_columns() == {
            "primary_advertisement_id": "B",
            "advertisement_ids": ["A", "B", "C"],
            "advertisement_id": "B",
            "additional_advertisement_ids": ["A", "C"],
        }

    def test_round_trip_through_stored_columns(self):
        """Reconciling what a commit writes gives back the same IDs and primary."""
        state = EditableState(ids=["A", "B", "", "C", "B"], primary_id="C")
        prepared = prepare_commit(state)

        rebuilt = build_editable_state(reconcile(prepared.as_columns()))

        assert set(rebuilt.ids) == set(prepared.valid_ids)
        assert rebuilt.primary_id == prepared.primary == "C"

    def test_primary_is_member_of_written_ids(self):
        for state in (
            EditableState(ids=["A", "B"], primary_id="B"),
            EditableState(ids=["A"], primary_id="gone"),
            EditableState(ids=[""], primary_id=""),
        ):
            prepared = prepare_commit(state)
            reconciled = reconcile(prepared.as_columns())
            if prepared.valid_ids:
                assert reconciled.primary_id in prepared.valid_ids
            else:
                assert reconciled.primary_id == ""


class TestAdvertiserHelpers:
    def test_resolve_advertiser_id(self):
        resolution = resolve_advertiser_id(
            {"primary_advertisement_id": "L1", "advertisement_ids": ["L1", "L2"]}
        )

        assert resolution.advertiser_id == "L1"
        assert resolution.source == AdvertisementIdSource.LEGACY_PRIMARY
        assert resolution.all_available_ids == ["L1", "L2"]

    def test_resolve_advertiser_id_none(self):
        resolution = resolve_advertiser_id(None)

        assert resolution.advertiser_id is None
        assert resolution.source == AdvertisementIdSource.NONE

    def test_legacy_only_detection(self):
        assert is_using_legacy_fields_only({"primary_advertisement_id": "L1"}) is True
        assert is_using_legacy_fields_only({"advertisement_id": "E1", "advertisement_ids": ["L1"]}) is False
        assert is_using_legacy_fields_only({}) is False

    def test_convert_legacy_to_enhanced(self):
        assert convert_legacy_to_enhanced(
            {"primary_advertisement_id": "L1", "advertisement_ids": ["L1", "L2"]}
        ) == {"advertisement_id": "L1", "additional_advertisement_ids": ["L2"]}
        assert convert_legacy_to_enhanced({}) == {
            "advertisement_id": None,
            "additional_advertisement_ids": None,
        }
