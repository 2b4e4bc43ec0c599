# tests/unit/services/test_submission_validator.py
from __future__ import annotations

import logging

import pytest
from research_core.services._shared.base import ServiceContext
from research_core.services._shared.errors import (
    DisallowedFieldError,
    InvalidFieldValueError,
    InvalidSelectionError,
    OutOfRangeError,
    PotentialIdentifierError,
    UnknownFieldError,
    UnsupportedFieldTypeError,
)
from research_core.services.submissions import (
    FormSchema,
    SubmissionValidator,
    check_no_identifiers,
    check_schema_conformance,
)
from tests.helpers.utils import not_raises

FORM = {
    "items": [
        {"linkId": "q1", "type": "text"},
        {"linkId": "mood", "type": "dropdown", "options": ["low", "ok", "high"]},
        {"linkId": "free_pick", "type": "dropdown"},
        {"linkId": "symptoms", "type": "checkboxes", "options": ["cough", "fever", "none"]},
        {"linkId": "pain", "type": "scale", "scale": {"min": 0, "max": 10}},
        {"linkId": "upload", "type": "file"},
    ]
}


@pytest.fixture(scope="module")
def form() -> FormSchema:
    return FormSchema.from_dict(FORM)


# -------------------------- Schema conformance ----------------------------- #
class TestSchemaConformance:
    def test_valid_answers_pass(self, form):
        answers = {
            "q1": "slept badly",
            "mood": "ok",
            "free_pick": "anything",
            "symptoms": ["cough", "fever"],
            "pain": 3.5,
        }
        with not_raises(Exception):
            check_schema_conformance(answers, form)

    def test_accepts_raw_schema_document(self):
        with not_raises(Exception):
            check_schema_conformance({"pain": 10}, FORM)

    @pytest.mark.parametrize("answers", [None, {}])
    def test_empty_submission_passes(self, form, answers):
        with not_raises(Exception):
            check_schema_conformance(answers, form)

    def test_unknown_link_id(self, form):
        with pytest.raises(UnknownFieldError, match="Unknown linkId extra"):
            check_schema_conformance({"extra": "x"}, form)

    def test_text_requires_string(self, form):
        with pytest.raises(InvalidFieldValueError, match="Expected string for q1"):
            check_schema_conformance({"q1": 12}, form)

    def test_dropdown_requires_single_selection(self, form):
        with pytest.raises(InvalidFieldValueError, match="Expected single selection for mood"):
            check_schema_conformance({"mood": ["ok"]}, form)

    def test_dropdown_rejects_unknown_option(self, form):
        with pytest.raises(InvalidSelectionError) as exc:
            check_schema_conformance({"mood": "great"}, form)
        assert exc.value.entries == ("great",)

    def test_checkboxes_require_array(self, form):
        with pytest.raises(InvalidFieldValueError, match="Expected array for symptoms"):
            check_schema_conformance({"symptoms": "cough"}, form)

    def test_checkboxes_reject_non_text_entries(self, form):
        with pytest.raises(InvalidFieldValueError):
            check_schema_conformance({"symptoms": ["cough", 3]}, form)

    def test_checkboxes_report_every_unknown_entry(self, form):
        with pytest.raises(InvalidSelectionError) as exc:
            check_schema_conformance({"symptoms": ["cough", "rash", "itch"]}, form)
        assert exc.value.to_details()["entries"] == ["rash", "itch"]

    @pytest.mark.parametrize("value", ["5", True, None, float("nan"), float("inf")])
    def test_scale_requires_finite_number(self, form, value):
        with pytest.raises(InvalidFieldValueError, match="Expected numeric value for pain"):
            check_schema_conformance({"pain": value}, form)

    @pytest.mark.parametrize("value", [-1, 10.5])
    def test_scale_out_of_range(self, form, value):
        with pytest.raises(OutOfRangeError, match="must be between 0 and 10"):
            check_schema_conformance({"pain": value}, form)

    @pytest.mark.parametrize("value", [0, 10])
    def test_scale_bounds_are_inclusive(self, form, value):
        with not_raises(OutOfRangeError):
            check_schema_conformance({"pain": value}, form)

    def test_unsupported_item_type(self, form):
        with pytest.raises(UnsupportedFieldTypeError):
            check_schema_conformance({"upload": "blob"}, form)

    def test_duplicate_link_ids_are_rejected(self):
        with pytest.raises(ValueError, match="Duplicate linkId"):
            FormSchema.from_items([{"linkId": "a", "type": "text"}, {"linkId": "a", "type": "text"}])


# ---------------------------- Identifier guard ----------------------------- #
class TestNoIdentifiers:
    @pytest.mark.parametrize(
        "key",
        ["name", "First_Name", "EMAIL", "phone_home", "addressLine", "patientName", "PatientName", "PATIENTNAME"],
    )
    def test_denylisted_keys(self, key):
        with pytest.raises(DisallowedFieldError, match=f"Field {key} not permitted"):
            check_no_identifiers({key: "n/a"})

    def test_key_is_checked_before_value(self):
        with pytest.raises(DisallowedFieldError):
            check_no_identifiers({"email": 5})

    def test_email_in_free_text(self):
        with pytest.raises(PotentialIdentifierError) as exc:
            check_no_identifiers({"q1": "write to a.b@example.org"})
        assert exc.value.field == "q1"
        assert exc.value.detector == "email"
        # The offending value never leaks into the error.
        assert "example.org" not in str(exc.value)
        assert "example.org" not in str(exc.value.to_details())

    def test_phone_inside_list(self):
        with pytest.raises(PotentialIdentifierError) as exc:
            check_no_identifiers({"notes": ["fine", "555 123 4567"]})
        assert exc.value.detector == "phone"

    def test_nested_mapping_reports_dotted_path(self):
        with pytest.raises(PotentialIdentifierError) as exc:
            check_no_identifiers({"contact": {"info": "x@y.io"}})
        assert exc.value.field == "contact.info"

    def test_nested_denylisted_key(self):
        with pytest.raises(DisallowedFieldError) as exc:
            check_no_identifiers({"extra": {"home_address": "-"}})
        assert exc.value.field == "extra.home_address"

    @pytest.mark.parametrize("value", [5551234567, 12.5, True, None])
    def test_scalars_are_exempt(self, value):
        with not_raises(PotentialIdentifierError):
            check_no_identifiers({"pain": value})

    def test_numeric_guard_toggle(self):
        answers = {"lab": "10 20 30 40"}
        with pytest.raises(PotentialIdentifierError):
            check_no_identifiers(answers)
        with not_raises(PotentialIdentifierError):
            check_no_identifiers(answers, numeric_id_guard=False)

    @pytest.mark.parametrize("answers", [None, {}])
    def test_empty_submission_passes(self, answers):
        with not_raises(Exception):
            check_no_identifiers(answers)


# ------------------------------ Service facade ----------------------------- #
class TestSubmissionValidator:
    def test_validate_runs_both_checks(self, form):
        validator = SubmissionValidator()
        with not_raises(Exception):
            validator.validate({"q1": "fine", "pain": 2}, form)
        with pytest.raises(UnknownFieldError):
            validator.validate({"nope": "fine"}, form)

    def test_identifier_check_runs_first(self, form):
        # Unknown key *and* an identifier: the identifier wins.
        with pytest.raises(PotentialIdentifierError):
            SubmissionValidator().validate({"nope": "me@example.org"}, form)

    def test_rejection_is_logged_without_value(self, form, caplog):
        validator = SubmissionValidator(ctx=ServiceContext(actor_id="u-1", org_id="A"))
        with caplog.at_level(logging.WARNING), pytest.raises(PotentialIdentifierError):
            validator.validate({"q1": "555-123-4567"}, form)

        record = next(r for r in caplog.records if r.getMessage() == "submission.rejected")
        assert record.field == "q1"
        assert record.user_id == "u-1"
        assert record.detector == "phone"
        assert "555" not in caplog.text

    def test_relaxed_validator(self, form):
        validator = SubmissionValidator(numeric_id_guard=False)
        with not_raises(PotentialIdentifierError):
            validator.validate({"q1": "ref 10 20 30 40"}, form)
