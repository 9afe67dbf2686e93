"""
Tests unitarios para las tablas de normalización PMS -> vocabulario interno.
"""
import pytest

from pms_sync.application.services.normalizers import (
    check_appointment_transition,
    infer_procedure_category,
    infer_provider_specialty,
    map_subscriber_relation,
    parse_procedure_duration,
    validate_appointment_status,
)
from pms_sync.shared.exceptions.domain import InvalidStatusTransitionException, ValidationException


class TestProcedureCategory:

    @pytest.mark.parametrize("raw, expected", [
        ("Diagnostic", "diagnostic"),
        ("Preventive", "preventive"),
        ("Restorative", "restorative"),
        ("Endodontics", "endodontics"),
        ("Periodontics", "periodontics"),
        ("Prosthodontics, removable", "prosthodontics_removable"),
        ("Prosthodontics, fixed", "prosthodontics_fixed"),
        ("Oral Surgery", "oral_surgery"),
        ("Orthodontics", "orthodontics"),
    ])
    def test_known_categories(self, raw, expected):
        assert infer_procedure_category(raw) == expected

    def test_removable_wins_over_generic_prostho(self):
        """'Removable Prosthodontics' no debe caer en la regla de fijos."""
        assert infer_procedure_category("Removable Prosthodontics") == "prosthodontics_removable"

    @pytest.mark.parametrize("raw", [None, "", "Misc", "Adjunctive General Services"])
    def test_fallback_is_adjunctive(self, raw):
        assert infer_procedure_category(raw) == "adjunctive"


class TestProviderSpecialty:

    @pytest.mark.parametrize("raw, expected", [
        ("Orthodontics", "orthodontist"),
        ("Periodontist", "periodontist"),
        ("Endodontics", "endodontist"),
        ("Oral Surgery", "oral_surgeon"),
        ("Pedodontics", "pediatric_dentist"),
        ("Pediatric", "pediatric_dentist"),
        ("Prosthodontics", "prosthodontist"),
        ("Hygienist", "hygienist"),
    ])
    def test_known_specialties(self, raw, expected):
        assert infer_provider_specialty(raw) == expected

    @pytest.mark.parametrize("raw", [None, "", "General", "DDS"])
    def test_fallback_is_general_dentist(self, raw):
        assert infer_provider_specialty(raw) == "general_dentist"


class TestProcedureDuration:

    def test_clock_format(self):
        assert parse_procedure_duration("01:30") == 90
        assert parse_procedure_duration("00:45:00") == 45

    def test_open_dental_pattern(self):
        # Cada carácter es un bloque de 5 minutos
        assert parse_procedure_duration("/XX/") == 20
        assert parse_procedure_duration("XXXXXX") == 30

    def test_plain_minutes(self):
        assert parse_procedure_duration("40") == 40

    @pytest.mark.parametrize("raw", [None, "", "   ", "media hora"])
    def test_unparseable_returns_none(self, raw):
        assert parse_procedure_duration(raw) is None


class TestSubscriberRelation:

    @pytest.mark.parametrize("raw, expected", [
        (None, "self"),
        ("self", "self"),
        ("Spouse", "spouse"),
        ("child", "child"),
        ("dependent", "child"),
        ("employee", "self"),
        ("life_partner", "other"),
        ("other", "other"),
    ])
    def test_relation_table(self, raw, expected):
        assert map_subscriber_relation(raw) == expected


class TestAppointmentTransitions:

    def test_new_appointment_accepts_any_known_status(self):
        check_appointment_transition(None, "completed")

    def test_unknown_target_is_rejected(self):
        with pytest.raises(ValidationException):
            validate_appointment_status("archived")

    @pytest.mark.parametrize("current, target", [
        ("scheduled", "confirmed"),
        ("scheduled", "completed"),
        ("confirmed", "no_show"),
        ("cancelled", "scheduled"),
        ("no_show", "cancelled"),
        ("completed", "completed"),
    ])
    def test_allowed_transitions(self, current, target):
        check_appointment_transition(current, target)

    @pytest.mark.parametrize("current, target", [
        ("completed", "scheduled"),
        ("completed", "cancelled"),
        ("cancelled", "completed"),
        ("no_show", "completed"),
    ])
    def test_rejected_transitions(self, current, target):
        with pytest.raises(InvalidStatusTransitionException) as exc_info:
            check_appointment_transition(current, target)
        assert exc_info.value.status_code == 422
