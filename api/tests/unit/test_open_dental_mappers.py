"""
Tests unitarios para el mapeo de payloads de Open Dental.
"""
from datetime import date, datetime

import pytest

from pms_sync.domain.entities.pms_records import OutboundPatient
from pms_sync.infrastructure.external.open_dental import mappers


def test_map_patient_flattens_address_and_gender():
    patient = mappers.map_patient({
        "PatNum": 15,
        "FName": "Ana",
        "LName": "Lopez",
        "MiddleI": "",
        "Birthdate": "1985-03-02",
        "Gender": 1,
        "Address": "Calle 1",
        "City": "Austin",
        "State": "TX",
        "Zip": "78701",
        "WirelessPhone": "555-0101",
        "DateTStamp": "2024-01-10 08:00:00",
    })

    assert patient.pms_id == "15"
    assert patient.middle_name is None
    assert patient.dob == date(1985, 3, 2)
    assert patient.gender == "female"
    assert patient.mobile_phone == "555-0101"
    assert patient.address() == {"street": "Calle 1", "city": "Austin", "state": "TX", "zip": "78701"}
    assert patient.modified_at == datetime(2024, 1, 10, 8, 0, 0)


def test_map_patient_without_address_or_birthdate():
    patient = mappers.map_patient({"PatNum": "7", "FName": "Luis", "LName": "Diaz", "Birthdate": "0001-01-01"})

    assert patient.dob is None
    assert patient.address() is None
    assert patient.gender is None


class TestMapAppointment:

    def test_duration_from_pattern_and_status(self):
        appt = mappers.map_appointment({
            "AptNum": 100,
            "PatNum": 15,
            "AptDateTime": "2024-02-01 09:00:00",
            "Pattern": "XXXXXX",
            "AptStatus": 2,
            "provAbbr": "DOC1",
            "Op": 3,
        })

        assert appt.pms_id == "100"
        assert appt.patient_pms_id == "15"
        assert appt.end_time == datetime(2024, 2, 1, 9, 30)
        assert appt.status == "completed"
        assert appt.provider == "DOC1"
        assert appt.operatory == "3"

    def test_empty_pattern_is_one_slot(self):
        appt = mappers.map_appointment({"AptNum": 1, "PatNum": 2, "AptDateTime": "2024-02-01 09:00:00"})
        assert appt.end_time == datetime(2024, 2, 1, 9, 5)

    @pytest.mark.parametrize("code, expected", [
        (1, "scheduled"),
        (3, "scheduled"),
        (5, "cancelled"),
        (6, "no_show"),
        (99, "scheduled"),
    ])
    def test_status_table(self, code, expected):
        appt = mappers.map_appointment({"AptNum": 1, "PatNum": 2, "AptDateTime": "2024-02-01 09:00:00", "AptStatus": code})
        assert appt.status == expected

    def test_provider_falls_back_to_provnum(self):
        appt = mappers.map_appointment({"AptNum": 1, "PatNum": 2, "AptDateTime": "2024-02-01 09:00:00", "ProvNum": 4})
        assert appt.provider == "4"

    def test_invalid_datetime_raises(self):
        with pytest.raises(ValueError):
            mappers.map_appointment({"AptNum": 1, "PatNum": 2, "AptDateTime": "no-date"})


def test_map_insurance_plan_joins_carrier_name():
    plan = mappers.map_insurance_plan(
        {"PlanNum": 8, "CarrierNum": 2, "GroupName": "Gold", "GroupNum": "G-1", "ElectID": "60054"},
        {"2": "Aetna"},
    )
    assert plan.pms_id == "8"
    assert plan.carrier_name == "Aetna"
    assert plan.payer_id == "60054"
    assert plan.group_name == "Gold"


class TestMapInsuranceSubscription:

    def test_subscriber_is_the_patient(self):
        sub = mappers.map_insurance_subscription({
            "InsSubNum": 40,
            "Subscriber": 15,
            "PlanNum": 8,
            "SubscriberID": "XYZ",
            "DateEffective": "2024-01-01",
            "DateTerm": "0001-01-01",
            "Relationship": 1,
        })
        assert sub.patient_pms_id == "15"
        assert sub.plan_pms_id == "8"
        assert sub.date_effective == date(2024, 1, 1)
        assert sub.date_terminated is None
        assert sub.relationship == "spouse"

    def test_missing_relationship_is_none(self):
        sub = mappers.map_insurance_subscription({"InsSubNum": 1, "Subscriber": 2, "PlanNum": 3})
        assert sub.relationship is None

    def test_unknown_relationship_code_is_other(self):
        sub = mappers.map_insurance_subscription({"InsSubNum": 1, "Subscriber": 2, "PlanNum": 3, "Relationship": 42})
        assert sub.relationship == "other"


def test_map_procedure_status_and_optional_refs():
    proc = mappers.map_procedure({
        "ProcNum": 500,
        "PatNum": 15,
        "CodeNum": 12,
        "procCode": "D0120",
        "ProcStatus": 2,
        "AptNum": 0,
        "ProvNum": 0,
        "ProcFee": "85.50",
        "ProcDate": "2024-02-01",
    })
    assert proc.proc_status == "completed"
    assert proc.proc_code == "D0120"
    assert proc.appointment_pms_id is None
    assert proc.provider_pms_id is None
    assert proc.fee == 85.5


def test_map_procedure_code_uses_codenum_as_identity():
    code = mappers.map_procedure_code({"CodeNum": 12, "ProcCode": "D0120", "ProcTime": "/X/", "ProcCat": "Diagnostic"})
    assert code.pms_id == "12"
    assert code.code == "D0120"
    assert code.default_fee is None


class TestMapFamily:

    def test_first_row_is_guarantor_and_entire_family_is_not_a_member(self):
        family = mappers.map_family(
            [
                {"PatNum": 10, "Name": "Perez, Juan", "Balance": 50.0},
                {"PatNum": 11, "Name": "Perez, Ana", "Balance": 20.0},
                {"PatNum": 0, "Name": "Entire Family", "Balance": 70.0},
            ],
            "11",
        )
        assert family.guarantor_pms_id == "10"
        assert family.member_pms_ids == ("10", "11")
        assert family.total_balance == 70.0

    def test_empty_response_is_single_member(self):
        family = mappers.map_family([], "11")
        assert family.guarantor_pms_id == "11"
        assert family.member_pms_ids == ("11",)
        assert family.total_balance == 0.0


def test_build_patient_payload():
    payload = mappers.build_patient_payload(OutboundPatient(
        first_name="Ana",
        last_name="Lopez",
        dob=date(1990, 1, 2),
        phone="555-1",
        gender="female",
        address={"street": "Calle 1", "city": "Austin", "state": "TX", "zip": "78701"},
    ))
    assert payload["FName"] == "Ana"
    assert payload["Birthdate"] == "1990-01-02"
    assert payload["WirelessPhone"] == "555-1"
    assert payload["Gender"] == 1
    assert payload["City"] == "Austin"
