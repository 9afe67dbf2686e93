"""
Tests unitarios para OpenDentalAdapter con un cliente HTTP falso.
"""
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

import pytest

from pms_sync.core.config import Settings
from pms_sync.domain.entities.pms_records import OutboundPatient
from pms_sync.infrastructure.external.adapter_factory import build_pms_adapter
from pms_sync.infrastructure.external.open_dental.adapter import OpenDentalAdapter
from pms_sync.shared.exceptions.sync import PmsApiException, PmsNotConfiguredException


class _FakeClient:
    def __init__(self, lists: Optional[Dict[str, Any]] = None, json_responses: Optional[Dict[str, Any]] = None):
        self.lists = lists or {}
        self.json_responses = json_responses or {}
        self.list_calls: List[tuple] = []
        self.posts: List[tuple] = []

    def get_list(self, endpoint, params=None):
        self.list_calls.append((endpoint, params))
        value = self.lists.get(endpoint, [])
        if isinstance(value, Exception):
            raise value
        return value

    def get_json(self, endpoint, params=None):
        return self.json_responses.get(endpoint)

    def post_json(self, endpoint, body):
        self.posts.append((endpoint, body))
        return self.json_responses.get(endpoint)


def _settings(**overrides) -> Settings:
    values = {"OPENDENTAL_DEV_KEY": "dev", "OPENDENTAL_CUSTOMER_KEY": "cust"}
    values.update(overrides)
    return Settings(**values)


def test_is_configured_requires_both_keys():
    assert OpenDentalAdapter(client=_FakeClient(), config=_settings()).is_configured()
    assert not OpenDentalAdapter(client=_FakeClient(), config=_settings(OPENDENTAL_CUSTOMER_KEY="")).is_configured()


def test_factory_builds_open_dental_and_rejects_unknown_source():
    assert isinstance(build_pms_adapter(_settings()), OpenDentalAdapter)
    with pytest.raises(ValueError):
        build_pms_adapter(_settings(PMS_SOURCE="dentrix"))


async def test_fetch_patients_filters_by_modification_stamp():
    client = _FakeClient(lists={"/patients": [
        {"PatNum": 1, "FName": "A", "LName": "Old", "DateTStamp": "2024-01-01 00:00:00"},
        {"PatNum": 2, "FName": "B", "LName": "New", "DateTStamp": "2024-03-01 00:00:00"},
        {"PatNum": 3, "FName": "C", "LName": "NoStamp"},
    ]})
    adapter = OpenDentalAdapter(client=client, config=_settings())

    patients = await adapter.fetch_patients(datetime(2024, 2, 1, tzinfo=timezone.utc))

    assert [p.pms_id for p in patients] == ["2", "3"]


async def test_fetch_appointments_sends_timestamp_and_skips_bad_rows():
    client = _FakeClient(lists={"/appointments": [
        {"AptNum": 1, "PatNum": 2, "AptDateTime": "2024-02-01 09:00:00"},
        {"AptNum": 2, "PatNum": 2, "AptDateTime": "invalid"},
    ]})
    adapter = OpenDentalAdapter(client=client, config=_settings())

    appts = await adapter.fetch_appointments(datetime(2024, 1, 1, 8, 30, tzinfo=timezone.utc))

    assert [a.pms_id for a in appts] == ["1"]
    assert client.list_calls[0] == ("/appointments", {"DateTStamp": "2024-01-01 08:30:00"})


async def test_fetch_insurance_plans_tolerates_carrier_failure():
    client = _FakeClient(lists={
        "/carriers": PmsApiException("boom", endpoint="/carriers"),
        "/insplans": [{"PlanNum": 8, "CarrierNum": 2, "CarrierName": "Fallback"}],
    })
    adapter = OpenDentalAdapter(client=client, config=_settings())

    plans = await adapter.fetch_insurance_plans(None)

    assert plans[0].carrier_name == "Fallback"


async def test_fetch_family_members():
    client = _FakeClient(json_responses={"/accountmodules/11/PatientBalances": [
        {"PatNum": 10, "Name": "Perez, Juan"},
        {"PatNum": 11, "Name": "Perez, Ana"},
        {"PatNum": 0, "Name": "Entire Family", "Balance": 12.5},
    ]})
    adapter = OpenDentalAdapter(client=client, config=_settings())

    family = await adapter.fetch_family_members("11")

    assert family.guarantor_pms_id == "10"
    assert family.member_pms_ids == ("10", "11")
    assert family.total_balance == 12.5


async def test_push_patient_returns_patnum():
    client = _FakeClient(json_responses={"/patients": {"PatNum": 321}})
    adapter = OpenDentalAdapter(client=client, config=_settings())

    pms_id = await adapter.push_patient(OutboundPatient(first_name="Ana", last_name="Lopez"))

    assert pms_id == "321"
    assert client.posts[0][1]["LName"] == "Lopez"


async def test_push_patient_without_patnum_is_api_error():
    adapter = OpenDentalAdapter(client=_FakeClient(json_responses={"/patients": {}}), config=_settings())

    with pytest.raises(PmsApiException):
        await adapter.push_patient(OutboundPatient(first_name="Ana", last_name="Lopez"))


async def test_push_patient_requires_configuration():
    adapter = OpenDentalAdapter(client=_FakeClient(), config=_settings(OPENDENTAL_DEV_KEY=""))

    with pytest.raises(PmsNotConfiguredException):
        await adapter.push_patient(OutboundPatient(first_name="Ana", last_name="Lopez"))
