"""Tests for the typed activity detail variants."""

from datetime import datetime

import pydantic
import pytest

from crm.core.database import Database
from crm.core.errors import ConfigurationError
from crm.models.lead import LeadStage
from crm.schemas.activity_details import (
    FormSubmissionDetails,
    OpaqueDetails,
    StageChangeDetails,
    WhatsAppDetails,
    parse_activity_details,
    stage_change_details,
)


def test_stage_change_payload_round_trip():
    payload = stage_change_details(LeadStage.PROSPECT, LeadStage.NEXT_COHORT, datetime(2025, 3, 1, 8, 0))
    assert payload["from_stage"] == "Prospect"
    assert payload["to_stage"] == "Next Cohort"
    assert payload["message"] == "Lead stage changed from Prospect to Next Cohort"

    details = parse_activity_details("Lead Stage Changed", payload)
    assert isinstance(details, StageChangeDetails)
    assert details.to_stage is LeadStage.NEXT_COHORT


def test_stage_change_requires_both_stages():
    with pytest.raises(pydantic.ValidationError):
        parse_activity_details("Lead Stage Changed", {"to_stage": "Enrolled"})


def test_known_provider_types_keep_extra_keys():
    details = parse_activity_details("WA Inbound", {"from": "+91", "text": {"body": "hi"}})
    assert isinstance(details, WhatsAppDetails)
    assert details.model_dump()["text"] == {"body": "hi"}

    details = parse_activity_details("Form Submission", {"source": "Google Forms"})
    assert isinstance(details, FormSubmissionDetails)
    assert details.source == "Google Forms"


def test_unknown_type_is_opaque():
    details = parse_activity_details("Site Visit", {"room": 4})
    assert isinstance(details, OpaqueDetails)
    assert details.data == {"room": 4}

    assert parse_activity_details("Call", None).data == {}


def test_database_requires_url():
    with pytest.raises(ConfigurationError):
        Database("")
