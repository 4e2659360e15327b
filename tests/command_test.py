from __future__ import annotations

import json
import re
from io import StringIO

import pytest
from django.core.management import call_command
from django.core.management.base import CommandError


def test_carbon_fetch_prints_state(upstreams, regional_payload, national_payload) -> None:
    upstreams.get(re.compile(r"https://api\.carbonintensity\.org\.uk/regional/intensity/.*"), json=regional_payload)
    upstreams.get(re.compile(r"https://api\.carbonintensity\.org\.uk/intensity/.*"), json=national_payload)
    out = StringIO()

    call_command("carbon_fetch", "--postcode", "SW1A 0AA", stdout=out)

    payload = json.loads(out.getvalue())
    assert payload["fetch_state"]["phase"] == "ready"
    assert payload["weather"]["description"] == "light rain"
    assert len(payload["series"]) == 2


def test_carbon_fetch_reports_failures(requests_mock) -> None:
    requests_mock.get("https://api.postcodes.io/postcodes/ZZ99ZZ", status_code=404, json={"status": 404})

    with pytest.raises(CommandError, match="Invalid UK Postcode"):
        call_command("carbon_fetch", "--postcode", "ZZ9 9ZZ")
