"""Management command to run a dashboard fetch cycle using the same stack as the API."""
from __future__ import annotations

import json
from typing import Any

from django.core.management.base import BaseCommand, CommandError

from carbondash.api.views import build_dashboard_service, serialize_state
from carbondash.core.abstractions import FetchPhase


class Command(BaseCommand):
    help = "Fetch weather and carbon intensity for a UK postcode"

    def add_arguments(self, parser) -> None:  # noqa: D401
        parser.add_argument("--postcode", type=str, required=True, help="UK postcode, e.g. 'SW1A 0AA'")
        parser.add_argument("--tips", action="store_true", help="Also generate energy-saving tips")

    def handle(self, *args: Any, **options: Any) -> None:  # noqa: D401
        service = build_dashboard_service()
        state = service.submit_postcode(options["postcode"])
        if state.fetch_state.phase is FetchPhase.FAILED:
            raise CommandError(state.fetch_state.error or "Fetch failed")

        if options.get("tips"):
            state = service.request_tips()
            if state.fetch_state.error:
                raise CommandError(state.fetch_state.error)

        self.stdout.write(json.dumps(serialize_state(state)))
