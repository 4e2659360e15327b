"""Dashboard service: one postcode in, weather and a chartable intensity series out."""
from __future__ import annotations

import logging
from dataclasses import replace
from datetime import datetime, timezone, tzinfo
from threading import Lock
from typing import Callable, Optional

from carbondash.core.abstractions import (
    CarbonIntensityFetcher,
    DashboardState,
    FetchPhase,
    FetchState,
    LocationResolver,
    TipGenerator,
    TipRequest,
    WeatherProvider,
)
from carbondash.core.concurrency import gather
from carbondash.core.errors import DashboardError, EmptySeries
from carbondash.core.series import DISPLAY_TIME_ZONE, merge_series, select_nearest


logger = logging.getLogger(__name__)

UNEXPECTED_ERROR = "Something went wrong while fetching data. Please try again."


def utcnow() -> datetime:
    return datetime.now(tz=timezone.utc)


class DashboardService:
    """Owns the dashboard state and sequences every upstream call.

    A fetch cycle resolves the postcode first, then fetches weather and
    carbon intensity concurrently. Either failure fails the whole cycle and
    clears all data. Each cycle takes a new token; results from a superseded
    cycle are dropped instead of committed.
    """

    def __init__(
        self,
        *,
        resolver: LocationResolver,
        weather_provider: WeatherProvider,
        carbon_fetcher: CarbonIntensityFetcher,
        tip_generator: TipGenerator,
        clock: Callable[[], datetime] = utcnow,
        time_zone: tzinfo = DISPLAY_TIME_ZONE,
    ) -> None:
        self._resolver = resolver
        self._weather = weather_provider
        self._carbon = carbon_fetcher
        self._tips = tip_generator
        self._clock = clock
        self._time_zone = time_zone
        self._state = DashboardState()
        self._cycle = 0
        self._tips_in_flight = False
        self._lock = Lock()

    # Public API ---------------------------------------------------------
    def snapshot(self) -> DashboardState:
        with self._lock:
            return self._state

    def submit_postcode(self, text: str, now: Optional[datetime] = None) -> DashboardState:
        now = now or self._clock()
        with self._lock:
            self._cycle += 1
            token = self._cycle
            self._state = DashboardState(
                fetch_state=FetchState(phase=FetchPhase.LOADING),
                tips_loading=self._tips_in_flight,
            )
        logger.info("Fetch cycle %s started for %r", token, text)

        try:
            location = self._resolver.resolve(text)
            weather, readings = gather(
                lambda: self._weather.get_weather(location),
                lambda: self._carbon.fetch(location, now),
            )
            series = merge_series(readings.primary, readings.secondary, tz=self._time_zone)
        except DashboardError as exc:
            logger.warning("Fetch cycle %s failed: %s", token, exc)
            self._commit(token, self._failed(str(exc), exc.code))
        except Exception:  # noqa: BLE001 - the cycle must always settle
            logger.exception("Fetch cycle %s failed unexpectedly", token)
            self._commit(token, self._failed(UNEXPECTED_ERROR, "unexpected_error"))
        else:
            location = replace(
                location,
                region_id=readings.region_id,
                region_name=readings.region_label,
            )
            logger.info("Fetch cycle %s ready with %s samples", token, len(series))
            self._commit(
                token,
                DashboardState(
                    fetch_state=FetchState(phase=FetchPhase.READY),
                    location=location,
                    weather=weather,
                    series=series,
                    region_label=readings.region_label,
                ),
            )
        return self.snapshot()

    def request_tips(self, now: Optional[datetime] = None) -> DashboardState:
        now = now or self._clock()
        with self._lock:
            if self._tips_in_flight:
                logger.info("Tip generation already in flight, ignoring request")
                return self._state
            token = self._cycle
            series = self._state.series if self._state.fetch_state.phase is FetchPhase.READY else None
            region_label = self._state.region_label
            self._tips_in_flight = True
            self._state = replace(self._state, tips=None, tips_loading=True)

        tips: Optional[str] = None
        error: Optional[str] = None
        error_code: Optional[str] = None
        try:
            if not series:
                raise EmptySeries(
                    "No carbon intensity data available to generate tips. Please fetch data first."
                )
            sample = select_nearest(series, now)
            tips = self._tips.generate(
                TipRequest(
                    region_label=region_label,
                    current_intensity=sample.local_intensity,
                    reference_intensity=sample.national_intensity,
                )
            )
        except DashboardError as exc:
            logger.warning("Tip generation failed: %s", exc)
            error, error_code = str(exc), exc.code
        except Exception:  # noqa: BLE001 - the task must always settle
            logger.exception("Tip generation failed unexpectedly")
            error, error_code = UNEXPECTED_ERROR, "unexpected_error"
        finally:
            # The busy flag spans cycles; only the state update is cycle-scoped.
            with self._lock:
                self._tips_in_flight = False
                if token != self._cycle:
                    logger.info("Discarding tips from superseded cycle %s", token)
                    self._state = replace(self._state, tips_loading=False)
                else:
                    fetch_state = self._state.fetch_state
                    if error is not None:
                        fetch_state = replace(
                            fetch_state,
                            error=f"Failed to generate tips: {error}",
                            error_code=error_code,
                        )
                    self._state = replace(self._state, fetch_state=fetch_state, tips=tips, tips_loading=False)
        return self.snapshot()

    def dismiss_error(self) -> DashboardState:
        with self._lock:
            fetch_state = self._state.fetch_state
            phase = FetchPhase.IDLE if fetch_state.phase is FetchPhase.FAILED else fetch_state.phase
            self._state = replace(self._state, fetch_state=FetchState(phase=phase))
            return self._state

    # Helpers ------------------------------------------------------------
    @staticmethod
    def _failed(message: str, code: str) -> DashboardState:
        return DashboardState(fetch_state=FetchState(phase=FetchPhase.FAILED, error=message, error_code=code))

    def _commit(self, token: int, state: DashboardState) -> None:
        with self._lock:
            if token != self._cycle:
                logger.info("Discarding results from superseded cycle %s", token)
                return
            self._state = replace(state, tips_loading=self._tips_in_flight)


__all__ = ["DashboardService", "utcnow"]
