"""Tests for the signal detectors"""

from datetime import timedelta

import pytest

from lifeos.optimization.detectors import (
    DetectorThresholds,
    TravelSignals,
    detect_buffer_deficiency,
    detect_burnout_risk,
    detect_energy_misalignment,
    detect_focus_violations,
    detect_travel_disruption,
)
from lifeos.optimization.models import (
    GENERATED_BLOCK_KEY,
    TRAVEL_ADJUSTMENT_KEY,
    TRAVEL_BUFFER_KEY,
    FlightState,
    FlightStatus,
    RouteConditions,
    SuggestionAction,
    SuggestionType,
    WeatherConditions,
    WorkloadAnalysis,
)
from lifeos.optimization.policy import PolicyGate


class TestEnergyDetector:
    def test_moves_important_meeting_to_nearest_high_energy_slot(
        self, make_event, preferences_factory, thresholds, at
    ) -> None:
        prefs = preferences_factory(
            energy_pattern={"high_energy": ["09:00-11:00"], "low_energy": ["13:00-14:00"]}
        )
        events = [make_event("strategy", (13, 0), (14, 0), title="Strategy Review")]

        suggestions = detect_energy_misalignment(events, prefs, thresholds=thresholds)

        assert len(suggestions) == 1
        suggestion = suggestions[0]
        assert suggestion.type == SuggestionType.ENERGY_ALIGNMENT
        assert suggestion.action == SuggestionAction.MOVE_EVENT
        assert suggestion.confidence >= 0.8
        assert suggestion.proposed_start == at(10)
        assert suggestion.proposed_end == at(11)
        assert suggestion.event_id == "strategy"

    def test_partial_overlap_with_high_energy_is_marginal(
        self, make_event, preferences_factory, thresholds
    ) -> None:
        events = [make_event("review", (13, 30), (14, 30))]
        suggestions = detect_energy_misalignment(
            events, preferences_factory(), thresholds=thresholds
        )
        assert len(suggestions) == 1
        assert suggestions[0].confidence == thresholds.energy_marginal_confidence

    def test_short_meetings_are_ignored(
        self, make_event, preferences_factory, thresholds
    ) -> None:
        events = [make_event("sync", (13, 0), (13, 20))]
        assert detect_energy_misalignment(events, preferences_factory(), thresholds=thresholds) == []

    def test_skips_busy_slots(self, make_event, preferences_factory, thresholds, at) -> None:
        prefs = preferences_factory(
            energy_pattern={"high_energy": ["09:00-11:00"], "low_energy": ["13:00-14:00"]}
        )
        events = [
            make_event("strategy", (13, 0), (14, 0)),
            make_event("busy", (10, 0), (11, 0)),
        ]
        suggestions = detect_energy_misalignment(events, prefs, thresholds=thresholds)
        assert suggestions[0].proposed_start == at(9)

    def test_ids_are_deterministic(self, make_event, preferences_factory, thresholds) -> None:
        events = [make_event("strategy", (13, 0), (14, 0))]
        prefs = preferences_factory()
        first = detect_energy_misalignment(events, prefs, thresholds=thresholds)
        second = detect_energy_misalignment(events, prefs, thresholds=thresholds)
        assert [s.id for s in first] == [s.id for s in second]


class TestBufferDetector:
    def test_short_gap_yields_one_buffer(
        self, make_event, preferences_factory, thresholds, at
    ) -> None:
        events = [
            make_event("a", (9, 0), (10, 0)),
            make_event("b", (10, 5), (11, 0)),
        ]
        suggestions = detect_buffer_deficiency(events, preferences_factory(), thresholds=thresholds)

        assert len(suggestions) == 1
        buffer = suggestions[0]
        assert buffer.action == SuggestionAction.CREATE_BLOCK
        assert buffer.proposed_start == at(10)
        assert buffer.proposed_end == at(10, 15)
        assert buffer.estimated_minutes_saved == 15
        assert buffer.metadata == {"after_event": "a", "before_event": "b"}

    def test_enough_gap_yields_nothing(self, make_event, preferences_factory, thresholds) -> None:
        events = [
            make_event("a", (9, 0), (10, 0)),
            make_event("b", (10, 15), (11, 0)),
        ]
        assert detect_buffer_deficiency(events, preferences_factory(), thresholds=thresholds) == []

    def test_zero_buffer_preference_disables_detector(
        self, make_event, preferences_factory, thresholds
    ) -> None:
        events = [
            make_event("a", (9, 0), (10, 0)),
            make_event("b", (10, 0), (11, 0)),
        ]
        prefs = preferences_factory(buffer_time=0)
        assert detect_buffer_deficiency(events, prefs, thresholds=thresholds) == []

    def test_existing_buffer_block_is_respected(
        self, make_event, preferences_factory, thresholds
    ) -> None:
        events = [
            make_event("a", (9, 0), (10, 0)),
            make_event(
                "buffer", (10, 0), (10, 15), metadata={GENERATED_BLOCK_KEY: "add-buffer"}
            ),
            make_event("b", (10, 5), (11, 0)),
        ]
        assert detect_buffer_deficiency(events, preferences_factory(), thresholds=thresholds) == []


class TestFocusDetector:
    def test_meeting_in_focus_block_is_moved_later(
        self, make_event, preferences_factory, thresholds, at
    ) -> None:
        prefs = preferences_factory(focus_time_blocks=["09:00-11:00"])
        events = [make_event("sync", (9, 30), (10, 0))]

        suggestions = detect_focus_violations(events, prefs, thresholds=thresholds)

        assert len(suggestions) == 1
        assert suggestions[0].action == SuggestionAction.MOVE_EVENT
        assert suggestions[0].proposed_start == at(11, 30)
        assert suggestions[0].metadata["focus_window"] == "09:00-11:00"
        assert suggestions[0].confidence < 0.8

    def test_no_slot_becomes_informational(
        self, make_event, preferences_factory
    ) -> None:
        prefs = preferences_factory(focus_time_blocks=["09:00-11:00"])
        events = [make_event("sync", (9, 30), (10, 0))]
        narrow = DetectorThresholds(focus_search_hours=1)

        suggestions = detect_focus_violations(events, prefs, thresholds=narrow)

        assert len(suggestions) == 1
        assert suggestions[0].action == SuggestionAction.NONE
        assert suggestions[0].proposed_start is None

    def test_meeting_outside_focus_block(
        self, make_event, preferences_factory, thresholds
    ) -> None:
        prefs = preferences_factory(focus_time_blocks=["09:00-11:00"])
        events = [make_event("sync", (11, 0), (11, 30))]
        assert detect_focus_violations(events, prefs, thresholds=thresholds) == []


class TestBurnoutDetector:
    def test_critical_risk(self, make_event, preferences_factory, thresholds, at) -> None:
        events = [make_event("a", (9, 0), (10, 0))]
        workload = WorkloadAnalysis(burnout_risk=9, weekly_hours=45)

        suggestions = detect_burnout_risk(
            events, preferences_factory(), workload, thresholds=thresholds
        )

        assert len(suggestions) == 3
        assert all(s.type == SuggestionType.SUGGEST_BREAK for s in suggestions)
        assert all(s.burnout_risk == 9 for s in suggestions)
        assert [s.priority for s in suggestions] == [10, 9, 8]
        assert suggestions[0].confidence == 0.9
        assert suggestions[0].action == SuggestionAction.CREATE_BLOCK
        assert suggestions[0].proposed_start == at(10)
        assert suggestions[0].proposed_end == at(10, 30)

    def test_elevated_risk(self, make_event, preferences_factory, thresholds) -> None:
        events = [make_event("a", (9, 0), (10, 0))]
        suggestions = detect_burnout_risk(
            events,
            preferences_factory(),
            WorkloadAnalysis(burnout_risk=7),
            thresholds=thresholds,
        )
        assert suggestions[0].priority == 7
        assert suggestions[0].confidence == 0.7

    def test_low_risk_yields_nothing(self, preferences_factory, thresholds) -> None:
        assert (
            detect_burnout_risk(
                [], preferences_factory(), WorkloadAnalysis(burnout_risk=3), thresholds=thresholds
            )
            == []
        )
        assert detect_burnout_risk([], preferences_factory(), None, thresholds=thresholds) == []

    def test_break_is_never_in_the_past(
        self, make_event, preferences_factory, thresholds, at
    ) -> None:
        events = [make_event(f"m{h}", (h, 0), (h + 1, 0)) for h in range(13, 20)]
        workload = WorkloadAnalysis(burnout_risk=10)

        anytime = detect_burnout_risk(
            events, preferences_factory(), workload, thresholds=thresholds
        )
        later = detect_burnout_risk(
            events,
            preferences_factory(),
            workload,
            thresholds=thresholds,
            not_before=at(12, 30),
        )

        assert anytime[0].proposed_start == at(9)
        assert later[0].proposed_start == at(12, 30)
        assert later[0].proposed_end == at(13)

    def test_no_gap_left_today_moves_break_after_now(
        self, make_event, preferences_factory, thresholds, at
    ) -> None:
        events = [make_event(f"m{h}", (h, 0), (h + 1, 0)) for h in range(13, 20)]

        suggestions = detect_burnout_risk(
            events,
            preferences_factory(),
            WorkloadAnalysis(burnout_risk=10),
            thresholds=thresholds,
            not_before=at(13, 10),
        )

        assert suggestions[0].proposed_start == at(13, 10, day=1)
        assert suggestions[0].proposed_start > at(13, 10)


class TestTravelDetector:
    @pytest.fixture
    def flight(self, at):
        def _flight(delay: int, status: FlightState = FlightState.DELAYED) -> FlightStatus:
            return FlightStatus(
                flight_number="LH400",
                status=status,
                scheduled_arrival=at(10),
                delay_minutes=delay,
            )

        return _flight

    def test_long_delay_shifts_meeting(
        self, make_event, preferences_factory, thresholds, flight, at
    ) -> None:
        events = [make_event("client", (11, 30), (12, 30))]
        prefs = preferences_factory()

        suggestions = detect_travel_disruption(
            events, prefs, signal=TravelSignals(flights=(flight(45),)), thresholds=thresholds
        )

        assert len(suggestions) == 1
        move = suggestions[0]
        assert move.action == SuggestionAction.MOVE_EVENT
        assert move.proposed_start == at(11, 30) + timedelta(minutes=45)
        assert move.proposed_end == at(12, 30) + timedelta(minutes=45)
        assert move.confidence == 0.95
        assert move.metadata[TRAVEL_ADJUSTMENT_KEY] == "LH400:45"
        assert PolicyGate().gate(move, prefs).auto_approve

    def test_already_adjusted_meeting_is_skipped(
        self, make_event, preferences_factory, thresholds, flight
    ) -> None:
        events = [
            make_event(
                "client", (11, 30), (12, 30), metadata={TRAVEL_ADJUSTMENT_KEY: "LH400:45"}
            )
        ]
        assert (
            detect_travel_disruption(
                events,
                preferences_factory(),
                signal=TravelSignals(flights=(flight(45),)),
                thresholds=thresholds,
            )
            == []
        )

    def test_short_delay_suggests_joining_remotely(
        self, make_event, preferences_factory, thresholds, flight
    ) -> None:
        events = [make_event("client", (11, 0), (12, 0))]
        signal = TravelSignals(flights=(flight(20),))

        suggestions = detect_travel_disruption(
            events, preferences_factory(), signal=signal, thresholds=thresholds
        )
        assert len(suggestions) == 1
        assert suggestions[0].action == SuggestionAction.NONE

        no_remote = preferences_factory(travel={"allow_remote_alternatives": False})
        assert (
            detect_travel_disruption(events, no_remote, signal=signal, thresholds=thresholds)
            == []
        )

    def test_cancelled_flight(self, make_event, preferences_factory, thresholds, flight) -> None:
        events = [make_event("client", (11, 0), (12, 0))]
        suggestions = detect_travel_disruption(
            events,
            preferences_factory(),
            signal=TravelSignals(flights=(flight(0, FlightState.CANCELLED),)),
            thresholds=thresholds,
        )
        assert len(suggestions) == 1
        assert suggestions[0].type == SuggestionType.RESCHEDULE
        assert suggestions[0].action == SuggestionAction.NONE

    def test_meetings_outside_arrival_window_are_ignored(
        self, make_event, preferences_factory, thresholds, flight
    ) -> None:
        events = [make_event("late", (15, 0), (16, 0))]
        assert (
            detect_travel_disruption(
                events,
                preferences_factory(),
                signal=TravelSignals(flights=(flight(90),)),
                thresholds=thresholds,
            )
            == []
        )

    def test_heavy_traffic_adds_leave_early_block(
        self, make_event, preferences_factory, thresholds, at
    ) -> None:
        conditions = RouteConditions(
            route_id="home-office",
            origin="Home",
            destination="Office",
            normal_duration_minutes=20,
            live_duration_minutes=50,
            observed_at=at(8),
        )
        events = [
            make_event("standup", (9, 0), (10, 0), location="Main office, floor 3"),
            make_event("offsite", (9, 0), (10, 0), location="Conference center"),
            make_event("afternoon", (14, 0), (15, 0), location="Office"),
        ]

        suggestions = detect_travel_disruption(
            events,
            preferences_factory(),
            signal=TravelSignals(routes=(conditions,)),
            thresholds=thresholds,
        )

        assert len(suggestions) == 1
        block = suggestions[0]
        assert block.action == SuggestionAction.CREATE_BLOCK
        assert block.proposed_start == at(8, 10)
        assert block.proposed_end == at(8, 40)
        assert block.metadata[TRAVEL_BUFFER_KEY] == "standup:home-office"

    def test_no_signal(self, make_event, preferences_factory, thresholds) -> None:
        events = [make_event("client", (11, 0), (12, 0))]
        assert detect_travel_disruption(events, preferences_factory(), thresholds=thresholds) == []
        assert (
            detect_travel_disruption(
                events, preferences_factory(), signal=TravelSignals(), thresholds=thresholds
            )
            == []
        )


class TestWeatherDisruption:
    @pytest.fixture
    def office_meeting(self, make_event):
        return make_event("client", (10, 0), (11, 0), location="Office")

    def test_storm_suggests_going_virtual(
        self, office_meeting, preferences_factory, thresholds, at
    ) -> None:
        storm = WeatherConditions(
            location="Office",
            condition="Thunderstorm",
            impact=WeatherConditions.assess("Thunderstorm"),
            observed_at=at(8),
        )

        suggestions = detect_travel_disruption(
            [office_meeting],
            preferences_factory(),
            signal=TravelSignals(weather=(storm,)),
            thresholds=thresholds,
        )

        assert len(suggestions) == 1
        advice = suggestions[0]
        assert advice.type == SuggestionType.TRAVEL_ADJUSTMENT
        assert advice.action == SuggestionAction.NONE
        assert "virtually" in advice.reasoning
        assert not PolicyGate().gate(advice, preferences_factory()).auto_approve

    def test_rain_adds_travel_buffer(
        self, office_meeting, preferences_factory, thresholds, at
    ) -> None:
        rain = WeatherConditions(
            location="office", condition="Rain", impact="medium", observed_at=at(8)
        )

        suggestions = detect_travel_disruption(
            [office_meeting],
            preferences_factory(),
            signal=TravelSignals(weather=(rain,)),
            thresholds=thresholds,
        )

        assert len(suggestions) == 1
        block = suggestions[0]
        assert block.action == SuggestionAction.CREATE_BLOCK
        assert block.proposed_start == at(9, 30)
        assert block.proposed_end == at(10)
        assert block.metadata[TRAVEL_BUFFER_KEY] == "client:weather"

    def test_existing_weather_buffer_is_not_duplicated(
        self, office_meeting, make_event, preferences_factory, thresholds, at
    ) -> None:
        buffer = make_event(
            "buffer",
            (9, 30),
            (10, 0),
            metadata={GENERATED_BLOCK_KEY: "travel-adjustment", TRAVEL_BUFFER_KEY: "client:weather"},
        )
        rain = WeatherConditions(
            location="Office", condition="Rain", impact="medium", observed_at=at(8)
        )
        assert (
            detect_travel_disruption(
                [office_meeting, buffer],
                preferences_factory(),
                signal=TravelSignals(weather=(rain,)),
                thresholds=thresholds,
            )
            == []
        )

    def test_clear_weather_and_far_meetings_are_ignored(
        self, make_event, preferences_factory, thresholds, at
    ) -> None:
        events = [
            make_event("client", (10, 0), (11, 0), location="Office"),
            make_event("tomorrow", (10, 0), (11, 0), day=1, location="Office"),
        ]
        clear = WeatherConditions(location="Office", condition="Clear", observed_at=at(8))
        snow = WeatherConditions(
            location="Office", condition="Snow", impact="high", observed_at=at(8)
        )

        assert (
            detect_travel_disruption(
                events,
                preferences_factory(),
                signal=TravelSignals(weather=(clear,)),
                thresholds=thresholds,
            )
            == []
        )
        suggestions = detect_travel_disruption(
            events,
            preferences_factory(),
            signal=TravelSignals(weather=(snow,)),
            thresholds=thresholds,
        )
        assert [s.event_id for s in suggestions] == ["client"]
