"""Tests for the inspector actors: dispatch, blocking and the kind decision rule."""

import pytest

from conftest import ScriptedRandom, finished_component, make_workstations
from facility_sim import (
    ComponentKind,
    DispatchPolicy,
    InspectorOne,
    InspectorTwo,
    InvariantViolation,
    SimulationStarted,
    WorkstationId,
    WorkstationStarted,
)
from facility_sim.timebase import Duration, TimeStamp

C1, C2, C3 = ComponentKind.C1, ComponentKind.C2, ComponentKind.C3
WS1, WS2, WS3 = WorkstationId.WS1, WorkstationId.WS2, WorkstationId.WS3
T0 = TimeStamp.start()


def minutes(*values: float):
    return [Duration.of_minutes(v) for v in values]


def fill(workstations, ws: WorkstationId, kind: ComponentKind, count: int) -> None:
    for _ in range(count):
        assert workstations[ws].enqueue(finished_component(kind), T0).accepted


class TestInspectorOneDispatch:
    """Tests for routing finished C1 to a workstation."""

    @pytest.mark.parametrize(
        "loads, expected",
        [
            ({WS1: 0, WS2: 0, WS3: 0}, WS1),
            ({WS1: 1, WS2: 0, WS3: 0}, WS2),
            ({WS1: 1, WS2: 1, WS3: 0}, WS3),
            ({WS1: 2, WS2: 1, WS3: 1}, WS2),
        ],
    )
    def test_least_loaded_with_preference_ties(self, loads, expected):
        """Fewest waiting C1 wins; ties go to WS1, then WS2, then WS3."""
        workstations = make_workstations()
        for ws, count in loads.items():
            fill(workstations, ws, C1, count)
        inspector = InspectorOne(workstations, minutes(1.0))
        target = inspector.select_target(finished_component(C1))
        assert target.id is expected

    @pytest.mark.parametrize(
        "loads, expected",
        [
            ({WS1: 0, WS2: 0, WS3: 0}, WS1),
            ({WS1: 0, WS2: 1, WS3: 1}, WS2),
            ({WS1: 1, WS2: 2, WS3: 0}, WS1),
            ({WS1: 2, WS2: 2, WS3: 2}, WS1),
        ],
    )
    def test_most_loaded_skips_full_buffers(self, loads, expected):
        """Most waiting C1 among non-full buffers; all full tries WS1."""
        workstations = make_workstations()
        for ws, count in loads.items():
            fill(workstations, ws, C1, count)
        inspector = InspectorOne(
            workstations, minutes(1.0), policy=DispatchPolicy.MOST_LOADED
        )
        target = inspector.select_target(finished_component(C1))
        assert target.id is expected


class TestInspectorOneLifecycle:
    """Tests for Inspector 1 inspection, placement and blocking."""

    def test_starts_on_simulation_started(self):
        inspector = InspectorOne(make_workstations(), minutes(5.0, 5.0))
        assert inspector.next_event_time(T0) is None

        assert inspector.respond_to(SimulationStarted(T0)) is None
        assert inspector.next_event_time(T0) == TimeStamp(5.0)
        assert inspector.inspected == 1
        assert inspector.inspection_starts[0]["timestamp"] == 0.0

    def test_no_supply_at_start_raises(self):
        inspector = InspectorOne(make_workstations(), [])
        with pytest.raises(InvariantViolation):
            inspector.respond_to(SimulationStarted(T0))

    def test_placement_into_idle_workstation_emits_start(self):
        """Placing the last missing material notifies the workstation."""
        workstations = make_workstations({WS1: [3.0]})
        inspector = InspectorOne(workstations, minutes(5.0, 5.0))
        inspector.respond_to(SimulationStarted(T0))

        event = inspector.respond(TimeStamp(5.0))
        assert isinstance(event, WorkstationStarted)
        assert event.workstation is WS1
        assert event.timestamp == TimeStamp(5.0)
        # next inspection begins in the same step
        assert inspector.next_event_time(TimeStamp(5.0)) == TimeStamp(10.0)
        assert inspector.placed == 1
        assert not inspector.blocked

    def test_rejection_blocks_until_downstream_frees(self):
        workstations = make_workstations({WS1: [1.0, 1.0]})
        for ws in WorkstationId:
            fill(workstations, ws, C1, 2)
        inspector = InspectorOne(workstations, minutes(5.0, 5.0))
        inspector.respond_to(SimulationStarted(T0))

        assert inspector.respond(TimeStamp(5.0)) is None
        assert inspector.blocked
        assert inspector.held[C1].is_finished
        assert inspector.next_event_time(TimeStamp(5.0)) is None

        # dispatching a blocked inspector is an invariant violation
        with pytest.raises(InvariantViolation):
            inspector.respond(TimeStamp(5.0))

        ws1 = workstations[WS1]
        ws1.start_assembly(TimeStamp(5.0))
        assembled = ws1.on_timer_fires(TimeStamp(6.0))

        # WS1 restarted on its own, so no start notification is needed
        assert inspector.respond_to(assembled) is None
        assert not inspector.blocked
        assert inspector.held_count == 1  # the new inspection
        assert inspector.placed == 1
        assert ws1.waiting(C1) == 2
        assert inspector.next_event_time(TimeStamp(6.0)) == TimeStamp(11.0)
        assert inspector.blocked_periods == [
            {"inspector": "Inspector1", "start": 5.0, "end": 6.0}
        ]

    def test_idle_after_supply_exhausted(self):
        """With nothing held and no supply the inspector is done, not blocked."""
        inspector = InspectorOne(make_workstations(), minutes(2.0))
        inspector.respond_to(SimulationStarted(T0))
        inspector.respond(TimeStamp(2.0))
        assert not inspector.blocked
        assert inspector.held_count == 0
        assert inspector.next_event_time(TimeStamp(2.0)) is None

    def test_double_finish_raises(self):
        inspector = InspectorOne(make_workstations(), minutes(2.0, 2.0))
        inspector.respond_to(SimulationStarted(T0))
        inspector.finish_current_inspection(TimeStamp(2.0))
        with pytest.raises(InvariantViolation):
            inspector.finish_current_inspection(TimeStamp(2.0))


class TestInspectorTwoDecision:
    """Tests for choosing between C2 and C3."""

    def test_random_choice_when_both_open(self):
        """True selects C3, False selects C2."""
        rng = ScriptedRandom(booleans=[True])
        inspector = InspectorTwo(make_workstations(), minutes(1.0), minutes(1.0), rng)
        assert inspector.decide_next_kind() is C3

        rng = ScriptedRandom(booleans=[False])
        inspector = InspectorTwo(make_workstations(), minutes(1.0), minutes(1.0), rng)
        assert inspector.decide_next_kind() is C2

    def test_only_remaining_supply_is_chosen(self):
        """A single kind with supply is chosen even if its buffer is full."""
        workstations = make_workstations()
        fill(workstations, WS3, C3, 2)
        inspector = InspectorTwo(workstations, [], minutes(1.0), ScriptedRandom())
        assert inspector.decide_next_kind() is C3

    def test_full_buffer_steers_to_other_kind(self):
        workstations = make_workstations()
        fill(workstations, WS2, C2, 2)
        inspector = InspectorTwo(
            workstations, minutes(1.0), minutes(1.0), ScriptedRandom()
        )
        assert inspector.decide_next_kind() is C3

    def test_both_full_gives_no_decision(self):
        workstations = make_workstations()
        fill(workstations, WS2, C2, 2)
        fill(workstations, WS3, C3, 2)
        inspector = InspectorTwo(
            workstations, minutes(1.0), minutes(1.0), ScriptedRandom()
        )
        assert inspector.decide_next_kind() is None

    def test_no_supply_gives_no_decision(self):
        inspector = InspectorTwo(make_workstations(), [], [], ScriptedRandom())
        assert inspector.decide_next_kind() is None

    def test_held_kind_is_never_chosen(self):
        """With a C2 waiting, only C3 can be started."""
        inspector = InspectorTwo(
            make_workstations(), minutes(1.0, 1.0), minutes(1.0), ScriptedRandom()
        )
        inspector.held[C2] = finished_component(C2)
        assert inspector.decide_next_kind() is C3


class TestInspectorTwoBlocking:
    """Tests for Inspector 2 stalling on full buffers."""

    def test_rejected_component_waits_while_other_kind_inspected(self):
        workstations = make_workstations()
        inspector = InspectorTwo(
            workstations,
            minutes(10.0, 10.0),
            minutes(10.0, 10.0),
            ScriptedRandom(booleans=[False]),
        )
        inspector.respond_to(SimulationStarted(T0))
        assert inspector.active.kind is C2

        fill(workstations, WS2, C2, 2)
        assert inspector.respond(TimeStamp(10.0)) is None

        assert not inspector.blocked
        assert inspector.held[C2].is_finished
        assert inspector.active.kind is C3
        assert inspector.next_event_time(TimeStamp(10.0)) == TimeStamp(20.0)

    def test_both_full_stays_blocked_until_matching_kind_freed(self):
        """A finished C2 facing two full buffers waits for a P2, not a P3."""
        workstations = make_workstations({WS2: [1.0], WS3: [1.0]})
        inspector = InspectorTwo(
            workstations,
            minutes(10.0, 10.0),
            minutes(10.0, 10.0),
            ScriptedRandom(booleans=[False]),
        )
        inspector.respond_to(SimulationStarted(T0))
        fill(workstations, WS2, C2, 2)
        fill(workstations, WS3, C3, 2)

        t10 = TimeStamp(10.0)
        inspector.finish_current_inspection(t10)
        result = inspector.try_place_held_component(t10, C2)
        assert not result.placed
        assert result.event is None
        assert inspector.blocked
        assert inspector.next_event_time(t10) is None

        # A P3 frees C3 space, but the waiting C2 still has nowhere to go
        ws3 = workstations[WS3]
        ws3.enqueue(finished_component(C1), t10)
        ws3.start_assembly(t10)
        p3 = ws3.on_timer_fires(TimeStamp(11.0))
        assert inspector.respond_to(p3) is None
        assert inspector.blocked
        assert inspector.inspected == 1

        # A P2 frees C2 space: the C2 is placed and inspection resumes
        ws2 = workstations[WS2]
        ws2.enqueue(finished_component(C1), t10)
        ws2.start_assembly(t10)
        p2 = ws2.on_timer_fires(TimeStamp(11.0))
        assert inspector.respond_to(p2) is None
        assert inspector.placed == 1
        assert not inspector.blocked
        assert inspector.active.kind is C3
        assert inspector.blocked_periods == [
            {"inspector": "Inspector2", "start": 10.0, "end": 11.0}
        ]

    def test_stalled_without_holding_resumes_on_any_freed_kind(self):
        """Both buffers full after a placement: resume when either drains."""
        workstations = make_workstations({WS3: [1.0]})
        inspector = InspectorTwo(
            workstations,
            minutes(10.0, 10.0),
            minutes(10.0, 10.0),
            ScriptedRandom(booleans=[False]),
        )
        inspector.respond_to(SimulationStarted(T0))
        fill(workstations, WS2, C2, 1)
        fill(workstations, WS3, C3, 2)

        t10 = TimeStamp(10.0)
        inspector.respond(t10)
        assert inspector.held_count == 0
        assert inspector.blocked

        ws3 = workstations[WS3]
        ws3.enqueue(finished_component(C1), t10)
        ws3.start_assembly(TimeStamp(11.0))
        p3 = ws3.on_timer_fires(TimeStamp(12.0))
        inspector.respond_to(p3)
        assert not inspector.blocked
        assert inspector.active.kind is C3
        assert inspector.active.inspection_start == TimeStamp(12.0)

    def test_conservation_counters(self):
        workstations = make_workstations()
        inspector = InspectorTwo(
            workstations,
            minutes(10.0, 10.0),
            minutes(10.0, 10.0),
            ScriptedRandom(booleans=[False]),
        )
        inspector.respond_to(SimulationStarted(T0))
        fill(workstations, WS2, C2, 2)
        inspector.respond(TimeStamp(10.0))
        assert inspector.inspected == inspector.placed + inspector.held_count
