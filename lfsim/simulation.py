import logging
import threading
from dataclasses import dataclass, replace
from datetime import datetime, timedelta
from typing import Callable, List, Optional, Tuple

from lfsim.core.config import ScenarioConfig, GeoLocation, Schedule, TIME_FORMAT
from lfsim.core.geometry import MirrorArraySpec, ReceiverGeometry
from lfsim.core.solar import SolarCalculator, SolarPosition
from lfsim.physics.kinematics import MirrorAngleSolver
from lfsim.physics.layout import MirrorState, layout

logger = logging.getLogger(__name__)

# Event kinds
STARTED = "started"
ADVANCED = "advanced"
FINISHED = "finished" # Stopped by running past the end time
STOPPED = "stopped"
RECONFIGURED = "reconfigured"

@dataclass(frozen=True)
class SimulationSnapshot:
    """
    Everything the renderer reads for one frame.
    Published as a whole; the clock never mutates a snapshot after publishing it.
    """
    current_time: datetime
    running: bool
    sun: Optional[SolarPosition] = None # None until the first recompute
    mirrors: Tuple[MirrorState, ...] = ()

    @property
    def is_computed(self) -> bool:
        return self.sun is not None

    @property
    def time_label(self) -> str:
        return self.current_time.strftime(TIME_FORMAT)

@dataclass(frozen=True)
class ClockEvent:
    kind: str
    snapshot: SimulationSnapshot

    @property
    def time_label(self) -> str:
        return self.snapshot.time_label

ClockListener = Callable[[ClockEvent], None]

class SimulationClock:
    """
    Time-stepped driver of the collector field.

    States: idle and running. The host calls tick() once per displayed frame;
    every ticks_per_update frames the simulated time moves on by step_minutes
    and the sun position and mirror states are recomputed.

    All state the renderer needs lives in one immutable SimulationSnapshot.
    Recompute-and-publish happens under a single lock and ends with one
    reference swap, so `clock.snapshot` never pairs a new sun with old mirrors.
    Listeners are called after the lock is released.
    """
    def __init__(self, config: ScenarioConfig | None = None,
                 calculator: SolarCalculator | None = None,
                 solver: MirrorAngleSolver | None = None):
        config = config or ScenarioConfig()
        self._location = config.location
        self._array = config.array
        self._receiver = config.receiver
        self._start_time = config.schedule.start
        self._end_time = config.schedule.end
        self._step_minutes = config.settings.step_minutes
        self._ticks_per_update = max(1, int(config.settings.ticks_per_update))

        self._calculator = calculator or SolarCalculator(config.settings.reference_meridian_deg)
        self._solver = solver or MirrorAngleSolver()

        self._lock = threading.Lock()
        self._listeners: List[ClockListener] = []
        self._frame_counter = 0
        self._finished = False
        self._snapshot = SimulationSnapshot(current_time=self._start_time, running=False)

    # --- Read access ---

    @property
    def snapshot(self) -> SimulationSnapshot:
        return self._snapshot

    @property
    def running(self) -> bool:
        return self._snapshot.running

    @property
    def current_time(self) -> datetime:
        return self._snapshot.current_time

    @property
    def location(self) -> GeoLocation:
        return self._location

    @property
    def array(self) -> MirrorArraySpec:
        return self._array

    @property
    def receiver(self) -> ReceiverGeometry:
        return self._receiver

    @property
    def start_time(self) -> datetime:
        return self._start_time

    @property
    def end_time(self) -> datetime:
        return self._end_time

    @property
    def step_minutes(self) -> float:
        return self._step_minutes

    @property
    def ticks_per_update(self) -> int:
        return self._ticks_per_update

    # --- Listeners ---

    def subscribe(self, listener: ClockListener):
        self._listeners.append(listener)

    def unsubscribe(self, listener: ClockListener):
        if listener in self._listeners:
            self._listeners.remove(listener)

    def _emit(self, event: Optional[ClockEvent]):
        if event is None:
            return
        for listener in list(self._listeners):
            listener(event)

    # --- Internals (caller holds the lock) ---

    def _solve(self, when: datetime) -> Tuple[SolarPosition, Tuple[MirrorState, ...]]:
        sun = self._calculator.compute(self._location, when)
        mirrors = layout(self._array, self._receiver, sun, self._solver)
        return sun, mirrors

    def _publish(self, when: datetime, running: bool) -> SimulationSnapshot:
        sun, mirrors = self._solve(when)
        self._snapshot = SimulationSnapshot(current_time=when, running=running, sun=sun, mirrors=mirrors)
        logger.debug("Recomputed at %s: %s", when.strftime(TIME_FORMAT), sun)
        return self._snapshot

    def _refresh(self) -> Optional[ClockEvent]:
        """Recompute in place after a configuration edit, once anything was computed."""
        snap = self._snapshot
        if not snap.is_computed:
            return None
        return ClockEvent(RECONFIGURED, self._publish(snap.current_time, snap.running))

    def _set_window(self, start: datetime, end: datetime) -> Optional[ClockEvent]:
        self._start_time = start
        self._end_time = end
        self._finished = False
        snap = self._snapshot
        if snap.is_computed:
            return ClockEvent(RECONFIGURED, self._publish(start, snap.running))
        self._snapshot = replace(snap, current_time=start)
        return None

    # --- State machine ---

    def start(self) -> ClockEvent:
        """
        Starts (or restarts) the run and recomputes immediately.
        A finished run, or a current time outside the window, rewinds to the start time.
        """
        with self._lock:
            current = self._snapshot.current_time
            if self._finished or not (self._start_time <= current <= self._end_time):
                current = self._start_time
            self._finished = False
            self._frame_counter = 0
            event = ClockEvent(STARTED, self._publish(current, True))

        logger.info("Simulation started at %s (end %s, step %s min)",
                    event.time_label, self._end_time.strftime(TIME_FORMAT), self._step_minutes)
        self._emit(event)
        return event

    def stop(self) -> Optional[ClockEvent]:
        with self._lock:
            snap = self._snapshot
            if not snap.running:
                return None
            self._snapshot = replace(snap, running=False)
            event = ClockEvent(STOPPED, self._snapshot)

        logger.info("Simulation stopped at %s", event.time_label)
        self._emit(event)
        return event

    def tick(self) -> Optional[ClockEvent]:
        """
        One host frame. Returns the event emitted, if this frame moved the clock.
        """
        with self._lock:
            snap = self._snapshot
            if not snap.running:
                return None

            self._frame_counter += 1
            if self._frame_counter < self._ticks_per_update:
                return None
            self._frame_counter = 0

            next_time = snap.current_time + timedelta(minutes=self._step_minutes)
            if next_time > self._end_time:
                # Never publish a time past the end of the window
                self._finished = True
                self._snapshot = replace(snap, running=False)
                event = ClockEvent(FINISHED, self._snapshot)
            else:
                event = ClockEvent(ADVANCED, self._publish(next_time, True))

        if event.kind == FINISHED:
            logger.info("Simulation ended: %s would pass end time %s",
                        next_time.strftime(TIME_FORMAT), self._end_time.strftime(TIME_FORMAT))
        self._emit(event)
        return event

    # --- Configuration ---

    def set_location(self, location: GeoLocation) -> Optional[ClockEvent]:
        with self._lock:
            self._location = location
            event = self._refresh()
        self._emit(event)
        return event

    def set_time_range(self, start: datetime, end: datetime) -> Optional[ClockEvent]:
        """
        Replaces the window and moves the current time to the new start.
        Run state is kept.
        """
        with self._lock:
            event = self._set_window(start, end)
        self._emit(event)
        return event

    def set_schedule(self, schedule: Schedule) -> Optional[ClockEvent]:
        return self.set_time_range(schedule.start, schedule.end)

    def set_date(self, month: int, day: int) -> Optional[ClockEvent]:
        """Moves the window to another day, keeping its clock times."""
        with self._lock:
            schedule = Schedule(self._start_time, self._end_time).on_date(month, day)
            event = self._set_window(schedule.start, schedule.end)
        self._emit(event)
        return event

    def set_step(self, minutes: float) -> Optional[ClockEvent]:
        with self._lock:
            self._step_minutes = minutes
            event = self._refresh()
        self._emit(event)
        return event

    def set_geometry(self, array: MirrorArraySpec | None = None,
                     receiver: ReceiverGeometry | None = None) -> Optional[ClockEvent]:
        with self._lock:
            if array is not None:
                self._array = array
            if receiver is not None:
                self._receiver = receiver
            event = self._refresh()
        self._emit(event)
        return event

    def set_ticks_per_update(self, ticks: int):
        """Host frame rate changed; frames between two simulation steps."""
        with self._lock:
            self._ticks_per_update = max(1, int(ticks))
            self._frame_counter = min(self._frame_counter, self._ticks_per_update - 1)
