from typing import List
from PyQt6.QtCore import QObject, QTimer, pyqtSignal

from lfsim.simulation import SimulationClock, SimulationSnapshot, ClockEvent, FINISHED

class ClockDriver(QObject):
    """
    Host frame loop for the simulation clock.
    A QTimer fires once per frame and ticks the clock; clock events are
    re-emitted as Qt signals so widgets never talk to the clock's listeners.
    """

    snapshot_changed = pyqtSignal(object) # SimulationSnapshot
    time_changed = pyqtSignal(str)        # "HH:MM"
    finished = pyqtSignal()

    def __init__(self, clock: SimulationClock, fps: int = 60, parent=None):
        super().__init__(parent)
        self.clock = clock
        self.fps = fps
        self.clock.set_ticks_per_update(fps)

        self.timer = QTimer(self)
        self.timer.setInterval(max(1, int(1000 / fps)))
        self.timer.timeout.connect(self.on_frame)

        self.clock.subscribe(self._on_clock_event)

    def start(self):
        self.clock.start()
        self.timer.start()

    def stop(self):
        self.timer.stop()
        self.clock.stop()

    def close(self):
        """Stops the frame loop and detaches from the clock."""
        self.timer.stop()
        self.clock.unsubscribe(self._on_clock_event)

    def on_frame(self):
        self.clock.tick()

    def _on_clock_event(self, event: ClockEvent):
        self.snapshot_changed.emit(event.snapshot)
        self.time_changed.emit(event.time_label)
        if event.kind == FINISHED:
            self.timer.stop()
            self.finished.emit()

def info_lines(snapshot: SimulationSnapshot) -> List[str]:
    """Text for the on-screen info overlay."""
    t = snapshot.current_time
    lines = [
        f"Date: {t.day:02d}/{t.month:02d}/{t.year}",
        f"Time: {snapshot.time_label}",
    ]
    if snapshot.sun is None:
        lines.append("Sun: not computed")
        return lines

    lines += [
        f"Sun Altitude: {snapshot.sun.altitude_deg:.1f}°",
        f"Sun Azimuth: {snapshot.sun.azimuth_deg:.1f}°",
        f"Intensity: {snapshot.sun.intensity_wm2:.0f} W/m²",
    ]
    return lines
