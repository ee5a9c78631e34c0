import calendar
import math
from dataclasses import dataclass, field, replace
from datetime import date, datetime, time

from lfsim.core.geometry import MirrorArraySpec, ReceiverGeometry

# Siirt University test field
DEFAULT_LATITUDE = 37.962984
DEFAULT_LONGITUDE = 41.850347

# Standard meridian of the civil time zone the timestamps are given in (UTC+3)
DEFAULT_REFERENCE_MERIDIAN = 45.0

# Host frames between two simulation steps (one step per second at 60 FPS)
DEFAULT_TICKS_PER_UPDATE = 60

DATE_FORMAT = "%d.%m.%Y"
TIME_FORMAT = "%H:%M"

class ConfigError(ValueError):
    """Raised when user supplied configuration cannot be used by the simulator."""

@dataclass(frozen=True)
class GeoLocation:
    latitude_deg: float = DEFAULT_LATITUDE
    longitude_deg: float = DEFAULT_LONGITUDE
    altitude_m: float = 0.0

def _today_at(hour: int) -> datetime:
    return datetime.combine(date.today(), time(hour, 0))

@dataclass(frozen=True)
class Schedule:
    """
    Simulated time window. Both ends share one calendar day in the original
    workflow, but nothing here depends on that.
    """
    start: datetime = field(default_factory=lambda: _today_at(12))
    end: datetime = field(default_factory=lambda: _today_at(17))

    @classmethod
    def for_day(cls, day: date, start_time: time = time(12, 0), end_time: time = time(17, 0)) -> 'Schedule':
        return cls(datetime.combine(day, start_time), datetime.combine(day, end_time))

    def on_date(self, month: int, day: int) -> 'Schedule':
        """
        Moves the window to another day of the same year.
        The day is clamped to the length of the month (29 Feb only in leap years).
        """
        if not 1 <= month <= 12:
            raise ConfigError(f"Month must be in 1..12, got {month}")
        if day < 1:
            raise ConfigError(f"Day must be positive, got {day}")

        year = self.start.year
        max_day = calendar.monthrange(year, month)[1]
        new_day = date(year, month, min(day, max_day))
        return replace(
            self,
            start=datetime.combine(new_day, self.start.time()),
            end=datetime.combine(new_day, self.end.time())
        )

@dataclass
class SimulationSettings:
    step_minutes: float = 1.0
    ticks_per_update: int = DEFAULT_TICKS_PER_UPDATE
    reference_meridian_deg: float = DEFAULT_REFERENCE_MERIDIAN

@dataclass
class ScenarioConfig:
    """
    Everything the Config/UI side hands to the simulation clock.
    """
    location: GeoLocation = field(default_factory=GeoLocation)
    array: MirrorArraySpec = field(default_factory=MirrorArraySpec)
    receiver: ReceiverGeometry = field(default_factory=ReceiverGeometry)
    schedule: Schedule = field(default_factory=Schedule)
    settings: SimulationSettings = field(default_factory=SimulationSettings)

# --- Input parsing (text fields of the control panel) ---

def parse_float(text: str, name: str) -> float:
    try:
        value = float(str(text).strip())
    except ValueError:
        raise ConfigError(f"{name}: '{text}' is not a number") from None
    if not math.isfinite(value):
        raise ConfigError(f"{name}: value must be finite")
    return value

def validate_location(location: GeoLocation) -> GeoLocation:
    if not -90.0 <= location.latitude_deg <= 90.0:
        raise ConfigError(f"Latitude out of range [-90, 90]: {location.latitude_deg}")
    if not -180.0 <= location.longitude_deg <= 180.0:
        raise ConfigError(f"Longitude out of range [-180, 180]: {location.longitude_deg}")
    if location.altitude_m < 0:
        raise ConfigError(f"Altitude must not be negative: {location.altitude_m}")
    return location

def parse_location(lat_text: str, lon_text: str, altitude_text: str = "0") -> GeoLocation:
    return validate_location(GeoLocation(
        latitude_deg=parse_float(lat_text, "Latitude"),
        longitude_deg=parse_float(lon_text, "Longitude"),
        altitude_m=parse_float(altitude_text, "Altitude")
    ))

def validate_schedule(schedule: Schedule) -> Schedule:
    if schedule.end < schedule.start:
        raise ConfigError(
            f"End time {schedule.end.strftime(TIME_FORMAT)} is before "
            f"start time {schedule.start.strftime(TIME_FORMAT)}"
        )
    return schedule

def parse_schedule(date_text: str, start_text: str, end_text: str) -> Schedule:
    """
    Parses the 'dd.MM.yyyy' date and 'HH:mm' start/end fields.
    """
    try:
        day = datetime.strptime(date_text.strip(), DATE_FORMAT).date()
        start_t = datetime.strptime(start_text.strip(), TIME_FORMAT).time()
        end_t = datetime.strptime(end_text.strip(), TIME_FORMAT).time()
    except ValueError as e:
        raise ConfigError(f"Invalid date or time format: {e}") from None
    return validate_schedule(Schedule.for_day(day, start_t, end_t))

def parse_step(text: str) -> float:
    step = parse_float(text, "Simulation step")
    if step <= 0:
        raise ConfigError(f"Simulation step must be positive, got {step}")
    return step

def validate_array(spec: MirrorArraySpec) -> MirrorArraySpec:
    if int(spec.count) != spec.count or spec.count < 1:
        raise ConfigError(f"Mirror count must be a positive integer, got {spec.count}")
    for name in ("width_cm", "length_cm", "spacing_cm"):
        if getattr(spec, name) <= 0:
            raise ConfigError(f"{name} must be positive, got {getattr(spec, name)}")
    if spec.support_height_cm < 0:
        raise ConfigError(f"support_height_cm must not be negative, got {spec.support_height_cm}")
    return spec

def build_receiver(height_cm: float, diameter_cm: float, support_height_cm: float) -> ReceiverGeometry:
    """
    The receiver must hang above the mirror pivots of a row on supports of support_height_cm.
    """
    if diameter_cm <= 0:
        raise ConfigError(f"Receiver diameter must be positive, got {diameter_cm}")
    receiver = ReceiverGeometry(height_cm=height_cm, diameter_cm=diameter_cm)
    pivot_height = MirrorArraySpec(support_height_cm=support_height_cm).pivot_height_cm
    if receiver.height_cm <= pivot_height:
        raise ConfigError(
            f"Receiver height {height_cm} cm must be above the mirror pivots "
            f"({pivot_height} cm)"
        )
    return receiver
