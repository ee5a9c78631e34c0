import numpy as np
import pandas as pd
from dataclasses import dataclass
from datetime import datetime
from pvlib import atmosphere

from lfsim.core.config import GeoLocation, DEFAULT_REFERENCE_MERIDIAN

SOLAR_CONSTANT = 1361.0 # W/m^2

# |cos(altitude)| below this is treated as the sun standing at the zenith
ZENITH_EPS = 1e-12

@dataclass(frozen=True)
class SolarPosition:
    altitude_deg: float # Degrees, Horizon=0, Zenith=90 (refraction corrected)
    azimuth_deg: float # Degrees, North=0, East=90, in [0, 360)
    intensity_wm2: float # Clear-sky direct beam estimate

    def __str__(self):
        return (f"SolarPosition[altitude={self.altitude_deg:.2f}°, "
                f"azimuth={self.azimuth_deg:.2f}°, intensity={self.intensity_wm2:.1f} W/m²]")

def day_angle(day_of_year):
    return 2.0 * np.pi * (np.asarray(day_of_year, dtype=float) - 1.0) / 365.0

def declination(day_of_year):
    """Spencer (1971) declination in degrees."""
    b = day_angle(day_of_year)
    rad = (0.006918 - 0.399912 * np.cos(b) + 0.070257 * np.sin(b)
           - 0.006758 * np.cos(2 * b) + 0.000907 * np.sin(2 * b)
           - 0.002697 * np.cos(3 * b) + 0.001480 * np.sin(3 * b))
    return np.degrees(rad)

def equation_of_time(day_of_year):
    """Spencer (1971) equation of time in minutes."""
    b = day_angle(day_of_year)
    return 229.18 * (0.000075 + 0.001868 * np.cos(b) - 0.032077 * np.sin(b)
                     - 0.014615 * np.cos(2 * b) - 0.040849 * np.sin(2 * b))

def hour_angle(local_hours, longitude_deg, day_of_year, reference_meridian=DEFAULT_REFERENCE_MERIDIAN):
    """
    Hour angle in degrees, negative before solar noon, wrapped to [-180, 180).
    local_hours is the civil clock time as a fraction of a day in hours.
    """
    time_correction = 4.0 * (longitude_deg - reference_meridian) + equation_of_time(day_of_year)
    solar_time = np.asarray(local_hours, dtype=float) + time_correction / 60.0
    h = 15.0 * (solar_time - 12.0)
    # Far from the reference meridian the solar day spills into the neighbouring civil day
    return np.mod(h + 180.0, 360.0) - 180.0

def horizontal_coordinates(latitude_deg, declination_deg, hour_angle_deg):
    """
    Geometric (unrefracted) altitude and azimuth in degrees.
    Azimuth is measured clockwise from North and falls back to 0 at the zenith,
    where it is undefined.
    """
    lat = np.radians(latitude_deg)
    dec = np.radians(declination_deg)
    h = np.radians(hour_angle_deg)

    sin_alt = np.clip(np.sin(lat) * np.sin(dec) + np.cos(lat) * np.cos(dec) * np.cos(h), -1.0, 1.0)
    alt = np.arcsin(sin_alt)

    cos_alt = np.cos(alt)
    at_zenith = np.abs(cos_alt) < ZENITH_EPS
    with np.errstate(divide='ignore', invalid='ignore'):
        cos_az = (np.sin(dec) * np.cos(lat) - np.cos(dec) * np.sin(lat) * np.cos(h)) / cos_alt
    cos_az = np.where(at_zenith, 1.0, np.clip(cos_az, -1.0, 1.0))

    az = np.degrees(np.arccos(cos_az))
    # Afternoon: mirror into the western half
    az = np.where(np.asarray(hour_angle_deg) > 0, 360.0 - az, az)
    return np.degrees(alt), np.mod(az, 360.0)

def refraction_correction(altitude_deg):
    """
    Atmospheric refraction in degrees to add to the geometric altitude.
    Piecewise model, the bands are evaluated on the uncorrected altitude.
    """
    a = np.asarray(altitude_deg, dtype=float)
    with np.errstate(divide='ignore', invalid='ignore', over='ignore'):
        te = np.tan(np.radians(a))
        arcsec = np.select(
            [a >= 85.0, a > 5.0, a > -0.575],
            [
                np.zeros_like(a),
                58.1 / te - 0.07 / te**3 + 0.000086 / te**5,
                1735.0 + a * (-518.2 + a * (103.4 + a * (-12.79 + a * 0.711))),
            ],
            default=-20.774 / te
        )
    return arcsec / 3600.0

def beam_intensity(altitude_deg):
    """
    Clear-sky beam intensity from the Kasten-Young relative air mass.
    Zero once the sun is below the horizon (air mass undefined).
    """
    zenith = 90.0 - np.asarray(altitude_deg, dtype=float)
    am = np.asarray(atmosphere.get_relative_airmass(zenith, model='kastenyoung1989'), dtype=float)
    below = np.isnan(am)
    safe_am = np.where(below, 1.0, am)
    return np.where(below, 0.0, SOLAR_CONSTANT * 0.7 ** (safe_am ** 0.678))

class SolarCalculator:
    """
    First-order analytic sun position (Spencer series) for a local civil clock.

    The timestamp is read as wall-clock time. No time zone conversion is done:
    reference_meridian is the standard meridian of the zone the clock runs in
    (45° = UTC+3 by default) and is not derived from any tz attached to the input.
    """
    def __init__(self, reference_meridian: float = DEFAULT_REFERENCE_MERIDIAN):
        self.reference_meridian = reference_meridian

    def compute(self, location: GeoLocation, dt: datetime | pd.DatetimeIndex) -> SolarPosition | pd.DataFrame:
        """
        Accepts scalar datetime or DatetimeIndex.
        Returns SolarPosition (scalar) or DataFrame (columns: altitude, azimuth, intensity).
        """
        is_scalar = isinstance(dt, (datetime, pd.Timestamp))

        ts = pd.DatetimeIndex([dt]) if is_scalar else pd.DatetimeIndex(dt)
        if ts.tz is not None:
            # Keep the wall clock, drop the zone
            ts = ts.tz_localize(None)

        doy = np.asarray(ts.dayofyear, dtype=float)
        hours = (np.asarray(ts.hour, dtype=float)
                 + np.asarray(ts.minute, dtype=float) / 60.0
                 + np.asarray(ts.second, dtype=float) / 3600.0
                 + np.asarray(ts.microsecond, dtype=float) / 3.6e9)

        h = hour_angle(hours, location.longitude_deg, doy, self.reference_meridian)
        alt, az = horizontal_coordinates(location.latitude_deg, declination(doy), h)

        intensity = beam_intensity(alt)
        apparent_alt = alt + refraction_correction(alt)

        if is_scalar:
            return SolarPosition(
                altitude_deg=float(apparent_alt[0]),
                azimuth_deg=float(az[0]),
                intensity_wm2=float(intensity[0])
            )

        return pd.DataFrame(
            {'altitude': apparent_alt, 'azimuth': az, 'intensity': intensity},
            index=ts
        )
