from typing import Protocol
import numpy as np

from lfsim.core.solar import SolarPosition

# Below this the incident and reflected rays are antiparallel and have no bisector
_DEGENERATE_EPS = 1e-12

class TrackingRig(Protocol):
    def rotations(self, mirror_x_offsets: np.ndarray, focal_offset_cm: float, sun: SolarPosition) -> np.ndarray:
        """
        Returns the rotation of each mirror about the array's long axis in degrees.
        focal_offset_cm is the height of the receiver axis above the pivots.
        """
        ...

def _normalize(v: np.ndarray) -> np.ndarray:
    norm = np.linalg.norm(v, axis=-1, keepdims=True)
    return v / norm

def sun_vector(altitude_deg: float | np.ndarray, azimuth_deg: float | np.ndarray) -> np.ndarray:
    """
    Unit vector pointing at the sun, shape (..., 3).
    Frame: X across the array (East is -X), Y along the receiver (North), Z up.
    """
    alt = np.radians(altitude_deg)
    az = np.radians(azimuth_deg)
    return np.stack((
        -np.cos(alt) * np.sin(az),
        np.cos(alt) * np.cos(az),
        np.sin(alt)
    ), axis=-1)

def target_vector(mirror_x_offset: float | np.ndarray, focal_offset_cm: float) -> np.ndarray:
    """Unit vector from a mirror pivot to the receiver focal point."""
    x = np.asarray(mirror_x_offset, dtype=float)
    v = np.stack((-x, np.zeros_like(x), np.full_like(x, focal_offset_cm)), axis=-1)
    return _normalize(v)

def reflect(incident: np.ndarray, normal: np.ndarray) -> np.ndarray:
    """
    Mirrors a direction pointing away from the surface (e.g. towards the sun)
    about the surface normal. Both inputs are unit vectors.
    """
    d = np.sum(incident * normal, axis=-1, keepdims=True)
    return 2.0 * d * normal - incident

class MirrorAngleSolver:
    """
    Law-of-reflection tracking for single-axis Fresnel mirrors.
    The required surface normal is the bisector of the unit sun ray and the
    unit ray towards the receiver; the mirror rotates about the Y axis from its
    rest pose (normal straight up) into that normal.
    """
    def mirror_normal(self, mirror_x_offset: float | np.ndarray,
                      focal_offset_cm: float, sun: SolarPosition) -> np.ndarray:
        sun_ray = sun_vector(sun.altitude_deg, sun.azimuth_deg)
        target = target_vector(mirror_x_offset, focal_offset_cm)

        bisector = sun_ray + target
        norm = np.linalg.norm(bisector, axis=-1, keepdims=True)
        degenerate = norm < _DEGENERATE_EPS
        # Antiparallel rays (sun exactly behind the receiver line): keep rest pose
        safe_norm = np.where(degenerate, 1.0, norm)
        return np.where(degenerate, np.array([0.0, 0.0, 1.0]), bisector / safe_norm)

    def rotations(self, mirror_x_offsets: np.ndarray, focal_offset_cm: float, sun: SolarPosition) -> np.ndarray:
        """
        Vectorised rotation angles in degrees, each in (-180, 180].
        """
        normal = self.mirror_normal(np.atleast_1d(mirror_x_offsets), focal_offset_cm, sun)
        theta = np.degrees(np.arctan2(normal[..., 0], normal[..., 2]))
        return np.where(theta <= -180.0, theta + 360.0, theta)

    def compute_rotation(self, mirror_x_offset: float, focal_offset_cm: float, sun: SolarPosition) -> float:
        return float(self.rotations(np.array([mirror_x_offset]), focal_offset_cm, sun)[0])
