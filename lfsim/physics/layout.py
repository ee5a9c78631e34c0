import numpy as np
from dataclasses import dataclass
from typing import List, Tuple

from lfsim.core.geometry import MirrorArraySpec, ReceiverGeometry
from lfsim.core.solar import SolarPosition
from lfsim.physics.kinematics import MirrorAngleSolver, TrackingRig, sun_vector

# Scene distance of the drawn sun (cm)
SUN_DISTANCE = 1000.0

@dataclass(frozen=True)
class MirrorState:
    index: int
    x_offset_cm: float
    height_cm: float # Pivot height above ground
    rotation_deg: float

@dataclass(frozen=True)
class RaySegments:
    """Line segments the renderer draws for one mirror."""
    index: int
    pivot: Tuple[float, float, float]
    sun_point: Tuple[float, float, float]
    focal_point: Tuple[float, float, float]

def mirror_offsets(spec: MirrorArraySpec) -> np.ndarray:
    """
    X offsets of the mirror pivots, placed either side of the receiver axis.
    The first half of the indices run outwards on the negative side,
    the rest outwards on the positive side.
    """
    i = np.arange(spec.count, dtype=float)
    half = spec.count // 2
    relative = np.where(i < half, -(i + 0.5), i - half + 0.5)
    return relative * spec.spacing_cm

def layout(spec: MirrorArraySpec, receiver: ReceiverGeometry, sun: SolarPosition,
           solver: TrackingRig | None = None) -> Tuple[MirrorState, ...]:
    """
    Full ordered mirror state list for one sun position.
    Always built from scratch, so a count change never leaves stale entries.
    Mirrors aim at the receiver axis as seen from the pivots of spec.
    """
    solver = solver or MirrorAngleSolver()
    offsets = mirror_offsets(spec)
    angles = solver.rotations(offsets, receiver.focal_offset_cm(spec), sun)
    height = spec.pivot_height_cm

    return tuple(
        MirrorState(index=i, x_offset_cm=float(x), height_cm=height, rotation_deg=float(a))
        for i, (x, a) in enumerate(zip(offsets, angles))
    )

def sun_point(sun: SolarPosition, distance: float = SUN_DISTANCE) -> Tuple[float, float, float]:
    v = sun_vector(sun.altitude_deg, sun.azimuth_deg) * distance
    return (float(v[0]), float(v[1]), float(v[2]))

def ray_segments(mirrors: Tuple[MirrorState, ...], receiver: ReceiverGeometry, sun: SolarPosition,
                 distance: float = SUN_DISTANCE) -> List[RaySegments]:
    """
    Incident (pivot -> sun) and reflected (pivot -> focal point) segments per mirror.
    """
    sun_xyz = sun_point(sun, distance)
    segments = []
    for m in mirrors:
        segments.append(RaySegments(
            index=m.index,
            pivot=(m.x_offset_cm, 0.0, m.height_cm),
            sun_point=sun_xyz,
            focal_point=(0.0, 0.0, receiver.height_cm)
        ))
    return segments
