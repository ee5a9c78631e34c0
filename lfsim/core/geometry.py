from dataclasses import dataclass

# Gap between the top of a support and the mirror pivot (cm)
MIRROR_CLEARANCE = 2.0

@dataclass(frozen=True)
class MirrorArraySpec:
    """
    Physical layout of the mirror row (all dimensions in centimeters).
    Mirrors run parallel to the receiver along the north/south axis.
    """
    count: int = 4
    width_cm: float = 20.0
    length_cm: float = 100.0
    spacing_cm: float = 30.0
    support_height_cm: float = 30.0

    @property
    def pivot_height_cm(self) -> float:
        return self.support_height_cm + MIRROR_CLEARANCE

@dataclass(frozen=True)
class ReceiverGeometry:
    """
    Receiver tube hanging above the centre of the array.
    height_cm is the height of the receiver axis, which every mirror aims at.
    """
    height_cm: float = 130.0
    diameter_cm: float = 16.0

    def focal_offset_cm(self, array: MirrorArraySpec) -> float:
        """Vertical distance from the mirror pivots of array up to the receiver axis."""
        return self.height_cm - array.pivot_height_cm
