import pandas as pd

from lfsim.core.config import ScenarioConfig
from lfsim.core.solar import SolarCalculator, SolarPosition
from lfsim.physics.kinematics import MirrorAngleSolver
from lfsim.physics.layout import mirror_offsets

def day_profile(config: ScenarioConfig,
                calculator: SolarCalculator | None = None,
                solver: MirrorAngleSolver | None = None) -> pd.DataFrame:
    """
    Sun position and mirror rotations for every step of the configured window.

    Returns a DataFrame indexed by Timestamp with columns
    Sun_Alt, Sun_Az, Intensity and Mirror_<i> (rotation in degrees).
    """
    calculator = calculator or SolarCalculator(config.settings.reference_meridian_deg)
    solver = solver or MirrorAngleSolver()

    schedule = config.schedule
    times = pd.date_range(schedule.start, schedule.end,
                          freq=pd.Timedelta(minutes=config.settings.step_minutes))

    # Sun is vectorised over the whole window
    sun_df = calculator.compute(config.location, times)
    offsets = mirror_offsets(config.array)
    focal_offset = config.receiver.focal_offset_cm(config.array)

    rows = []
    for ts, row in sun_df.iterrows():
        sun = SolarPosition(float(row['altitude']), float(row['azimuth']), float(row['intensity']))
        res = {
            "Timestamp": ts,
            "Sun_Alt": sun.altitude_deg,
            "Sun_Az": sun.azimuth_deg,
            "Intensity": sun.intensity_wm2,
        }
        for i, angle in enumerate(solver.rotations(offsets, focal_offset, sun)):
            res[f"Mirror_{i}"] = float(angle)
        rows.append(res)

    columns = ["Timestamp", "Sun_Alt", "Sun_Az", "Intensity"] + [f"Mirror_{i}" for i in range(len(offsets))]
    return pd.DataFrame(rows, columns=columns).set_index("Timestamp")
