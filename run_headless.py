import argparse
import logging
import sys
from PyQt6.QtCore import QCoreApplication

from lfsim.core.config import (ScenarioConfig, SimulationSettings, ConfigError,
                               parse_location, parse_schedule, parse_step)
from lfsim.simulation import SimulationClock
from lfsim.gui.driver import ClockDriver, info_lines
from lfsim.analysis.day_profile import day_profile

def build_config(args) -> ScenarioConfig:
    return ScenarioConfig(
        location=parse_location(args.lat, args.lon),
        schedule=parse_schedule(args.date, args.start, args.end),
        settings=SimulationSettings(step_minutes=parse_step(args.step))
    )

def main():
    parser = argparse.ArgumentParser(description="Run the Fresnel field clock without a window")
    parser.add_argument("--lat", default="37.962984")
    parser.add_argument("--lon", default="41.850347")
    parser.add_argument("--date", required=True, help="dd.MM.yyyy")
    parser.add_argument("--start", default="12:00", help="HH:mm")
    parser.add_argument("--end", default="17:00", help="HH:mm")
    parser.add_argument("--step", default="10", help="minutes")
    parser.add_argument("--fps", type=int, default=60)
    parser.add_argument("--profile", action="store_true", help="print the day table and exit")
    args = parser.parse_args()

    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    try:
        cfg = build_config(args)
    except ConfigError as e:
        print(f"Invalid input: {e}")
        sys.exit(2)

    if args.profile:
        print(day_profile(cfg).round(2).to_string())
        return

    app = QCoreApplication(sys.argv)
    driver = ClockDriver(SimulationClock(cfg), fps=args.fps)

    def show(snapshot):
        print(" | ".join(info_lines(snapshot)))

    driver.snapshot_changed.connect(show)
    driver.finished.connect(app.quit)
    driver.start()

    code = app.exec()
    driver.close()
    sys.exit(code)

if __name__ == "__main__":
    main()
