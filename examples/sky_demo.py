#!/usr/bin/env python3
"""
STARGAZER Sky Engine Demonstration

Runs the scheduler for a few seconds against the pointing simulator and
prints what the device would show:
- Visible objects and the reticle selection on every change
- The detected constellation and its line segments

Run with: python examples/sky_demo.py [--seconds 10] [--mode hybrid]
"""

import argparse
import asyncio
from pathlib import Path
import sys

# Add parent to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from stargazer.config import ConstellationDrawMode, load_config
from stargazer.engine import SkyEngine
from stargazer.logging_config import setup_logging
from stargazer.scheduler import SkyScheduler
from services.simulators import PointingSimulator, PointingSimulatorConfig, StaticLocationProvider


def print_section(title: str) -> None:
    """Print a section header."""
    print(f"\n{'=' * 60}")
    print(f"  {title}")
    print('=' * 60)


class ConsoleConsumer:
    """Prints scheduler events the way a UI would consume them."""

    def __init__(self, engine: SkyEngine):
        self.engine = engine
        self.last_constellation = None

    def __call__(self, event: str, data) -> None:
        if event == "candidates":
            print(f"[candidates] {len(data)} objects indexed")
        elif event == "reticle":
            if data is None:
                print("[reticle] nothing selected")
            else:
                obj = self.engine.catalog.get(data)
                name = obj.name if obj else f"object {data}"
                print(f"[reticle] {name}")
        elif event == "detection":
            if data.name != self.last_constellation:
                self.last_constellation = data.name
                lines = len(data.primary_segments)
                context = len(data.secondary_segments)
                print(f"[detection] {data.name or '-'} ({lines} lines, {context} context)")


async def run(seconds: float, mode: ConstellationDrawMode, latitude, longitude) -> None:
    config = load_config()
    config.detection.draw_mode = mode
    setup_logging(config.log_level, config.log_file, component_levels=config.log_levels)

    print_section("STARGAZER Sky Demo")
    engine = SkyEngine.from_config(config)

    pointing = PointingSimulator(PointingSimulatorConfig(sweep_rate_deg_per_sec=12.0))
    location = StaticLocationProvider(latitude, longitude)
    scheduler = SkyScheduler(engine, pointing, location)
    scheduler.register_callback(ConsoleConsumer(engine))

    await scheduler.start()
    try:
        await asyncio.sleep(seconds)
    finally:
        await scheduler.shutdown()

    print_section("Scheduler Status")
    status = scheduler.get_status()
    print(f"  Candidates:        {status['candidates']}")
    print(f"  Visible:           {status['visible']}")
    print(f"  Fallback location: {status['using_fallback_location']}")
    for name, task in status["tasks"].items():
        print(f"  {name:<10} iterations={task['iterations']:<5} errors={task['errors']}")


def main() -> None:
    parser = argparse.ArgumentParser(description="STARGAZER sky engine demo")
    parser.add_argument("--seconds", type=float, default=10.0)
    parser.add_argument("--mode", choices=[m.value for m in ConstellationDrawMode],
                        default=ConstellationDrawMode.DETECTED.value)
    parser.add_argument("--lat", type=float, default=None, help="Observer latitude")
    parser.add_argument("--lon", type=float, default=None, help="Observer longitude")
    args = parser.parse_args()

    try:
        asyncio.run(run(args.seconds, ConstellationDrawMode(args.mode), args.lat, args.lon))
    except KeyboardInterrupt:
        print("\nDemo interrupted")


if __name__ == "__main__":
    main()
