"""Entry point for ``python -m antpath``.

Loads a YAML config, builds a simulation engine, and runs it headless,
logging a stats line every ``--report-every`` ticks.
"""

from __future__ import annotations

import argparse
import logging
import pathlib

from antpath.simulation.config import SimulationConfig
from antpath.simulation.engine import SimulationEngine

logger = logging.getLogger("antpath")

_DEFAULT_CONFIG = (
    pathlib.Path(__file__).resolve().parent.parent / "config" / "default.yaml"
)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="antpath",
        description="antpath - emergent ant-colony pathfinding simulator",
    )
    parser.add_argument(
        "-c",
        "--config",
        type=pathlib.Path,
        default=_DEFAULT_CONFIG,
        help="Path to YAML config file (default: config/default.yaml)",
    )
    parser.add_argument(
        "-n",
        "--ticks",
        type=int,
        default=5000,
        help="Number of ticks to simulate (default: 5000)",
    )
    parser.add_argument(
        "--seed",
        type=int,
        default=None,
        help="Override the RNG seed from the config file",
    )
    parser.add_argument(
        "--report-every",
        type=int,
        default=500,
        help="Log a stats line every N ticks (default: 500)",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging verbosity (default: INFO)",
    )
    return parser


def main(argv: list[str] | None = None) -> None:
    """Parse CLI args, create engine, run the simulation."""
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=args.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    config = SimulationConfig.from_yaml(args.config)
    if args.seed is not None:
        config.set("seed", args.seed)
    engine = SimulationEngine(config=config)

    for _ in range(args.ticks):
        engine.step()
        if args.report_every > 0 and engine.tick % args.report_every == 0:
            stats = engine.stats()
            logger.info(
                f"tick={stats.tick} ants={stats.ants} carrying={stats.carrying} "
                f"stored={stats.food_stored:g} "
                f"to_food={stats.to_food_total:.0f} to_nest={stats.to_nest_total:.0f}",
            )

    stats = engine.stats()
    logger.info(
        f"Finished {stats.tick} ticks: {stats.food_stored:g} food stored "
        f"({engine.nest.progress:.0%} of goal), {stats.ants} ants alive",
    )


if __name__ == "__main__":
    main()
