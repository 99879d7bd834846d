# Author: Bradley R. Kinnard
# creature-mind main entry point

import argparse
import json

from utils.helpers import DEFAULT_CONFIG_PATH, load_mind_config, get_logger
from knowledge import build_default_ontology
from core import create_agent
from simulation import SandboxWorld, run_sandbox


logger = get_logger(__name__)


def main(argv: list[str] | None = None) -> dict:
    parser = argparse.ArgumentParser(description="run creature minds in a headless sandbox world")
    parser.add_argument("--config", default=str(DEFAULT_CONFIG_PATH), help="config path")
    parser.add_argument("--agents", type=int, default=3, help="number of agents")
    parser.add_argument("--ticks", type=int, default=500, help="ticks to simulate")
    parser.add_argument("--seed", type=int, default=42, help="world layout and movement seed")
    args = parser.parse_args(argv)

    if args.agents < 1 or args.ticks < 1:
        parser.error("--agents and --ticks must be positive")

    config = load_mind_config(args.config)
    ontology = build_default_ontology()
    world = SandboxWorld.populated(seed=args.seed, agents=args.agents)
    agents = [create_agent(agent_id, ontology, config) for agent_id in sorted(world.bodies)]

    logger.info(f"running {len(agents)} agents for {args.ticks} ticks (seed {args.seed})")
    report = run_sandbox(world, agents, args.ticks)

    summary = report.to_dict()
    summary["agents"] = [a.get_status() for a in agents]
    print(json.dumps(summary, indent=2))
    return summary


if __name__ == "__main__":
    main()
