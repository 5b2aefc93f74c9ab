"""Allow running the scheduler as: python -m livewager_core.scheduler --match ID [--config path]."""

import argparse

from livewager_core.scheduler.runner import main

parser = argparse.ArgumentParser(description="Live match refresh scheduler")
parser.add_argument("--match", action="append", required=True, dest="matches", help="Match id to track (repeatable)")
parser.add_argument("--config", default=None, help="Path to config.yaml")
args = parser.parse_args()
main(args.matches, config_path=args.config)
