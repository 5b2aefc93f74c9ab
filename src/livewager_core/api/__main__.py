"""Allow running the API as: python -m livewager_core.api [--config path]."""

import argparse

from livewager_core.api.runner import main

parser = argparse.ArgumentParser(description="Live wager API server")
parser.add_argument("--config", default=None, help="Path to config.yaml")
args = parser.parse_args()
main(config_path=args.config)
