"""Allow running the API as: python -m repoflow.api [--config path]."""

import argparse

from repoflow.api.runner import main

parser = argparse.ArgumentParser(description="Repoflow metrics API")
parser.add_argument("--config", default=None, help="Path to config.yaml")
args = parser.parse_args()
main(config_path=args.config)
