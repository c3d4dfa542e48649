"""Configuration and scenario loading from YAML."""

from pathlib import Path
from typing import Any, Dict, List, Tuple

import yaml

from .schema import AuctionConfig, ScenarioBid


def load_config(yaml_path: str = None) -> AuctionConfig:
    """
    Load auction configuration from a YAML file.

    Args:
        yaml_path: Path to YAML file (defaults to defaults.yaml)

    Returns:
        AuctionConfig object
    """
    if yaml_path is None:
        yaml_path = Path(__file__).parent / "defaults.yaml"

    with open(yaml_path, 'r') as f:
        data = yaml.safe_load(f)

    return AuctionConfig.from_dict(data)


def config_from_dict(data: Dict[str, Any]) -> AuctionConfig:
    """
    Create config from dictionary.

    Args:
        data: Configuration dictionary

    Returns:
        AuctionConfig object
    """
    return AuctionConfig.from_dict(data)


def load_scenario_file(yaml_path: str) -> Tuple[AuctionConfig, List[ScenarioBid]]:
    """
    Load a scenario file with ``config`` and ``bids`` sections.

    The ``bids`` section is optional; each entry needs block, max_price,
    amount and owner.
    """
    with open(yaml_path, 'r') as f:
        data = yaml.safe_load(f)

    config = AuctionConfig.from_dict(data["config"])
    bids = [ScenarioBid(**entry) for entry in data.get("bids") or []]
    return config, bids


def load_bids(yaml_path: str) -> List[ScenarioBid]:
    """Load a bare list of scheduled bids from YAML."""
    with open(yaml_path, 'r') as f:
        data = yaml.safe_load(f)
    if isinstance(data, dict):
        data = data.get("bids") or []
    return [ScenarioBid(**entry) for entry in data]
