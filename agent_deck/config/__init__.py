"""Configuration module for agent-deck."""

from agent_deck.config.loader import get_config_path, load_config, save_config
from agent_deck.config.schema import Config

__all__ = ["Config", "get_config_path", "load_config", "save_config"]
