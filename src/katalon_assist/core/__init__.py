"""
Core module for the Katalon automation assistant.

This module contains:
- config.py: Application configuration and settings
- config_loader.py: Per-project smart healing configuration
- errors.py: Error taxonomy
- logging_config.py: Logging configuration
- models/: Healing and execution data models
"""

__all__ = ["config", "config_loader", "errors", "logging_config", "models"]
