"""
Katalon automation assistant.

Locator self-healing and test-runner execution services used by the
automation-assistant tools. A server embedding the tools calls
``setup_logging()`` once at startup, before building ``AutomationTools``.
"""

from .core.logging_config import setup_logging

__version__ = "0.1.0"

__all__ = ["setup_logging", "__version__"]
