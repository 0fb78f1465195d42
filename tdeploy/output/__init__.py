"""Console and CI-agent output."""

from .azure import AzureLogger, is_azure_agent
from .console import ConsoleProtocol, MockConsole, RichConsole, Style

__all__ = [
    "AzureLogger",
    "ConsoleProtocol",
    "MockConsole",
    "RichConsole",
    "Style",
    "is_azure_agent",
]
