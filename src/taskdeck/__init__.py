"""taskdeck: task manager with a snapshot store, HTTP API and console."""

__version__ = "0.1.0"
