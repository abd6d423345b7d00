"""wfverify - validation and auto-fixing for workflow JSON and use-case folders."""

__version__ = "0.1.0"
