"""Grant opportunity qualification and triage engine."""

__version__ = "0.1.0"
