"""Release note generation service: tracker sync, AI drafting, and feedback learning."""

__version__ = "0.1.0"
