"""Git history analysis (expertise, knowledge risks, co-changes), import scanning and session tracking."""

__version__ = "0.2.0"