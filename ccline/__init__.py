"""Status line rendering for Claude Code sessions: configuration, input parsing, segments."""

__version__ = "1.1.2"