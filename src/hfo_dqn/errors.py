"""Exceptions raised by hfo_dqn."""

from __future__ import annotations


class DQNError(Exception):
    """Base class for all hfo_dqn errors."""


class ConfigError(DQNError, ValueError):
    """A configuration value violates its invariant."""


class NotInitializedError(DQNError, RuntimeError):
    """The agent was used before ``initialize()``."""


class InsufficientMemoryError(DQNError, RuntimeError):
    """The replay memory holds fewer transitions than were requested."""
