"""
Hard failures. Blocked content is a result, never one of these.
"""


class RuleDatabaseError(ValueError):
    """Rule database payload could not be (de)serialized."""


class MalformedCommandError(ValueError):
    """Command input does not have the minimal shape of a command."""
