from __future__ import annotations


class UpstreamFetchError(RuntimeError):
    """RPC or price provider call failed or returned an unexpected shape."""


class MissingConfiguration(RuntimeError):
    """Token mint or RPC credentials are not configured."""


class NotReady(RuntimeError):
    """No leaderboard has been published yet."""


class MilestonePersistError(RuntimeError):
    """A milestone record could not be written to disk."""


class AuditMismatch(RuntimeError):
    """A draw audit disagrees with the milestone files it claims to come from."""
