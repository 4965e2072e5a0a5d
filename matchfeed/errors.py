"""
MatchFeed: Domain errors raised by the discovery pipeline.

The HTTP layer maps each of these onto the ``{success, data, msg}`` envelope
(see ``matchfeed.main``).  There is no error for bad filter input: the
normalizer degrades it to "unset" instead of raising.
"""

from __future__ import annotations


class DiscoveryError(Exception):
    """Base class for discovery failures."""

    status_code: int = 500
    public_message: str = "Error fetching profiles"


class Unauthenticated(DiscoveryError):
    status_code = 401
    public_message = "Not authenticated"


class ProfileNotFound(DiscoveryError):
    status_code = 404
    public_message = "Profile not found"

    def __init__(self, user_id: object) -> None:
        super().__init__(f"No profile for user {user_id}")
        self.user_id = user_id


class DiscoveryQueryError(DiscoveryError):
    """A persistence read failed.  The caller may retry; the engine does not."""

    status_code = 500
    public_message = "Error fetching profiles"
