"""
MatchFeed: ORM model registry.

Importing every model here ensures that Alembic (and any other tool that
inspects ``Base.metadata``) discovers all tables automatically.
"""

from matchfeed.models.user import User, UserSession
from matchfeed.models.profile import Profile
from matchfeed.models.interaction import Interaction, POSITIVE_ACTIONS
from matchfeed.models.block import Block
from matchfeed.models.favorite import Favorite
from matchfeed.models.user_filter import UserFilter

__all__ = [
    "User",
    "UserSession",
    "Profile",
    "Interaction",
    "POSITIVE_ACTIONS",
    "Block",
    "Favorite",
    "UserFilter",
]
