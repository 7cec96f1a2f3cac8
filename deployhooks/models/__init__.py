from deployhooks.models.user import User, Session
from deployhooks.models.option import Option
from deployhooks.models.cache_entry import CacheEntry
from deployhooks.models.deployment import DeploymentRecord

__all__ = [
    "User",
    "Session",
    "Option",
    "CacheEntry",
    "DeploymentRecord",
]
