from vidshare.models.user import User
from vidshare.models.video import Video
from vidshare.models.subscription import Subscription
from vidshare.models.watch_history import WatchHistoryEntry

__all__ = ["User", "Video", "Subscription", "WatchHistoryEntry"]
