from wartek.models.user import User
from wartek.models.post import Post
from wartek.models.vote import Vote, UPVOTE, DOWNVOTE

__all__ = ["User", "Post", "Vote", "UPVOTE", "DOWNVOTE"]
