from .upload import Upload
from .comment import Comment

__all__ = ["Upload", "Comment"]
