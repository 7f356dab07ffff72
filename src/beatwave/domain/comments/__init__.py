"""Comments domain."""

from .repository import add_comment, comments_path, list_comments

__all__ = ["add_comment", "comments_path", "list_comments"]
