from quicknotes.infrastructure.repositories.post_repository import PostRepository, PostRow

__all__ = [
    "PostRepository",
    "PostRow"
]
