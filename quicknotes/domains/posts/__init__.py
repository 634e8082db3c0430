from quicknotes.domains.posts.entities import Post, validate_content, TITLE_MAX_LENGTH, BODY_MAX_LENGTH
from quicknotes.domains.posts.schemas import (
    PostDraft, PostResponse, PostListResponse, PostMutationResponse, AccountPromptResponse
)

__all__ = [
    "Post", "validate_content", "TITLE_MAX_LENGTH", "BODY_MAX_LENGTH",
    "PostDraft", "PostResponse", "PostListResponse", "PostMutationResponse",
    "AccountPromptResponse"
]
