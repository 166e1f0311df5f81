"""Client configuration schema."""

from __future__ import annotations

from pydantic import BaseModel, Field


class ClientConfig(BaseModel):
    """Connection settings for the feedback backend."""

    base_url: str = Field(
        default="http://127.0.0.1:8000", description="Backend root URL, no trailing slash"
    )
    timeout: float = Field(
        default=30.0, gt=0, description="Per-request timeout in seconds"
    )
    read_chunk_size: int | None = Field(
        default=None, gt=0, description="Optional fixed read size for the response body"
    )
    auth_token_env: str = Field(
        default="PICTOSPEAK_AUTH_TOKEN",
        description="Environment variable holding the bearer token",
    )
