from pydantic import BaseModel, Field


class UserGenrePreferences(BaseModel):
    account_id: str
    genre_ids: list[int] = Field(default_factory=list)
