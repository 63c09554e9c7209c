from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class EpisodeProgressPayload(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    user_id: int = Field(alias="userId", gt=0)
    episode_id: int = Field(alias="episodeId", gt=0)
    is_completed: bool = Field(True, alias="isCompleted")


class ReviewPayload(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    user_id: int = Field(alias="userId", gt=0)
    series_id: int = Field(alias="seriesId", gt=0)
    rating: int = Field(ge=1, le=10)
    comment: Optional[str] = Field(None, max_length=2000)
