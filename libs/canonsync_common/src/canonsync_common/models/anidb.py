"""Structured AniDB anime and episode records parsed from the HTTP API."""

from datetime import date

from pydantic import BaseModel, Field

# epno type code of regular episodes (2=special, 3=credit, 4=trailer, 5=parody, 6=other)
REGULAR_EPISODE_CODE = 1


class AniDBEpisodeRecord(BaseModel):
    """A regular AniDB episode."""

    episode_id: int = Field(..., description="AniDB episode id")
    update_date: date = Field(..., description="Last AniDB update of the episode")
    episode_number: int = Field(..., description="Episode number; 0 when unparseable")
    episode_kind_code: int = Field(
        default=REGULAR_EPISODE_CODE, description="AniDB epno type code"
    )
    length: int | None = Field(default=None, description="Length in minutes")
    air_date: date | None = Field(default=None, description="Original air date")
    rating: float | None = Field(default=None, description="Episode rating")
    votes: int | None = Field(default=None, description="Number of rating votes")
    title_ja: str | None = Field(default=None, description="Japanese/romaji title")
    title_en: str | None = Field(default=None, description="English title")
    summary: str | None = Field(default=None, description="Episode summary")
    crunchyroll_id: str | None = Field(
        default=None, description="Crunchyroll episode identifier"
    )


class AniDBSeriesRecord(BaseModel):
    """An AniDB anime with its regular episodes."""

    anidb_id: int = Field(..., description="AniDB anime id (aid)")
    restricted: bool = Field(default=False, description="Adult-restricted flag")
    anime_type: str = Field(default="Unknown", description="TV Series, Movie, OVA...")
    episode_count: int | None = Field(default=None, description="Announced episodes")
    start_date: date | None = None
    end_date: date | None = None
    title_main: str = Field(default="Unknown", description="Main (romanized) title")
    title_ja: str | None = None
    title_en: str | None = None
    description: str | None = None
    url: str | None = Field(default=None, description="Official website")
    episodes: list[AniDBEpisodeRecord] = Field(default_factory=list)
