"""AniDB title corpus sources and dump loading."""
