"""HTTP transport, AniDB API client and AniDB XML parsing."""
