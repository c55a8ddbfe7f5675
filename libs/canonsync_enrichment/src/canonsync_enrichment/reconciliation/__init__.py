"""Episode dedup and AniDB enrichment merging."""
