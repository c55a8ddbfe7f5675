"""Title matching, AniDB extraction and episode reconciliation for canonsync."""
