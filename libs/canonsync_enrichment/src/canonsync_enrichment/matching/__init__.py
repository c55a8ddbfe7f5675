"""Title normalization, fuzzy resolution and the match cascade."""
