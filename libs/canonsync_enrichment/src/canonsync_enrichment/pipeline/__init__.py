"""Scrape orchestration and the command-line runner."""
