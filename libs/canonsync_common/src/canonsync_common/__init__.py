"""Shared configuration, models and errors for canonsync."""
