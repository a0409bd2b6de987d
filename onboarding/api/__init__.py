"""FastAPI render boundary for the onboarding conversation."""
