"""Web API and UI."""
