"""Pipeline services: ingestion, live refresh, goal extraction, team statistics."""
