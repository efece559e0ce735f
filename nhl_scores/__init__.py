"""NHL schedule, score and play-by-play ingestion with cached team statistics."""
