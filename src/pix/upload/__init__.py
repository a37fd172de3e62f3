"""Upload pipeline: receive, verify, dedup, thumbnail, publish."""
