"""Application services: single-page fetching and bulk collection."""
