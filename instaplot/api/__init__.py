"""HTTP surface of the board (FastAPI)."""
