import os

# Keep the test run off the on-disk database main.py creates at import.
os.environ.setdefault("DATABASE_URL", "sqlite://")
