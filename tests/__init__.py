import os

# Tests run against a throwaway in-memory SQLite database
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("MATCH_LIMIT", "1000")
