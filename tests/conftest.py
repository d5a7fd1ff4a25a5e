import os

os.environ.setdefault("EXPENSES_DATABASE_URL", "sqlite://")
os.environ.setdefault("EXPENSES_SESSION_SECRET", "test-session-secret")
os.environ.setdefault("EXPENSES_TIMEZONE", "UTC")
