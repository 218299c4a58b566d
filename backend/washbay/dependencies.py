# backend/washbay/dependencies.py

from datetime import datetime


# FastAPI dependency; overridden in tests to pin "now"
def get_now() -> datetime:
    return datetime.now()
