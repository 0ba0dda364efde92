# booking_engine/config.py

import os
from pathlib import Path

from dotenv import load_dotenv

# Load .env from project root
env_path = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(dotenv_path=env_path)

# SQLite database (file-based) unless overridden
DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./barber.db")

# Step between candidate start times shown to clients
SLOT_GRANULARITY_MINUTES = int(os.getenv("SLOT_GRANULARITY_MINUTES", "15"))

# Gap kept free after every existing appointment
BOOKING_BUFFER_MINUTES = int(os.getenv("BOOKING_BUFFER_MINUTES", "0"))

# Resolution of the appointment_slot claim table (storage-level overlap guard)
BOOKING_BUCKET_MINUTES = int(os.getenv("BOOKING_BUCKET_MINUTES", "1"))

# Seconds a booking waits for the (barber, date) lock before giving up
BOOKING_LOCK_TIMEOUT = float(os.getenv("BOOKING_LOCK_TIMEOUT", "5"))

# Availability cache (Redis). Caching is disabled when REDIS_URL is not set.
REDIS_URL = os.getenv("REDIS_URL")
AVAILABILITY_CACHE_TTL = int(os.getenv("AVAILABILITY_CACHE_TTL", "300"))

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
