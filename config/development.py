import os

SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret-key")

# Local key-value storage (one JSON file per key)
DATA_DIR = os.getenv("DATA_DIR", os.path.join(os.getcwd(), "instance", "data"))

# How often other processes' writes to DATA_DIR are picked up
POLL_INTERVAL_SECONDS = float(os.getenv("POLL_INTERVAL_SECONDS", "1.0"))

# Writes per Firestore batch during sync (ceiling is 500)
SYNC_BATCH_SIZE = int(os.getenv("SYNC_BATCH_SIZE", "450"))

ADMIN_PAGE_SIZE = 20
BANK_PAGE_SIZE = 24

DEBUG = True
LOG_LEVEL = os.getenv("LOG_LEVEL", "DEBUG")

# Seed demo users/reports into an empty local store
AUTO_SEED_DATA = bool(int(os.getenv("AUTO_SEED_DATA", "1")))
