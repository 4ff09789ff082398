import os

SECRET_KEY = os.getenv("SECRET_KEY", "please-set-SECRET_KEY")

DATA_DIR = os.getenv("DATA_DIR", "/var/lib/atm-maintenance")

POLL_INTERVAL_SECONDS = float(os.getenv("POLL_INTERVAL_SECONDS", "1.0"))
SYNC_BATCH_SIZE = int(os.getenv("SYNC_BATCH_SIZE", "450"))

ADMIN_PAGE_SIZE = 20
BANK_PAGE_SIZE = 24

DEBUG = False
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

AUTO_SEED_DATA = bool(int(os.getenv("AUTO_SEED_DATA", "0")))
