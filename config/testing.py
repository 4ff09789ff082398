import os
import tempfile

SECRET_KEY = "test-secret"

DATA_DIR = os.getenv("DATA_DIR", os.path.join(tempfile.gettempdir(), "atm-maintenance-test"))

# no background polling in tests
POLL_INTERVAL_SECONDS = 0
SYNC_BATCH_SIZE = 450

ADMIN_PAGE_SIZE = 20
BANK_PAGE_SIZE = 24

DEBUG = False
TESTING = True
LOG_LEVEL = "WARNING"

AUTO_SEED_DATA = False
