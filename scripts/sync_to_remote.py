from __future__ import annotations

import importlib
import sys
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from config import get_settings_module

from src.atm_maintenance.atm_maintenance.core.exceptions import DomainError
from src.atm_maintenance.atm_maintenance.storage.changes import ChangeFeed
from src.atm_maintenance.atm_maintenance.storage.key_value import LocalKeyValueStore
from src.atm_maintenance.atm_maintenance.storage.service import DatabaseService


def main() -> int:
    settings = importlib.import_module(get_settings_module())
    store = LocalKeyValueStore(settings.DATA_DIR)
    database = DatabaseService(
        store,
        ChangeFeed(),
        poll_interval=0,
        sync_batch_size=int(getattr(settings, "SYNC_BATCH_SIZE", 450)),
    )
    database.start()
    try:
        if len(sys.argv) > 1:
            database.save_config(Path(sys.argv[1]).read_text(encoding="utf-8"))
        result = database.sync_local_to_remote()
    except DomainError as e:
        print(f"FAILED: {e}")
        return 1
    finally:
        database.close()

    print(f"OK: Pushed {result.reports} reports and {result.users} users from {store.directory}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
