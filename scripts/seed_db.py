from __future__ import annotations

import importlib
import sys
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from config import get_settings_module

from src.atm_maintenance.atm_maintenance.storage.changes import ChangeFeed
from src.atm_maintenance.atm_maintenance.storage.key_value import LocalKeyValueStore
from src.atm_maintenance.atm_maintenance.storage.local_backend import LocalStorageBackend
from src.atm_maintenance.atm_maintenance.storage.seed import seed_local_data


def main() -> None:
    settings = importlib.import_module(get_settings_module())
    store = LocalKeyValueStore(settings.DATA_DIR)

    seed_local_data(LocalStorageBackend(store, ChangeFeed(), poll_interval=0))

    print(f"OK: Seeded local store -> {store.directory}")


if __name__ == "__main__":
    main()
