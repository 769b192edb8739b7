# src/emusuite/config/const.py
from __future__ import annotations

# значения по умолчанию для эмуляторов (переопределяются через ENV/.env)
DEFAULT_HOST: str = "127.0.0.1"

DEFAULT_PORTS: dict[str, int] = {
    "firestore": 8080,
    "datastore": 8081,
    "pubsub": 8085,
    "bigtable": 8086,
    "spanner": 9010,
}

DEFAULT_COMMANDS: dict[str, str] = {
    "firestore": "gcloud beta emulators firestore start --host-port={host}:{port}",
    "datastore": "gcloud beta emulators datastore start --host-port={host}:{port} --no-store-on-disk",
    "pubsub": "gcloud beta emulators pubsub start --host-port={host}:{port}",
    "bigtable": "gcloud beta emulators bigtable start --host-port={host}:{port}",
    "spanner": "gcloud emulators spanner start --host-port={host}:{port}",
}

DISCOVERY_VARS: dict[str, str] = {
    "firestore": "FIRESTORE_EMULATOR_HOST",
    "datastore": "DATASTORE_EMULATOR_HOST",
    "pubsub": "PUBSUB_EMULATOR_HOST",
    "bigtable": "BIGTABLE_EMULATOR_HOST",
    "spanner": "SPANNER_EMULATOR_HOST",
}

# stdout/stderr скрипта могут прийти позже события exit
EXEC_EXIT_DELAY_S: float = 0.5

STARTUP_TIMEOUT_S: float = 30.0
STOP_TIMEOUT_S: float = 5.0

# ротация {logs}/emusuite.log
LOG_MAX_BYTES: int = 5_000_000
LOG_BACKUP_COUNT: int = 3
