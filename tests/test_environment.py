# tests/test_environment.py
from emusuite.domain import Emulators
from emusuite.services.emulator import EmulatorRegistry
from emusuite.services.exec import build_script_env


def test_firestore_only_gets_single_discovery_var(fake_emulator):
    registry = EmulatorRegistry()
    registry.register(fake_emulator(Emulators.FIRESTORE, "127.0.0.1", 8080))

    env = build_script_env(registry)

    assert env == {"FIRESTORE_EMULATOR_HOST": "127.0.0.1:8080"}


def test_absent_emulators_contribute_nothing():
    assert build_script_env(EmulatorRegistry()) == {}


def test_one_entry_per_running_emulator(fake_emulator):
    registry = EmulatorRegistry()
    registry.register(fake_emulator("pubsub", "localhost", 8085))
    registry.register(fake_emulator("spanner", "0.0.0.0", 9010))

    env = build_script_env(registry)

    assert env == {
        "PUBSUB_EMULATOR_HOST": "localhost:8085",
        "SPANNER_EMULATOR_HOST": "0.0.0.0:9010",
    }


def test_env_reflects_registry_snapshot(fake_emulator):
    registry = EmulatorRegistry()
    registry.register(fake_emulator("datastore", "127.0.0.1", 8081))
    assert build_script_env(registry) == {"DATASTORE_EMULATOR_HOST": "127.0.0.1:8081"}

    registry.unregister("datastore")
    assert build_script_env(registry) == {}


def test_custom_discovery_vars(fake_emulator):
    registry = EmulatorRegistry()
    registry.register(fake_emulator("firestore", "127.0.0.1", 8080))
    registry.register(fake_emulator("bigtable", "127.0.0.1", 8086))

    env = build_script_env(registry, {"bigtable": "MY_BIGTABLE"})

    assert env == {"MY_BIGTABLE": "127.0.0.1:8086"}
