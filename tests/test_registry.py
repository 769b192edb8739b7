# tests/test_registry.py
import pytest

from emusuite.core.errors import EmulatorError
from emusuite.domain import EmulatorInfo, Emulators
from emusuite.services.emulator import EmulatorRegistry


def test_register_and_lookup(fake_emulator):
    registry = EmulatorRegistry()
    emu = fake_emulator("firestore", "127.0.0.1", 8080)
    registry.register(emu)

    assert registry.get(Emulators.FIRESTORE) is emu
    assert registry.get("firestore") is emu
    assert registry.get_info("firestore") == EmulatorInfo("127.0.0.1", 8080)
    assert registry.is_running("firestore")
    assert registry.get("pubsub") is None
    assert registry.get_info("pubsub") is None


def test_duplicate_registration_fails(fake_emulator):
    registry = EmulatorRegistry()
    registry.register(fake_emulator("pubsub"))
    with pytest.raises(EmulatorError):
        registry.register(fake_emulator("pubsub"))


def test_list_keeps_registration_order_and_clear(fake_emulator):
    registry = EmulatorRegistry()
    registry.register(fake_emulator("spanner"))
    registry.register(fake_emulator("firestore"))

    assert registry.list_running() == [Emulators.SPANNER, Emulators.FIRESTORE]

    registry.unregister("spanner")
    registry.unregister("spanner")  # повторно, без ошибок
    assert registry.list_running() == [Emulators.FIRESTORE]

    registry.clear()
    assert registry.list_running() == []


def test_unknown_name_is_rejected():
    with pytest.raises(ValueError):
        EmulatorRegistry().get("not-an-emulator")
