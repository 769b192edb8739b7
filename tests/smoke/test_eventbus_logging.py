# tests/smoke/test_eventbus_logging.py
import json
import logging

from emusuite.apps.bootstrap import init_ctx
from emusuite.services.eventbus import emit


def test_emit_event(tmp_path, monkeypatch):
    monkeypatch.setenv("EMUSUITE_BASE_DIR", str(tmp_path / "base"))
    ctx = init_ctx()
    emit(ctx.bus, "demo.started", {"x": 1}, "smoke")

    logfile = tmp_path / "base" / "logs" / "emusuite.log"
    assert logfile.exists()
    for h in logging.getLogger("emusuite").handlers:
        h.flush()
    records = [json.loads(line) for line in logfile.read_text(encoding="utf-8").splitlines() if line.strip()]
    assert any(r.get("type") == "demo.started" and r["payload"] == {"x": 1} for r in records)


def test_emit_without_bus_is_noop():
    # если дошли сюда, publish не упал
    emit(None, "demo.started", {"x": 1}, "smoke")


def test_reload_ctx_rebuilds_with_overrides(tmp_path, monkeypatch):
    from emusuite.apps.bootstrap import reload_ctx

    monkeypatch.setenv("EMUSUITE_BASE_DIR", str(tmp_path / "base"))
    first = init_ctx()
    second = reload_ctx(base_dir=tmp_path / "other", profile="ci")

    assert second is not first
    assert second.settings.profile == "ci"
    assert (tmp_path / "other" / "logs").is_dir()
    assert second.settings.emulators == first.settings.emulators
