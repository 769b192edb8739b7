# tests/smoke/test_runtime_cmd.py
import asyncio
import sys

import psutil
import pytest

from emusuite.apps.bootstrap import init_ctx
from emusuite.domain import ProcessSpec


def test_cmd_exits_on_its_own(tmp_path, monkeypatch, event_loop):
    monkeypatch.setenv("EMUSUITE_BASE_DIR", str(tmp_path / "base"))
    ctx = init_ctx()

    async def flow():
        h = await ctx.proc.start(ProcessSpec(name="demo-cmd", cmd=[sys.executable, "-c", "print('hi')"]))
        for _ in range(50):
            if await ctx.proc.status(h) in ("stopped", "error"):
                break
            await asyncio.sleep(0.1)
        return h

    h = event_loop.run_until_complete(flow())
    assert event_loop.run_until_complete(ctx.proc.status(h)) == "stopped"
    assert ctx.proc.returncode(h) == 0


def test_cmd_with_bad_exit_is_error(tmp_path, monkeypatch, event_loop):
    monkeypatch.setenv("EMUSUITE_BASE_DIR", str(tmp_path / "base"))
    ctx = init_ctx()

    async def flow():
        h = await ctx.proc.start(ProcessSpec(name="demo-fail", cmd=[sys.executable, "-c", "raise SystemExit(3)"]))
        for _ in range(50):
            if await ctx.proc.status(h) in ("stopped", "error"):
                break
            await asyncio.sleep(0.1)
        return h

    h = event_loop.run_until_complete(flow())
    assert event_loop.run_until_complete(ctx.proc.status(h)) == "error"
    assert ctx.proc.returncode(h) == 3


def test_stop_terminates_whole_process_tree(tmp_path, monkeypatch, event_loop):
    monkeypatch.setenv("EMUSUITE_BASE_DIR", str(tmp_path / "base"))
    ctx = init_ctx()
    stopped, pids = [], []
    ctx.bus.subscribe("proc.stopped", lambda ev: stopped.append(ev.payload["name"]))
    ctx.bus.subscribe("proc.running", lambda ev: pids.append(ev.payload["pid"]))
    # как gcloud: обёртка порождает долгоживущего потомка
    code = (
        "import subprocess, sys, time; "
        "subprocess.Popen([sys.executable, '-c', 'import time; time.sleep(30)']); "
        "time.sleep(30)"
    )

    async def flow():
        h = await ctx.proc.start(ProcessSpec(name="wrapper", cmd=[sys.executable, "-c", code]))
        children = []
        for _ in range(50):
            await asyncio.sleep(0.1)
            if pids:
                children = psutil.Process(pids[0]).children(recursive=True)
                if children:
                    break
        assert await ctx.proc.status(h) == "running"
        await ctx.proc.stop(h, timeout_s=3.0)
        return h, children

    h, children = event_loop.run_until_complete(flow())
    assert children
    _, alive = psutil.wait_procs(children, timeout=3.0)
    assert alive == []
    assert event_loop.run_until_complete(ctx.proc.status(h)) == "stopped"
    assert stopped == ["wrapper"]


def test_unknown_handle(event_loop, _autocontext):
    assert event_loop.run_until_complete(_autocontext.proc.status("nope")) == "error"
    assert _autocontext.proc.returncode("nope") is None


def test_spec_with_empty_cmd_is_rejected(event_loop, _autocontext):
    with pytest.raises(ValueError, match="empty cmd"):
        event_loop.run_until_complete(_autocontext.proc.start(ProcessSpec(name="empty", cmd=[])))
