"""Tests for the flutter version probe."""

from __future__ import annotations

import asyncio
import json

import pytest

from devlog_core.errors import VersionProbeFailure
from devlog_core.models import SemVer
from devlog.services import version as version_module
from devlog.services.version import VersionProbe, parse_semver

PAYLOAD = {
    "frameworkVersion": "3.13.2",
    "channel": "stable",
    "repositoryUrl": "https://github.com/flutter/flutter.git",
    "frameworkRevision": "ff5b5b5fa6",
    "frameworkCommitDate": "2023-08-24 12:12:28 -0700",
    "engineRevision": "b20183e040",
    "dartSdkVersion": "3.1.0-dev.1",
    "devToolsVersion": "2.25.0",
    "flutterRoot": "/opt/flutter",
}


class FakeProcess:
    def __init__(self, returncode=0, stdout=b"", stderr=b"", delay=0.0):
        self.returncode = returncode
        self._stdout = stdout
        self._stderr = stderr
        self._delay = delay
        self.killed = False

    async def communicate(self):
        if self._delay:
            await asyncio.sleep(self._delay)
        return self._stdout, self._stderr

    def kill(self):
        self.killed = True

    async def wait(self):
        return self.returncode


@pytest.fixture
def spawn(monkeypatch):
    """Replace process creation; returns the list of argv the probe spawned."""
    calls = []
    state = {"proc": FakeProcess(stdout=json.dumps(PAYLOAD).encode())}

    async def fake_exec(*args, **kwargs):
        calls.append(args)
        return state["proc"]

    monkeypatch.setattr(version_module.asyncio, "create_subprocess_exec", fake_exec)

    def _set(proc):
        state["proc"] = proc
        return proc

    return calls, _set


@pytest.fixture
def probe(notifier):
    return VersionProbe(notifier, flutter_path="/opt/flutter/bin/flutter")


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("3.13.2", SemVer(3, 13, 2)),
        ("3.1.0-dev.1", SemVer(3, 1, 0)),
        ("Dart SDK 2.19.6 (stable)", SemVer(2, 19, 6)),
        ("10.0.12.4", SemVer(10, 0, 12)),
    ],
)
def test_parse_semver(raw, expected):
    assert parse_semver(raw) == expected


@pytest.mark.parametrize("raw", ["", "3.13", "stable", None])
def test_parse_semver_rejects(raw):
    assert parse_semver(raw) is None


async def test_versions_extracts_both_triples(probe, spawn):
    calls, _ = spawn
    flutter, dart = await probe.versions()
    assert flutter == SemVer(3, 13, 2)
    assert dart == SemVer(3, 1, 0)
    assert calls == [("/opt/flutter/bin/flutter", "--version", "--machine")]


async def test_fetch_keeps_full_report(probe, spawn):
    report = await probe.fetch()
    assert report.channel == "stable"
    assert report.devtools_version == "2.25.0"
    assert report.flutter_version is None
    assert report.flutter_root == "/opt/flutter"


async def test_version_callback_fires_once(probe, spawn, notifier):
    got = []
    await probe.version(lambda f, d: got.append((f, d)))
    assert got == [(SemVer(3, 13, 2), SemVer(3, 1, 0))]
    assert notifier.messages == []


async def test_nonzero_exit_never_calls_back(probe, spawn, notifier):
    _, set_proc = spawn
    set_proc(FakeProcess(returncode=1, stderr=b"flutter: command failed\n"))
    got = []
    await probe.version(lambda f, d: got.append((f, d)))
    assert got == []
    assert len(notifier.errors) == 1
    assert notifier.errors[0].startswith("Failed to retrieve the version of the Flutter SDK")
    assert "command failed" in notifier.errors[0]


async def test_malformed_json_reported(probe, spawn, notifier):
    _, set_proc = spawn
    set_proc(FakeProcess(stdout=b"Waiting for another flutter command to release the startup lock..."))
    got = []
    await probe.version(lambda f, d: got.append(1))
    assert got == []
    assert len(notifier.errors) == 1


async def test_bad_dart_version_named_in_error(probe, spawn, notifier):
    _, set_proc = spawn
    set_proc(FakeProcess(stdout=json.dumps({**PAYLOAD, "dartSdkVersion": "unknown"}).encode()))
    got = []
    await probe.version(lambda f, d: got.append(1))
    assert got == []
    assert notifier.errors == ["Failed to parse the Dart SDK version: 'unknown'"]


async def test_bad_flutter_version_named_in_error(probe, spawn):
    _, set_proc = spawn
    set_proc(FakeProcess(stdout=json.dumps({**PAYLOAD, "frameworkVersion": "main"}).encode()))
    with pytest.raises(VersionProbeFailure, match="Flutter SDK version: 'main'"):
        await probe.versions()


async def test_missing_executable(notifier, monkeypatch):
    monkeypatch.setattr(version_module.shutil, "which", lambda name: None)
    probe = VersionProbe(notifier)
    got = []
    await probe.version(lambda f, d: got.append(1))
    assert got == []
    assert notifier.errors == ["Failed to find the flutter executable on PATH"]


async def test_timeout_kills_process(notifier, spawn):
    _, set_proc = spawn
    proc = set_proc(FakeProcess(stdout=json.dumps(PAYLOAD).encode(), delay=5))
    probe = VersionProbe(notifier, flutter_path="flutter", timeout=0.01)
    got = []
    await probe.version(lambda f, d: got.append(1))
    assert got == []
    assert proc.killed
    assert len(notifier.errors) == 1
    assert "Timed out" in notifier.errors[0]


async def test_single_version_helpers(probe, spawn):
    flutter, dart = [], []
    await probe.flutter_version(flutter.append)
    await probe.dart_version(dart.append)
    assert flutter == [SemVer(3, 13, 2)]
    assert dart == [SemVer(3, 1, 0)]
