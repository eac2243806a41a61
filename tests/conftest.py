"""Shared fixtures: a fake CommandRunner and sysfs builders."""

from __future__ import annotations

import os
import subprocess

import pytest


def completed(stdout="", stderr="", returncode=0, args=None):
    """Build a CompletedProcess like ``subprocess.run`` would return."""
    return subprocess.CompletedProcess(
        args=args or ["nmcli"], returncode=returncode, stdout=stdout, stderr=stderr,
    )


class FakeRunner:
    """A fake CommandRunner for injection-based tests.

    Queued results are returned in order; an exception in the queue is
    raised instead.  Once the queue is empty every call succeeds with empty
    output.
    """

    def __init__(self, *results):
        self.run_calls: list[tuple[list[str], dict]] = []
        self._results = list(results)

    def queue(self, *results):
        self._results.extend(results)

    @property
    def commands(self) -> list[list[str]]:
        return [cmd for cmd, _ in self.run_calls]

    def run(self, cmd, **kwargs):
        self.run_calls.append((cmd, kwargs))
        if self._results:
            result = self._results.pop(0)
            if isinstance(result, BaseException):
                raise result
            return result
        return completed(args=cmd)


@pytest.fixture
def fake_runner():
    return FakeRunner()


@pytest.fixture
def sysfs(tmp_path):
    """Return a helper that builds fake ``/sys/class/net`` entries.

    ``sysfs.link(name, target)`` makes ``<name>/device`` a symlink to
    *target* (which need not exist).  ``sysfs.device_dir(name, uevent)``
    makes ``<name>/device`` a plain directory, optionally with a uevent file,
    so the link cannot be read.
    """
    root = tmp_path / "net"
    root.mkdir()

    class _Sysfs:
        path = str(root)

        @staticmethod
        def link(name, target):
            iface = root / name
            iface.mkdir()
            os.symlink(target, iface / "device")

        @staticmethod
        def link_to_device(name, device_subpath, uevent):
            """Relative symlink to a real device dir holding *uevent*."""
            device = tmp_path / "devices" / device_subpath
            device.mkdir(parents=True)
            (device / "uevent").write_text(uevent)
            iface = root / name
            iface.mkdir()
            os.symlink(os.path.relpath(device, iface), iface / "device")

        @staticmethod
        def in_device_tree(name, device_subpath):
            """Lay out *name* the way the kernel does.

            ``net/<name>`` links to ``<device>/net/<name>``, whose ``device``
            link is just ``../..``; only the resolved path names the bus.
            """
            device = tmp_path / "devices" / device_subpath
            iface = device / "net" / name
            iface.mkdir(parents=True)
            os.symlink("../..", iface / "device")
            os.symlink(os.path.relpath(iface, root), root / name)

        @staticmethod
        def device_dir(name, uevent=None):
            device = root / name / "device"
            device.mkdir(parents=True)
            if uevent is not None:
                (device / "uevent").write_text(uevent)

        @staticmethod
        def virtual(name):
            (root / name).mkdir()

    return _Sysfs()
