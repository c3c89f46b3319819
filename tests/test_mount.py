import subprocess
from types import SimpleNamespace

import psutil
import pytest

from backend.mount import FakeMounter, LinuxMounter, MountFlags, MountPoint, UnmountFlags
from errors import MountError, MountQueryError, UnmountError


class FakeRun:
    """Records subprocess.run calls, failing the commands listed in `fail`."""

    def __init__(self, fail=None):
        self.calls = []
        self.fail = fail or {}

    def __call__(self, cmd, **kwargs):
        self.calls.append(list(cmd))
        key = " ".join(cmd[:3])
        if key in self.fail:
            raise subprocess.CalledProcessError(32, cmd, output="", stderr=self.fail[key])
        return subprocess.CompletedProcess(cmd, 0, stdout="", stderr="")


@pytest.fixture
def fake_run(monkeypatch):
    run = FakeRun()
    monkeypatch.setattr(subprocess, "run", run)
    return run


def partitions(*entries):
    return [SimpleNamespace(device=d, mountpoint=m, fstype=t, opts=o) for d, m, t, o in entries]


class TestGetMountRefs:
    @pytest.fixture
    def mounter(self):
        return FakeMounter(
            [
                MountPoint("/dev/sdb", "/var/lib/kubelet/plugins/pd/mounts/vol-1"),
                MountPoint("/dev/sdb", "/var/lib/kubelet/pods/a/volumes/pd/data", opts=["bind"]),
                MountPoint("/dev/sdb", "/var/lib/kubelet/pods/b/volumes/pd/data", opts=["bind"]),
                MountPoint("/dev/sdc", "/var/lib/kubelet/plugins/pd/mounts/vol-2"),
                MountPoint("proc", "/proc"),
            ]
        )

    def test_shared_device(self, mounter):
        refs = mounter.get_mount_refs("/var/lib/kubelet/pods/a/volumes/pd/data")
        assert refs == [
            "/var/lib/kubelet/plugins/pd/mounts/vol-1",
            "/var/lib/kubelet/pods/b/volumes/pd/data",
        ]

    def test_path_is_normalized(self, mounter):
        refs = mounter.get_mount_refs("/var/lib/kubelet/pods/a/volumes/pd/data/")
        assert "/var/lib/kubelet/pods/a/volumes/pd/data" not in refs
        assert len(refs) == 2

    def test_single_user(self, mounter):
        assert mounter.get_mount_refs("/var/lib/kubelet/plugins/pd/mounts/vol-2") == []

    def test_unknown_path(self, mounter):
        assert mounter.get_mount_refs("/not/mounted") == []


class TestLinuxMounterMount:
    def test_device(self, fake_run):
        LinuxMounter().mount("/dev/xvdf", "/mnt/global", "ext4")
        assert fake_run.calls == [["mount", "-t", "ext4", "/dev/xvdf", "/mnt/global"]]

    def test_device_read_only(self, fake_run):
        LinuxMounter().mount("/dev/xvdf", "/mnt/global", "xfs", MountFlags.READ_ONLY)
        assert fake_run.calls == [["mount", "-t", "xfs", "-o", "ro", "/dev/xvdf", "/mnt/global"]]

    def test_options_are_joined(self, fake_run):
        LinuxMounter().mount("/dev/xvdf", "/mnt/global", options=["noatime", "ro"])
        assert fake_run.calls == [["mount", "-o", "noatime,ro", "/dev/xvdf", "/mnt/global"]]

    def test_bind(self, fake_run):
        LinuxMounter().mount("/mnt/global", "/mnt/pod", "", MountFlags.BIND)
        assert fake_run.calls == [["mount", "--bind", "/mnt/global", "/mnt/pod"]]

    def test_read_only_bind_remounts(self, fake_run):
        LinuxMounter().mount("/mnt/global", "/mnt/pod", "", MountFlags.BIND | MountFlags.READ_ONLY)
        assert fake_run.calls == [
            ["mount", "--bind", "/mnt/global", "/mnt/pod"],
            ["mount", "-o", "remount,bind,ro", "/mnt/pod"],
        ]

    def test_failed_remount_undoes_bind(self, fake_run):
        fake_run.fail["mount -o remount,bind,ro"] = "permission denied"
        with pytest.raises(MountError, match="permission denied"):
            LinuxMounter().mount("/mnt/global", "/mnt/pod", "", MountFlags.BIND | MountFlags.READ_ONLY)
        assert fake_run.calls[-1] == ["umount", "/mnt/pod"]

    def test_failure(self, fake_run):
        fake_run.fail["mount -t ext4"] = "wrong fs type, bad option, bad superblock"
        with pytest.raises(MountError, match="wrong fs type") as exc:
            LinuxMounter().mount("/dev/xvdf", "/mnt/global", "ext4")
        assert isinstance(exc.value.__cause__, subprocess.CalledProcessError)

    def test_missing_binary(self, monkeypatch):
        def run(cmd, **kwargs):
            raise FileNotFoundError(2, "No such file or directory", cmd[0])

        monkeypatch.setattr(subprocess, "run", run)
        with pytest.raises(MountError, match="could not be executed"):
            LinuxMounter().mount("/dev/xvdf", "/mnt/global")


class TestLinuxMounterUnmount:
    def test_plain(self, fake_run):
        LinuxMounter().unmount("/mnt/pod")
        assert fake_run.calls == [["umount", "/mnt/pod"]]

    def test_flags(self, fake_run):
        LinuxMounter().unmount("/mnt/pod", UnmountFlags.FORCE | UnmountFlags.LAZY)
        assert fake_run.calls == [["umount", "-f", "-l", "/mnt/pod"]]

    def test_failure(self, fake_run):
        fake_run.fail["umount /mnt/pod"] = "target is busy"
        with pytest.raises(UnmountError, match="target is busy"):
            LinuxMounter().unmount("/mnt/pod")


class TestLinuxMounterTable:
    def test_list(self, monkeypatch):
        monkeypatch.setattr(
            psutil,
            "disk_partitions",
            lambda all=False: partitions(("/dev/xvdf", "/mnt/global", "ext4", "rw,relatime"), ("proc", "/proc", "proc", "")),
        )
        assert LinuxMounter().list() == [
            MountPoint("/dev/xvdf", "/mnt/global", "ext4", ["rw", "relatime"]),
            MountPoint("proc", "/proc", "proc", []),
        ]

    def test_list_failure(self, monkeypatch):
        def broken(all=False):
            raise PermissionError("denied")

        monkeypatch.setattr(psutil, "disk_partitions", broken)
        with pytest.raises(MountQueryError):
            LinuxMounter().list()

    def test_mount_refs(self, monkeypatch):
        monkeypatch.setattr(
            psutil,
            "disk_partitions",
            lambda all=False: partitions(
                ("/dev/xvdf", "/mnt/global", "ext4", "rw"),
                ("/dev/xvdf", "/mnt/pod", "ext4", "rw"),
            ),
        )
        assert LinuxMounter().get_mount_refs("/mnt/pod") == ["/mnt/global"]

    def test_is_mount_point_missing_path(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            LinuxMounter().is_mount_point(str(tmp_path / "missing"))

    def test_plain_directory(self, tmp_path, monkeypatch):
        monkeypatch.setattr(psutil, "disk_partitions", lambda all=False: [])
        path = tmp_path / "dir"
        path.mkdir()
        assert LinuxMounter().is_mount_point(str(path)) is False

    def test_bind_mount_on_same_device(self, tmp_path, monkeypatch):
        path = tmp_path / "dir"
        path.mkdir()
        real = str(path.resolve())
        monkeypatch.setattr(psutil, "disk_partitions", lambda all=False: partitions(("/dev/xvdf", real, "ext4", "rw")))
        assert LinuxMounter().is_mount_point(str(path)) is True
