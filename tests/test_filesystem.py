import os

import pytest

from errors import FilesystemError, InvalidMountPathError
from utils.filesystem import (
    HostPaths,
    escape_qualified_name_for_disk,
    make_dirs,
    make_global_pd_path,
    pd_name_from_global_path,
    remove_dir,
)

PLUGIN_DIR = "/var/lib/kubelet/plugins/storage.io~aws-pd"


class TestGlobalPath:
    def test_uri_name(self):
        path = make_global_pd_path(PLUGIN_DIR, "aws://us-east-1a/vol-0123456789abcdef0")
        assert path == f"{PLUGIN_DIR}/mounts/aws/us-east-1a/vol-0123456789abcdef0"

    def test_plain_name(self):
        assert make_global_pd_path(PLUGIN_DIR, "vol-1") == f"{PLUGIN_DIR}/mounts/vol-1"

    def test_leading_slash_stays_below_mounts(self):
        assert make_global_pd_path(PLUGIN_DIR, "/vol-1") == f"{PLUGIN_DIR}/mounts/vol-1"

    @pytest.mark.parametrize("pd_name", ["../../../../etc", "aws://../../etc", "vol-1/../../x", "/", "aws://", "./."])
    def test_rejects_names_leaving_mounts(self, pd_name):
        with pytest.raises(InvalidMountPathError):
            make_global_pd_path(PLUGIN_DIR, pd_name)

    @pytest.mark.parametrize(
        "pd_name",
        ["aws://us-east-1a/vol-0123456789abcdef0", "aws://vol-1", "vol-1", "zone-b/vol-2"],
    )
    def test_reverse_mapping(self, pd_name):
        path = make_global_pd_path(PLUGIN_DIR, pd_name)
        assert pd_name_from_global_path(PLUGIN_DIR, path) == pd_name


class TestPdNameFromGlobalPath:
    @pytest.mark.parametrize(
        "path",
        [
            "/somewhere/else/vol-1",
            f"{PLUGIN_DIR}/mounts",
            f"{PLUGIN_DIR}/mounts/../vol-1",
            f"{PLUGIN_DIR}/mounts/aws/../../../etc",
            f"{PLUGIN_DIR}/vol-1",
            "mounts/vol-1",
        ],
    )
    def test_rejects_paths_outside_mounts(self, path):
        with pytest.raises(InvalidMountPathError):
            pd_name_from_global_path(PLUGIN_DIR, path)

    def test_nested_path(self):
        assert pd_name_from_global_path(PLUGIN_DIR, f"{PLUGIN_DIR}/mounts/aws/zone/vol-1") == "aws://zone/vol-1"


class TestHostPaths:
    def test_escape(self):
        assert escape_qualified_name_for_disk("storage.io/aws-pd") == "storage.io~aws-pd"

    def test_layout(self):
        host = HostPaths("/var/lib/kubelet")
        assert host.get_plugin_dir("storage.io/aws-pd") == PLUGIN_DIR
        assert (
            host.get_pod_volume_dir("pod-1", "storage.io/aws-pd", "data")
            == "/var/lib/kubelet/pods/pod-1/volumes/storage.io~aws-pd/data"
        )

    def test_root_required(self):
        with pytest.raises(ValueError):
            HostPaths("")


class TestDirectories:
    def test_make_dirs_is_idempotent(self, tmp_path):
        path = str(tmp_path / "a" / "b")
        make_dirs(path)
        make_dirs(path)
        assert os.path.isdir(path)

    def test_make_dirs_under_file(self, tmp_path):
        blocker = tmp_path / "file"
        blocker.write_text("x")
        with pytest.raises(FilesystemError):
            make_dirs(str(blocker / "sub"))

    def test_remove_dir(self, tmp_path):
        path = tmp_path / "empty"
        path.mkdir()
        remove_dir(str(path))
        assert not path.exists()

    def test_remove_non_empty_dir(self, tmp_path):
        (tmp_path / "full").mkdir()
        (tmp_path / "full" / "f").write_text("x")
        with pytest.raises(FilesystemError):
            remove_dir(str(tmp_path / "full"))
