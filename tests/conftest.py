import pytest

from backend.disk import FakeDiskManager
from backend.mount import FakeMounter
from models import PersistentDiskSource, VolumeSpec
from orchestration import PersistentDiskPlugin
from utils.filesystem import HostPaths

PD_NAME = "aws://us-east-1a/vol-0123456789abcdef0"


@pytest.fixture
def host(tmp_path):
    return HostPaths(str(tmp_path / "kubelet"))


@pytest.fixture
def mounter():
    return FakeMounter()


@pytest.fixture
def manager(mounter):
    return FakeDiskManager(mounter)


@pytest.fixture
def plugin(manager, mounter, host):
    return PersistentDiskPlugin(manager, mounter, host)


@pytest.fixture
def volume_spec():
    def _volume_spec(name="data", pd_name=PD_NAME, **kwargs):
        return VolumeSpec(name=name, persistentDisk=PersistentDiskSource(pdName=pd_name, **kwargs))

    return _volume_spec
