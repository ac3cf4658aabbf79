"""
Shared fixtures: an in-memory stand-in for the container engine.
"""
import json
import subprocess
from typing import Callable, Dict, List, Optional

import pytest

from pgimage.ENGINE.errors import EngineCommandError

DEFAULT_INSPECT = [{
    "Id": "sha256:abc",
    "Config": {
        "Env": ["PATH=/usr/local/bin:/usr/bin:/bin", "PGDATA=/var/lib/postgresql/data"],
        "WorkingDir": "/",
        "User": "",
        "Entrypoint": ["docker-entrypoint.sh"],
        "Cmd": ["postgres"],
        "ExposedPorts": {"5432/tcp": {}},
        "Volumes": {"/var/lib/postgresql/data": {}},
    },
}]


class FakeEngine:
    """
    Records every call and keeps track of which containers and images exist.
    """

    def __init__(self):
        self.calls: List[tuple] = []
        self.containers = set()
        self.images = set()
        self.files_written: Dict[str, str] = {}
        self.failures: Dict[str, Exception] = {}
        self.exec_handler: Callable[[str, List[str]], int] = lambda container, command: 0
        self.inspect_output = json.dumps(DEFAULT_INSPECT)
        self.sizes = {}

    def _call(self, name, *args):
        self.calls.append((name,) + args)
        if name in self.failures:
            raise self.failures[name]

    def fail(self, name: str, stderr: str = "boom"):
        self.failures[name] = EngineCommandError(["docker", name], 1, stderr)

    def names(self) -> List[str]:
        return [c[0] for c in self.calls]

    def run(self, image, name, env=None, detach=True, remove=True):
        self._call("run", image, name, env)
        self.containers.add(name)
        return "c0ffee"

    def exec(self, container, command, env=None):
        self._call("exec", container, command, env)
        code = self.exec_handler(container, command)
        return subprocess.CompletedProcess(["docker", "exec"], code, stdout="out\n",
                                           stderr="" if code == 0 else "ERROR: failed\n")

    def stop(self, container, missing_ok=False):
        self._call("stop", container)
        self.containers.discard(container)

    def build(self, tag, dockerfile, context=".", platform=None):
        self._call("build", tag, dockerfile, context, platform)
        with open(dockerfile) as f:
            self.files_written[tag] = f.read()
        self.images.add(tag)
        return ""

    def inspect_image(self, image):
        self._call("inspect", image)
        return self.inspect_output

    def create(self, image, name):
        self._call("create", image, name)
        self.containers.add(name)
        return "c0ffee"

    def export(self, container, archive_path):
        self._call("export", container, archive_path)
        with open(archive_path, "w") as f:
            f.write("tar")

    def rm(self, container, missing_ok=True):
        self._call("rm", container)
        self.containers.discard(container)

    def import_image(self, archive_path, tag, platform=None):
        self._call("import", archive_path, tag, platform)
        self.images.add(tag)
        return "sha256:flat"

    def image_size(self, image) -> Optional[str]:
        self._call("images", image)
        return self.sizes.get(image, "100MB")

    def rmi(self, image, missing_ok=True):
        self._call("rmi", image)
        self.images.discard(image)


@pytest.fixture
def fake_engine():
    return FakeEngine()
