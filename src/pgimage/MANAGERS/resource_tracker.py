# Copyright 2024 Michael Maillet, Damien Davison, Sacha Davison
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""
Scoped tracking of temporary engine resources with guaranteed teardown.
"""
import os
from dataclasses import dataclass, field
from typing import Any, Callable, List, Optional, Tuple

from ..ENGINE.engine_client import EngineClient
from ..UTILS import console


@dataclass
class TrackedResource:
    """A resource registered for teardown."""

    kind: str
    handle: str
    release: Callable[..., Any]
    args: Tuple[Any, ...] = field(default_factory=tuple)


class ResourceTracker:
    """
    Registers every temporary container, image and file created during a run
    and tears them down in reverse order when the scope exits, whether the
    scope exits normally or through an exception.

    Teardown never raises: a failed removal is reported as a warning and the
    remaining resources are still released.
    """

    def __init__(self, engine: Optional[EngineClient] = None):
        """
        Initializes the tracker.

        :param engine: Engine used to remove containers and images.
        """
        self.engine = engine
        self._resources: List[TrackedResource] = []
        self.errors: List[Tuple[TrackedResource, Exception]] = []

    def __enter__(self) -> "ResourceTracker":
        return self

    def __exit__(self, exc_type, exc, tb) -> bool:
        self.close()
        return False

    def _require_engine(self) -> EngineClient:
        if self.engine is None:
            raise RuntimeError("ResourceTracker needs an engine to track containers or images")
        return self.engine

    def track_container(self, name: str, stop: bool = False) -> str:
        """
        Registers a container for forced removal (or a stop, for containers
        started with auto-remove).
        """
        engine = self._require_engine()
        if stop:
            self._resources.append(TrackedResource("container", name, engine.stop, (name, True)))
        else:
            self._resources.append(TrackedResource("container", name, engine.rm, (name,)))
        return name

    def track_image(self, name: str) -> str:
        engine = self._require_engine()
        self._resources.append(TrackedResource("image", name, engine.rmi, (name,)))
        return name

    def track_file(self, path: str) -> str:
        self._resources.append(TrackedResource("file", path, _remove_file, (path,)))
        return path

    def callback(self, fn: Callable[..., Any], *args: Any) -> None:
        self._resources.append(TrackedResource("callback", getattr(fn, "__name__", repr(fn)), fn, args))

    def release(self, handle: str) -> None:
        """
        Stops tracking a handle so it survives teardown.
        """
        self._resources = [r for r in self._resources if r.handle != handle]

    @property
    def handles(self) -> List[str]:
        return [r.handle for r in self._resources]

    def close(self) -> None:
        """
        Releases every tracked resource, most recent first.
        """
        while self._resources:
            resource = self._resources.pop()
            try:
                resource.release(*resource.args)
            except Exception as e:
                self.errors.append((resource, e))
                console.warn(f"Failed to remove {resource.kind} {resource.handle}: {e}")


def _remove_file(path: str) -> None:
    if os.path.exists(path):
        os.remove(path)
