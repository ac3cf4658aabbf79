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
Blocking client for the container engine command line interface.
"""
import subprocess
from typing import Dict, List, Optional

from .errors import EngineCommandError, EngineError, EngineNotFoundError

# Fragments the engine prints when asked to act on something that is gone.
MISSING_MARKERS = (
    "No such container",
    "No such image",
    "No such object",
    "is already in progress",
    "not found",
)


def qualify_reference(image: str) -> str:
    """
    Appends ``:latest`` to a reference without tag or digest, so that
    ``images`` lists that one image rather than every tag of the repository.
    """
    if "@" in image:
        return image
    if ":" in image.rsplit("/", 1)[-1]:
        return image
    return f"{image}:latest"


class EngineClient:
    """
    Runs engine subcommands one at a time and reacts to their exit codes.

    Every method blocks until the engine returns. Failures raise
    EngineCommandError carrying the engine's own error text, except for
    ``exec`` whose exit status belongs to the caller.
    """

    def __init__(self, binary: str = "docker"):
        """
        Initializes the client.

        Args:
            binary (str): Name or path of the engine executable.
        """
        self.binary = binary

    def _run(self, args: List[str], check: bool = True) -> subprocess.CompletedProcess:
        command = [self.binary] + args
        try:
            result = subprocess.run(
                command,
                capture_output=True,
                encoding="utf-8",
                errors="replace",
                shell=False,
            )
        except FileNotFoundError as e:
            raise EngineNotFoundError(self.binary) from e

        if check and result.returncode != 0:
            raise EngineCommandError(command, result.returncode, result.stderr or result.stdout or "")
        return result

    def _remove(self, args: List[str], missing_ok: bool) -> None:
        try:
            self._run(args)
        except EngineCommandError as e:
            if missing_ok and any(marker in e.stderr for marker in MISSING_MARKERS):
                return
            raise

    def run(self,
            image: str,
            name: str,
            env: Optional[Dict[str, str]] = None,
            detach: bool = True,
            remove: bool = True) -> str:
        """
        Starts a container and returns its id.

        Args:
            image (str): Image to run.
            name (str): Container name.
            env (Optional[Dict[str, str]]): Environment passed with ``-e``.
            detach (bool): Run in the background.
            remove (bool): Remove the container when it stops.

        Returns:
            str: The container id reported by the engine.
        """
        args = ["run"]
        if detach:
            args.append("-d")
        if remove:
            args.append("--rm")
        args += ["--name", name]
        for key, value in (env or {}).items():
            args += ["-e", f"{key}={value}"]
        args.append(image)

        container_id = self._run(args).stdout.strip()
        if not container_id:
            raise EngineError(f"Engine returned no container id for '{name}'")
        return container_id

    def exec(self,
             container: str,
             command: List[str],
             env: Optional[Dict[str, str]] = None) -> subprocess.CompletedProcess:
        """
        Runs a command inside a running container without checking its status.
        """
        args = ["exec"]
        for key, value in (env or {}).items():
            args += ["-e", f"{key}={value}"]
        args.append(container)
        args += command
        return self._run(args, check=False)

    def stop(self, container: str, missing_ok: bool = False) -> None:
        self._remove(["stop", container], missing_ok)

    def build(self,
              tag: str,
              dockerfile: str,
              context: str = ".",
              platform: Optional[str] = None) -> str:
        """
        Builds an image and returns the engine's build output.
        """
        args = ["build"]
        if platform:
            args += ["--platform", platform]
        args += ["-t", tag, "-f", dockerfile, context]
        result = self._run(args)
        return (result.stdout or "") + (result.stderr or "")

    def inspect_image(self, image: str) -> str:
        """
        Returns the raw JSON document of ``image inspect``.
        """
        return self._run(["image", "inspect", image]).stdout

    def create(self, image: str, name: str) -> str:
        """
        Creates a container without starting it and returns its id.
        """
        container_id = self._run(["create", "--name", name, image]).stdout.strip()
        if not container_id:
            raise EngineError(f"Engine returned no container id for '{name}'")
        return container_id

    def export(self, container: str, archive_path: str) -> None:
        self._run(["export", "-o", archive_path, container])

    def rm(self, container: str, missing_ok: bool = True) -> None:
        self._remove(["rm", "-f", container], missing_ok)

    def import_image(self, archive_path: str, tag: str, platform: Optional[str] = None) -> str:
        """
        Imports a filesystem archive as a single-layer image and returns its id.
        """
        args = ["import"]
        if platform:
            args += ["--platform", platform]
        args += [archive_path, tag]
        return self._run(args).stdout.strip()

    def image_size(self, image: str) -> Optional[str]:
        """
        Returns the human-readable size the engine reports for an image.
        """
        output = self._run(["images", "--format", "{{.Size}}", qualify_reference(image)]).stdout
        lines = [line.strip() for line in output.splitlines() if line.strip()]
        return lines[0] if lines else None

    def rmi(self, image: str, missing_ok: bool = True) -> None:
        self._remove(["rmi", "-f", image], missing_ok)
