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
Exceptions raised by pgimage.
"""
from typing import List


class PgImageError(Exception):
    """Base class for all fatal pgimage errors."""


class EngineError(PgImageError):
    """An invocation of the container engine failed."""


class EngineNotFoundError(EngineError):
    """The engine binary could not be executed."""

    def __init__(self, binary: str):
        self.binary = binary
        super().__init__(f"Container engine '{binary}' not found on PATH")


class EngineCommandError(EngineError):
    """The engine exited with a non-zero status."""

    def __init__(self, command: List[str], returncode: int, stderr: str = ""):
        self.command = command
        self.returncode = returncode
        self.stderr = stderr.strip()
        message = f"'{' '.join(command)}' failed with exit code {returncode}"
        if self.stderr:
            message += f": {self.stderr}"
        super().__init__(message)
