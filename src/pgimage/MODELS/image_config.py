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
Models representing the runtime configuration captured from a built image.
"""
from typing import Any, Dict, List, Optional, Tuple
from pydantic import BaseModel, ConfigDict, field_validator


class ImageConfig(BaseModel):
    """
    Runtime configuration of an image, as reported by the engine's inspect
    output. Flattening an image discards this configuration, so it is captured
    before export and replayed on top of the flattened base.
    """
    model_config = ConfigDict(frozen=True)

    env: List[Tuple[str, str]] = []
    working_dir: Optional[str] = None
    user: Optional[str] = None
    entrypoint: List[str] = []
    cmd: List[str] = []
    exposed_ports: List[str] = []
    volumes: List[str] = []

    @field_validator("exposed_ports", "volumes")
    @classmethod
    def _distinct(cls, values: List[str]) -> List[str]:
        return list(dict.fromkeys(values))

    @classmethod
    def from_engine_config(cls, config: Dict[str, Any]) -> "ImageConfig":
        """
        Builds an ImageConfig from the ``Config`` object of an inspect record.

        Missing or null fields map to empty values. Env entries without ``=``
        are kept with an empty value.

        :param config: The ``Config`` mapping from ``docker image inspect``.
        :return: The parsed configuration.
        """
        env = []
        for entry in config.get("Env") or []:
            if not isinstance(entry, str):
                raise TypeError(f"Env entry must be a string, got {entry!r}")
            key, _, value = entry.partition("=")
            env.append((key, value))

        return cls(
            env=env,
            working_dir=config.get("WorkingDir") or None,
            user=config.get("User") or None,
            entrypoint=_as_list(config.get("Entrypoint")),
            cmd=_as_list(config.get("Cmd")),
            exposed_ports=list((config.get("ExposedPorts") or {}).keys()),
            volumes=list((config.get("Volumes") or {}).keys()),
        )


def _as_list(value: Any) -> List[str]:
    # The engine reports shell-form ENTRYPOINT/CMD already split, but older
    # versions emit a bare string.
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    return list(value)
