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
Retrieval and parsing of an image's runtime configuration.
"""
import json
from typing import Any, Union

from pydantic import ValidationError

from ..ENGINE.engine_client import EngineClient
from ..ENGINE.errors import PgImageError
from ..MODELS.image_config import ImageConfig


class MalformedConfigError(PgImageError):
    """The inspected metadata is absent or does not have the expected shape."""


class ConfigInspector:
    """
    Reads the ``Config`` section of an image's inspect record.
    """

    def __init__(self, engine: EngineClient):
        self.engine = engine

    def inspect(self, image: str) -> ImageConfig:
        """
        Inspects an image and parses its runtime configuration.

        Args:
            image (str): Image reference.

        Returns:
            ImageConfig: The captured configuration.
        """
        raw = self.engine.inspect_image(image)
        try:
            data = json.loads(raw)
        except json.JSONDecodeError as e:
            raise MalformedConfigError(f"Inspect output for {image} is not valid JSON: {e}") from e
        return self.parse(data, image)

    @staticmethod
    def parse(data: Union[list, dict, Any], image: str = "image") -> ImageConfig:
        """
        Parses an inspect document, either the list the engine prints or a
        single record.
        """
        if isinstance(data, list):
            if not data:
                raise MalformedConfigError(f"Inspect output for {image} is empty")
            data = data[0]

        if not isinstance(data, dict):
            raise MalformedConfigError(f"Inspect record for {image} is not an object")

        config = data.get("Config")
        if not isinstance(config, dict):
            raise MalformedConfigError(f"Inspect record for {image} has no Config section")

        try:
            return ImageConfig.from_engine_config(config)
        except (ValidationError, TypeError, AttributeError) as e:
            raise MalformedConfigError(f"Config section for {image} is malformed: {e}") from e
