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
Builders for producing single-layer images with their runtime configuration
restored.
"""
import os
import shutil
import tempfile
from typing import Optional

from ..CONVERTERS.to_dockerfile import DockerfileSynthesizer
from ..ENGINE.engine_client import EngineClient
from ..MANAGERS.resource_tracker import ResourceTracker
from ..MODELS.flatten_result import FlattenResult
from ..MODELS.settings import FlattenSettings
from ..PARSERS.config_inspector import ConfigInspector
from ..UTILS import console
from ..UTILS.naming import unique_name


class ImageFlattener:
    """
    Builds an image, collapses its layers by exporting and re-importing the
    filesystem, then rebuilds the runtime configuration on top of the flat
    base. Only the final image is kept.
    """

    def __init__(self,
                 engine: EngineClient,
                 settings: Optional[FlattenSettings] = None,
                 inspector: Optional[ConfigInspector] = None,
                 synthesizer: Optional[DockerfileSynthesizer] = None):
        """
        Initializes the flattener.

        :param engine: Engine client.
        :param settings: Platform, definition file name and archive location.
        :param inspector: Reads the source image configuration.
        :param synthesizer: Renders the reconstruction Dockerfile.
        """
        self.engine = engine
        self.settings = settings or FlattenSettings()
        self.inspector = inspector or ConfigInspector(engine)
        self.synthesizer = synthesizer or DockerfileSynthesizer()

    def flatten(self,
                image: str,
                dockerfile: str,
                context: Optional[str] = None,
                platform: Optional[str] = None) -> FlattenResult:
        """
        Runs the full pipeline.

        :param image: Name of the final image.
        :param dockerfile: Path to the source Dockerfile.
        :param context: Build context; defaults to the Dockerfile's directory.
        :param platform: Target platform passed to build and import.
        :return: The final image and the size comparison.
        """
        if not os.path.isfile(dockerfile):
            raise FileNotFoundError(f"Dockerfile not found: {dockerfile}")

        platform = platform or self.settings.platform
        context = context or os.path.dirname(os.path.abspath(dockerfile))
        run_id = unique_name("pgimage-flatten")
        source = f"{run_id}-source"
        flat = f"{run_id}-flat"

        with ResourceTracker(self.engine) as tracker:
            tracker.track_image(source)
            tracker.track_image(flat)

            console.step(f"Building source image {source}")
            self.engine.build(source, dockerfile, context, platform)

            console.step("Inspecting runtime configuration")
            config = self.inspector.inspect(source)

            console.step(f"Flattening filesystem into {flat}")
            self._export_import(source, flat, run_id, platform)

            console.step(f"Building {image} from {flat}")
            definition = tracker.track_file(os.path.abspath(self.settings.definition_file))
            self.synthesizer.write(flat, config, definition)
            empty_context = tempfile.mkdtemp(prefix=f"{run_id}-")
            tracker.callback(shutil.rmtree, empty_context, True)
            self.engine.build(image, definition, empty_context, platform)

            result = FlattenResult(
                image=image,
                source_size=self.engine.image_size(source),
                final_size=self.engine.image_size(image),
            )
            console.ok(f"{image} built")
            console.info(f"Source image:    {result.source_size or 'unknown'}")
            console.info(f"Flattened image: {result.final_size or 'unknown'}")
            return result

    def _export_import(self, source: str, flat: str, run_id: str, platform: Optional[str]) -> None:
        archive_dir = self.settings.archive_dir or tempfile.gettempdir()
        container = f"{run_id}-export"

        with ResourceTracker(self.engine) as archive_scope:
            archive = archive_scope.track_file(os.path.join(archive_dir, f"{container}.tar"))

            with ResourceTracker(self.engine) as container_scope:
                container_scope.track_container(container)
                self.engine.create(source, container)
                self.engine.export(container, archive)

            self.engine.import_image(archive, flat, platform)
