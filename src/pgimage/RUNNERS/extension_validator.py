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
End-to-end extension validation against a throwaway database container.
"""
import time
from typing import Callable, List

from ..ENGINE.engine_client import EngineClient
from ..ENGINE.errors import EngineError, PgImageError
from ..MANAGERS.readiness_poller import ReadinessPoller, ReadinessTimeout
from ..MANAGERS.resource_tracker import ResourceTracker
from ..MODELS.extension_case import ExtensionCase, VerificationReport
from ..MODELS.settings import ValidatorSettings
from ..UTILS import console
from ..UTILS.naming import unique_name
from .extension_verifier import ExtensionVerifier


class ContainerStartError(PgImageError):
    """The database container could not be started."""


class ExtensionValidator:
    """
    Starts a database container, waits for it to accept connections, verifies
    every extension case and tears the container down again.
    """

    def __init__(self,
                 engine: EngineClient,
                 settings: ValidatorSettings,
                 sleep: Callable[[float], None] = time.sleep):
        """
        Initializes the validator.

        :param engine: Engine client.
        :param settings: Image, credentials and readiness bounds.
        :param sleep: Sleep function used between readiness probes.
        """
        self.engine = engine
        self.settings = settings
        self.sleep = sleep

    def is_ready(self, container: str) -> bool:
        # The entrypoint's init server only listens on the local socket, so a
        # TCP probe succeeds only once the final server is up.
        result = self.engine.exec(
            container,
            ["pg_isready", "-h", "127.0.0.1", "-U", self.settings.user],
        )
        return result.returncode == 0

    def run(self, cases: List[ExtensionCase]) -> VerificationReport:
        """
        Runs the validation.

        :param cases: Extension cases to verify.
        :return: The verification report.
        :raises ContainerStartError: If the container did not start.
        :raises ReadinessTimeout: If the server never became ready.
        """
        container = unique_name("pgimage-validate")

        with ResourceTracker(self.engine) as tracker:
            # Started with --rm: stopping removes it, the forced rm covers a
            # container that was created but never ran.
            tracker.track_container(container)
            tracker.track_container(container, stop=True)

            console.step(f"Starting {self.settings.image} as {container}")
            try:
                self.engine.run(
                    self.settings.image,
                    container,
                    env={
                        "POSTGRES_USER": self.settings.user,
                        "POSTGRES_PASSWORD": self.settings.password,
                    },
                )
            except EngineError as e:
                raise ContainerStartError(f"Failed to start {self.settings.image}: {e}") from e

            console.step("Waiting for the server to accept connections")
            poller = ReadinessPoller(
                lambda: self.is_ready(container),
                attempts=self.settings.ready_attempts,
                interval=self.settings.ready_interval,
                sleep=self.sleep,
            )
            if not poller.wait():
                raise ReadinessTimeout(container, self.settings.ready_attempts)
            console.info(f"Ready after {poller.attempts_made} attempt(s)")

            console.step(f"Verifying {len(cases)} extensions")
            verifier = ExtensionVerifier(
                self.engine,
                container,
                user=self.settings.user,
                password=self.settings.password,
            )
            return verifier.verify(cases)
