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
Readiness polling with a bounded number of attempts at a fixed interval.
"""
import time
from typing import Any, Callable

from tenacity import Retrying, retry_if_result, stop_after_attempt, wait_fixed

from ..ENGINE.errors import EngineError, PgImageError


class ReadinessTimeout(PgImageError):
    """The service did not become ready within the attempt bound."""

    def __init__(self, target: str, attempts: int):
        self.target = target
        self.attempts = attempts
        super().__init__(f"{target} not ready after {attempts} attempts")


class ReadinessPoller:
    """
    Calls a liveness probe until it reports ready or the attempt bound is
    exhausted. There is no backoff: attempts are spaced by a fixed interval.
    """

    def __init__(self,
                 probe: Callable[[], Any],
                 attempts: int = 30,
                 interval: float = 1.0,
                 sleep: Callable[[float], None] = time.sleep):
        """
        Initializes the poller.

        :param probe: Zero-argument callable, truthy when the target is ready.
        :param attempts: Maximum number of probe calls.
        :param interval: Seconds to sleep between attempts.
        :param sleep: Sleep function, replaceable in tests.
        """
        if attempts < 1:
            raise ValueError("attempts must be at least 1")
        self.probe = probe
        self.attempts = attempts
        self.interval = interval
        self.sleep = sleep
        self.attempts_made = 0

    def _probe_once(self) -> bool:
        self.attempts_made += 1
        try:
            return bool(self.probe())
        except EngineError:
            # The engine may refuse exec while the container is still starting
            return False

    def wait(self) -> bool:
        """
        Polls until ready.

        :return: True if the probe succeeded within the bound, False otherwise.
        """
        self.attempts_made = 0
        retrying = Retrying(
            sleep=self.sleep,
            stop=stop_after_attempt(self.attempts),
            wait=wait_fixed(self.interval),
            retry=retry_if_result(lambda ready: not ready),
            retry_error_callback=lambda retry_state: False,
        )
        return retrying(self._probe_once)
