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
Execution of extension create-and-verify statements against a running server.
"""
from typing import Iterable, List, Optional

from ..ENGINE.engine_client import EngineClient
from ..MODELS.extension_case import ExtensionCase, ExtensionResult, VerificationReport
from ..UTILS import console


class ExtensionVerifier:
    """
    Runs each extension case through ``psql`` inside the database container.
    """

    def __init__(self,
                 engine: EngineClient,
                 container: str,
                 user: str = "postgres",
                 password: str = "postgres",
                 database: Optional[str] = None):
        """
        Initializes the verifier.

        :param engine: Engine client used to exec into the container.
        :param container: Name of the running database container.
        :param user: Database role to connect as.
        :param password: Password for the role, passed as PGPASSWORD.
        :param database: Database to connect to; defaults to the role's.
        """
        self.engine = engine
        self.container = container
        self.user = user
        self.password = password
        self.database = database

    def psql_command(self, statement: str) -> List[str]:
        command = ["psql", "-U", self.user, "-v", "ON_ERROR_STOP=1"]
        if self.database:
            command += ["-d", self.database]
        command += ["-c", statement]
        return command

    def verify_case(self, case: ExtensionCase) -> ExtensionResult:
        result = self.engine.exec(
            self.container,
            self.psql_command(case.statement),
            env={"PGPASSWORD": self.password},
        )
        output = (result.stdout or "") + (result.stderr or "")
        return ExtensionResult(
            name=case.name,
            ok=result.returncode == 0,
            exit_code=result.returncode,
            output=output,
        )

    def verify(self, cases: Iterable[ExtensionCase]) -> VerificationReport:
        """
        Runs every case in order. A failing case is recorded and the run
        continues with the next one.

        :param cases: Extension cases to verify.
        :return: The per-case results.
        """
        report = VerificationReport()
        for case in cases:
            result = self.verify_case(case)
            report.results.append(result)
            if result.ok:
                console.ok(case.name)
            else:
                console.failed(case.name, result.output)

        if report.ok:
            console.step(f"All {report.total} extensions passed")
        else:
            console.error(f"{report.failures} of {report.total} extensions failed: "
                          f"{', '.join(report.failed_names())}")
        return report
