"""
Models for extension verification cases and their outcomes.
"""
import re
from typing import List
from pydantic import BaseModel

_PLAIN_IDENTIFIER = re.compile(r"^[a-z_][a-z0-9_]*$")


class ExtensionCase(BaseModel):
    """
    A single extension to install and exercise.

    Most extensions are created with CASCADE so their dependencies are pulled
    in; cases that reject it set ``cascade`` to False.
    """
    name: str
    query: str
    cascade: bool = True

    @property
    def identifier(self) -> str:
        if _PLAIN_IDENTIFIER.match(self.name):
            return self.name
        return '"' + self.name.replace('"', '""') + '"'

    @property
    def create_statement(self) -> str:
        statement = f"CREATE EXTENSION IF NOT EXISTS {self.identifier}"
        if self.cascade:
            statement += " CASCADE"
        return statement + ";"

    @property
    def statement(self) -> str:
        """The combined create-and-verify statement sent to the server."""
        query = self.query.strip()
        if not query.endswith(";"):
            query += ";"
        return f"{self.create_statement} {query}"


class ExtensionResult(BaseModel):
    """
    Outcome of running one case.
    """
    name: str
    ok: bool
    exit_code: int
    output: str = ""


class VerificationReport(BaseModel):
    """
    Ordered results for a full extension list.
    """
    results: List[ExtensionResult] = []

    @property
    def total(self) -> int:
        return len(self.results)

    @property
    def failures(self) -> int:
        return sum(1 for r in self.results if not r.ok)

    @property
    def passed(self) -> int:
        return self.total - self.failures

    @property
    def ok(self) -> bool:
        return self.failures == 0

    def failed_names(self) -> List[str]:
        return [r.name for r in self.results if not r.ok]
