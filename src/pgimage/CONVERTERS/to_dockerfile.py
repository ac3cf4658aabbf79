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
Converters for generating a Dockerfile that restores captured runtime
configuration on top of a flattened base image.
"""
import json
import re
from typing import List

from jinja2 import Template

from ..ENGINE.errors import PgImageError
from ..MODELS.image_config import ImageConfig

# A directive must fit on one line; the builder has no escape for these.
_UNREPRESENTABLE = re.compile(r"[\r\n\x00]")

DOCKERFILE_TEMPLATE = """\
FROM {{ base_image }}
{% for key, value in env %}
ENV {{ key }}={{ value }}
{% endfor %}
{% if working_dir %}
WORKDIR {{ working_dir }}
{% endif %}
{% if user %}
USER {{ user }}
{% endif %}
{% if entrypoint %}
ENTRYPOINT {{ entrypoint }}
{% endif %}
{% if cmd %}
CMD {{ cmd }}
{% endif %}
{% for port in exposed_ports %}
EXPOSE {{ port }}
{% endfor %}
{% for volume in volumes %}
VOLUME {{ volume }}
{% endfor %}
"""


class UnrepresentableValueError(PgImageError):
    """A captured value cannot be written as a single Dockerfile directive."""


def check_single_line(field: str, value: str) -> str:
    """
    Rejects values containing line breaks or NUL, which would split or
    truncate the directive they are written into.
    """
    if _UNREPRESENTABLE.search(value):
        raise UnrepresentableValueError(
            f"{field} value {value!r} contains a line break or NUL and cannot be restored by a Dockerfile")
    return value


def escape_word(value: str) -> str:
    """
    Escapes backslashes and ``$`` so the builder neither drops escapes nor
    substitutes variables in WORKDIR and USER.
    """
    return value.replace("\\", "\\\\").replace("$", "\\$")


def quote_env_value(value: str) -> str:
    """
    Quotes an ENV value so the builder stores it verbatim.

    Empty values stay unquoted (``KEY=``). Otherwise the value is wrapped in
    double quotes with backslashes, double quotes and ``$`` escaped, the last
    to keep the builder from substituting variables.
    """
    if value == "":
        return ""
    escaped = value.replace("\\", "\\\\").replace('"', '\\"').replace("$", "\\$")
    return f'"{escaped}"'


def exec_form(args: List[str]) -> str:
    """Renders an argument vector as a JSON exec-form array."""
    return json.dumps(list(args), ensure_ascii=False)


class DockerfileSynthesizer:
    """
    Renders the reconstruction Dockerfile for a flattened image.

    Directives are emitted in a fixed order and only for fields that are
    present, so an unset entrypoint never produces ``ENTRYPOINT []``.
    """

    def __init__(self):
        self.template = Template(DOCKERFILE_TEMPLATE, trim_blocks=True, lstrip_blocks=True,
                                 keep_trailing_newline=True)

    def render(self, base_image: str, config: ImageConfig) -> str:
        """
        Renders the Dockerfile text.

        :param base_image: The flattened base image reference.
        :param config: Runtime configuration captured from the source image.
        :return: Dockerfile content.
        :raises UnrepresentableValueError: If a value cannot fit on one line.
        """
        if not base_image:
            raise ValueError("base_image is required")

        env = []
        for key, value in config.env:
            if not key:
                continue
            check_single_line(f"ENV {key}", key)
            env.append((key, quote_env_value(check_single_line(f"ENV {key}", value))))

        working_dir = user = None
        if config.working_dir:
            working_dir = escape_word(check_single_line("WORKDIR", config.working_dir))
        if config.user:
            user = escape_word(check_single_line("USER", config.user))

        return self.template.render(
            base_image=base_image,
            env=env,
            working_dir=working_dir,
            user=user,
            entrypoint=exec_form(config.entrypoint) if config.entrypoint else None,
            cmd=exec_form(config.cmd) if config.cmd else None,
            exposed_ports=[check_single_line("EXPOSE", port) for port in config.exposed_ports],
            volumes=[exec_form([volume]) for volume in config.volumes],
        )

    def write(self, base_image: str, config: ImageConfig, path: str) -> str:
        """
        Renders the Dockerfile and writes it to ``path``, replacing any
        previous content.

        :return: The path written.
        """
        content = self.render(base_image, config)
        with open(path, "w") as f:
            f.write(content)
        return path
