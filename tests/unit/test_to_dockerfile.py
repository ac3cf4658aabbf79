"""
Unit tests for the reconstruction Dockerfile synthesizer.
"""
import pytest
from pgimage.CONVERTERS.to_dockerfile import (DockerfileSynthesizer, UnrepresentableValueError, escape_word,
                                              quote_env_value)
from pgimage.ENGINE.errors import PgImageError
from pgimage.MODELS.image_config import ImageConfig


class TestDockerfileSynthesizer:
    """Tests for DockerfileSynthesizer."""

    def test_base_only(self):
        """Test that an empty config only produces the FROM line."""
        content = DockerfileSynthesizer().render("flat:1", ImageConfig())
        assert content == "FROM flat:1\n"

    def test_env_quoting(self):
        """Test quoted and empty ENV values."""
        config = ImageConfig(env=[("PATH", "/usr/bin:/bin"), ("FLAG", "")])
        lines = DockerfileSynthesizer().render("flat", config).splitlines()
        assert 'ENV PATH="/usr/bin:/bin"' in lines
        assert "ENV FLAG=" in lines

    def test_env_escapes_quotes(self):
        """Test that embedded double quotes are escaped."""
        config = ImageConfig(env=[("GREETING", 'say "hi"')])
        content = DockerfileSynthesizer().render("flat", config)
        assert 'ENV GREETING="say \\"hi\\""' in content

    def test_env_order_preserved(self):
        """Test that ENV lines follow the captured order."""
        config = ImageConfig(env=[("B", "2"), ("A", "1"), ("C", "3")])
        lines = DockerfileSynthesizer().render("flat", config).splitlines()
        assert [l.split("=")[0] for l in lines if l.startswith("ENV")] == ["ENV B", "ENV A", "ENV C"]

    def test_entrypoint_exec_form(self):
        """Test entrypoint rendering in exec form."""
        config = ImageConfig(entrypoint=["docker-entrypoint.sh"])
        content = DockerfileSynthesizer().render("flat", config)
        assert 'ENTRYPOINT ["docker-entrypoint.sh"]' in content.splitlines()

    def test_cmd_preserves_argument_order(self):
        """Test that CMD arguments keep their order."""
        config = ImageConfig(cmd=["postgres", "-c", "shared_buffers=256MB"])
        content = DockerfileSynthesizer().render("flat", config)
        assert 'CMD ["postgres", "-c", "shared_buffers=256MB"]' in content

    def test_absent_fields_are_omitted(self):
        """Test that unset fields emit no directive and no empty lists."""
        config = ImageConfig(cmd=["postgres"])
        content = DockerfileSynthesizer().render("flat", config)
        assert "ENTRYPOINT" not in content
        assert "WORKDIR" not in content
        assert "USER" not in content
        assert "EXPOSE" not in content
        assert "VOLUME" not in content
        assert "[]" not in content

    def test_full_directive_order(self):
        """Test the fixed directive order."""
        config = ImageConfig(
            env=[("PGDATA", "/var/lib/postgresql/data")],
            working_dir="/srv",
            user="postgres",
            entrypoint=["docker-entrypoint.sh"],
            cmd=["postgres"],
            exposed_ports=["5432/tcp"],
            volumes=["/var/lib/postgresql/data"],
        )
        lines = DockerfileSynthesizer().render("flat", config).splitlines()
        assert lines == [
            "FROM flat",
            'ENV PGDATA="/var/lib/postgresql/data"',
            "WORKDIR /srv",
            "USER postgres",
            'ENTRYPOINT ["docker-entrypoint.sh"]',
            'CMD ["postgres"]',
            "EXPOSE 5432/tcp",
            'VOLUME ["/var/lib/postgresql/data"]',
        ]

    def test_one_directive_per_port_and_volume(self):
        """Test that duplicates collapse and each entry gets its own line."""
        config = ImageConfig(exposed_ports=["80/tcp", "443/tcp", "80/tcp"], volumes=["/a", "/b"])
        lines = DockerfileSynthesizer().render("flat", config).splitlines()
        assert sorted(l for l in lines if l.startswith("EXPOSE")) == ["EXPOSE 443/tcp", "EXPOSE 80/tcp"]
        assert len([l for l in lines if l.startswith("VOLUME")]) == 2

    def test_requires_base_image(self):
        """Test that a missing base image is rejected."""
        with pytest.raises(ValueError):
            DockerfileSynthesizer().render("", ImageConfig())

    def test_write_overwrites(self, tmp_path):
        """Test that write replaces existing content."""
        path = tmp_path / "Dockerfile.flatten"
        path.write_text("stale")
        DockerfileSynthesizer().write("flat", ImageConfig(cmd=["sh"]), str(path))
        assert path.read_text() == 'FROM flat\nCMD ["sh"]\n'

    def test_workdir_and_user_escape_variables(self):
        """Test that $ and backslashes in WORKDIR and USER are not expanded."""
        config = ImageConfig(working_dir="/srv/$APP", user="svc\\$1")
        lines = DockerfileSynthesizer().render("flat", config).splitlines()
        assert "WORKDIR /srv/\\$APP" in lines
        assert "USER svc\\\\\\$1" in lines

    def test_newline_in_env_value_is_rejected(self):
        """Test that a multi-line ENV value raises instead of splitting the directive."""
        config = ImageConfig(env=[("MOTD", "hello\nRUN rm -rf /")])
        with pytest.raises(UnrepresentableValueError) as excinfo:
            DockerfileSynthesizer().render("flat", config)
        assert "ENV MOTD" in str(excinfo.value)

    def test_line_break_in_workdir_is_rejected(self):
        """Test that a carriage return in WORKDIR raises."""
        with pytest.raises(UnrepresentableValueError) as excinfo:
            DockerfileSynthesizer().render("flat", ImageConfig(working_dir="/srv\r/app"))
        assert "WORKDIR" in str(excinfo.value)

    def test_unrepresentable_value_is_a_pgimage_error(self):
        """Test that the error is handled like every other tool failure."""
        assert issubclass(UnrepresentableValueError, PgImageError)

    def test_newlines_in_exec_form_are_encoded(self):
        """Test that exec-form arrays keep newlines as JSON escapes on one line."""
        config = ImageConfig(cmd=["sh", "-c", "echo a\necho b"])
        lines = DockerfileSynthesizer().render("flat", config).splitlines()
        assert lines == ["FROM flat", 'CMD ["sh", "-c", "echo a\\necho b"]']

    def test_write_leaves_no_file_on_error(self, tmp_path):
        """Test that nothing is written when rendering fails."""
        path = tmp_path / "Dockerfile.flatten"
        with pytest.raises(UnrepresentableValueError):
            DockerfileSynthesizer().write("flat", ImageConfig(user="a\x00b"), str(path))
        assert not path.exists()


def test_quote_env_value_escapes_variables():
    assert quote_env_value("$HOME/bin") == '"\\$HOME/bin"'
    assert quote_env_value("a\\b") == '"a\\\\b"'
    assert quote_env_value("") == ""


def test_escape_word():
    assert escape_word("/srv/app") == "/srv/app"
    assert escape_word("${HOME}") == "\\${HOME}"
    assert escape_word("C:\\data") == "C:\\\\data"
