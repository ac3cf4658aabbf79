"""
Command Line Interface for pgimage.
"""
import click
import yaml

from ..BUILDERS.image_flattener import ImageFlattener
from ..ENGINE.engine_client import EngineClient
from ..ENGINE.errors import PgImageError
from ..MANAGERS.settings_loader import load_settings
from ..MODELS.settings import FlattenSettings, ValidatorSettings
from ..PARSERS.config_inspector import ConfigInspector
from ..PARSERS.extension_parser import ExtensionListParser
from ..CONVERTERS.to_dockerfile import DockerfileSynthesizer
from ..RUNNERS.extension_validator import ExtensionValidator
from ..UTILS import console


@click.group()
@click.option('--env-file', default='.env', show_default=True, help='Settings file read before the environment')
@click.option('--engine', default=None, help='Container engine binary [env: PGIMAGE_ENGINE]')
@click.pass_context
def cli(ctx, env_file, engine):
    """
    pgimage - PostgreSQL image tooling.

    Validates database extensions in a throwaway container and flattens
    images into a single layer.
    """
    ctx.ensure_object(dict)
    ctx.obj['env_file'] = env_file
    ctx.obj['engine'] = engine


@cli.command()
@click.option('--image', '-i', default=None, help='Image to validate [env: PGIMAGE_IMAGE]')
@click.option('--user', '-U', default=None, help='Database role [env: POSTGRES_USER]')
@click.option('--password', default=None, help='Database password [env: POSTGRES_PASSWORD]')
@click.option('--extensions', '-e', 'extensions_file', type=click.Path(exists=True, dir_okay=False),
              default=None, help='YAML extension list (defaults to the bundled list)')
@click.option('--attempts', type=int, default=None, help='Readiness probe attempts [default: 30]')
@click.option('--interval', type=float, default=None, help='Seconds between readiness probes [default: 1]')
@click.pass_context
def validate(ctx, image, user, password, extensions_file, attempts, interval):
    """Check that every extension installs and runs in a fresh container."""
    try:
        settings = load_settings(ValidatorSettings, ctx.obj['env_file'], {
            'engine': ctx.obj['engine'],
            'image': image,
            'user': user,
            'password': password,
            'ready_attempts': attempts,
            'ready_interval': interval,
        })
        parser = ExtensionListParser()
        cases = parser.parse(extensions_file) if extensions_file else parser.parse_default()
        report = ExtensionValidator(EngineClient(settings.engine), settings).run(cases)
    except (PgImageError, ValueError, yaml.YAMLError) as e:
        console.error(str(e))
        ctx.exit(1)

    if not report.ok:
        ctx.exit(1)


@cli.command()
@click.argument('image')
@click.argument('dockerfile', type=click.Path(exists=True, dir_okay=False))
@click.option('--platform', default=None, help='Target platform, e.g. linux/amd64 [env: PGIMAGE_PLATFORM]')
@click.option('--context', 'build_context', type=click.Path(exists=True, file_okay=False), default=None,
              help='Build context for the source image (defaults to the Dockerfile directory)')
@click.option('--definition-file', default=None,
              help='Where the reconstruction Dockerfile is written [default: Dockerfile.flatten]')
@click.option('--archive-dir', type=click.Path(file_okay=False), default=None,
              help='Directory for the temporary filesystem archive')
@click.pass_context
def flatten(ctx, image, dockerfile, platform, build_context, definition_file, archive_dir):
    """Build DOCKERFILE and save it as a single-layer IMAGE."""
    try:
        settings = load_settings(FlattenSettings, ctx.obj['env_file'], {
            'engine': ctx.obj['engine'],
            'platform': platform,
            'definition_file': definition_file,
            'archive_dir': archive_dir,
        })
        ImageFlattener(EngineClient(settings.engine), settings).flatten(
            image, dockerfile, context=build_context)
    except (PgImageError, OSError, ValueError) as e:
        console.error(str(e))
        ctx.exit(1)


@cli.command()
@click.argument('image')
@click.option('--base', default=None, help='Base image for the FROM line (defaults to IMAGE)')
@click.pass_context
def definition(ctx, image, base):
    """Print the Dockerfile that restores IMAGE's runtime configuration."""
    try:
        settings = load_settings(FlattenSettings, ctx.obj['env_file'], {'engine': ctx.obj['engine']})
        config = ConfigInspector(EngineClient(settings.engine)).inspect(image)
    except PgImageError as e:
        console.error(str(e))
        ctx.exit(1)

    click.echo(DockerfileSynthesizer().render(base or image, config), nl=False)


def main():
    """
    Main entry point for the CLI.
    """
    cli(obj={})


if __name__ == '__main__':
    main()
