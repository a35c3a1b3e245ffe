"""CLI for the vault secret sync controller."""

import json
import signal
import sys
from pathlib import Path

import click

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from dotenv import load_dotenv  # noqa: E402

load_dotenv(project_root / ".env")


def _load_settings(environment):
    from core.config import ConfigError, ConfigLoader

    try:
        return ConfigLoader().load_settings(environment=environment)
    except ConfigError as e:
        click.echo(f"Error: {e}", err=True)
        raise SystemExit(2)


@click.group()
@click.version_option(version="1.0.0", prog_name="vault-sync")
def cli():
    """Vault Secret Sync - materialize backend secrets as Kubernetes Secrets."""
    pass


@cli.command()
@click.option("--environment", "-e", default=None, help="Environment (dev/prod)")
def run(environment: str):
    """Run the controller: watch VaultSecrets and refresh them periodically."""
    from controller.app import Controller
    from core.utils.logging import setup_logging

    settings = _load_settings(environment)
    setup_logging(level=settings.log_level, format_style=settings.log_format)

    controller = Controller(settings)

    def _terminate(signum, frame):
        raise SystemExit(0)

    signal.signal(signal.SIGTERM, _terminate)

    click.echo(f"\n{'='*60}")
    click.echo("Starting Vault Secret Sync")
    click.echo(f"{'='*60}")
    click.echo(f"Backend: {settings.vault['url']}")
    click.echo(f"Namespace: {settings.namespace or '<all>'}")
    click.echo(f"Refresh: every {settings.refresh_interval}s")
    click.echo(f"{'='*60}\n")

    try:
        controller.run_forever()
    except KeyboardInterrupt:
        click.echo("\n\nStopping...")
    finally:
        controller.stop()
        click.echo("✓ Stopped")


@cli.command()
@click.option("--path", "-p", required=True, help="Backend path to read")
@click.option(
    "--type",
    "-t",
    "secret_type",
    default="KEYVALUE",
    help="Secret type (KEYVALUE, CERT, DOCKERCFG)",
)
@click.option("--environment", "-e", default=None, help="Environment (dev/prod)")
def shape(path: str, secret_type: str, environment: str):
    """Fetch and shape a backend secret without writing anything."""
    from controller.detector import fingerprint
    from core.shaping import ShapingError, shape as shape_payload
    from core.vault import SecretNotAccessibleError, VaultClient

    settings = _load_settings(environment)
    backend = VaultClient(settings.vault)

    try:
        shaped = shape_payload(backend.fetch(path), secret_type)
    except (SecretNotAccessibleError, ShapingError) as e:
        click.echo(f"✗ {e}", err=True)
        raise SystemExit(1)
    finally:
        backend.close()

    click.echo(f"\nType: {shaped.secret_class.value}")
    click.echo(f"Keys ({len(shaped.data)}):")
    for key in shaped.keys():
        click.echo(f"  - {key} ({len(shaped.data[key])} bytes)")
    click.echo(f"Fingerprint: {fingerprint(shaped.data)}")


@cli.command()
@click.option("--namespace", "-n", required=True, help="Namespace of the VaultSecret")
@click.option("--name", required=True, help="Name of the VaultSecret")
@click.option("--environment", "-e", default=None, help="Environment (dev/prod)")
def check(namespace: str, name: str, environment: str):
    """Report whether a VaultSecret's Secret is out of date."""
    from kubernetes import client
    from kubernetes.client.rest import ApiException

    from controller.app import load_kube_config
    from controller.exceptions import InvalidSourceError
    from controller.detector import ChangeDetector
    from controller.sources import KubernetesSourceLister
    from controller.store import KubernetesSecretStore
    from core.shaping import ShapingError
    from core.vault import SecretNotAccessibleError, VaultClient

    settings = _load_settings(environment)
    load_kube_config(settings.in_cluster)

    lister = KubernetesSourceLister(client.CustomObjectsApi(), settings.custom_resource)
    store = KubernetesSecretStore(client.CoreV1Api(), settings.annotation_prefix)
    backend = VaultClient(settings.vault)

    try:
        source = lister.get_source(namespace, name)
        result = ChangeDetector(backend, store).check(source)
    except ApiException as e:
        click.echo(f"✗ Kubernetes API error: {e.status} {e.reason}", err=True)
        raise SystemExit(1)
    except (InvalidSourceError, SecretNotAccessibleError, ShapingError) as e:
        click.echo(f"✗ {e}", err=True)
        raise SystemExit(1)
    finally:
        backend.close()

    stored = result.existing.compare if result.existing else "<no secret>"
    click.echo(f"Stored:  {stored}")
    click.echo(f"Current: {result.fingerprint}")
    click.echo("Refresh needed" if result.needed else "Up to date")
    raise SystemExit(3 if result.needed else 0)


@cli.command()
@click.option("--environment", "-e", default=None, help="Environment (dev/prod)")
def config(environment: str):
    """Show effective settings (token masked)."""
    settings = _load_settings(environment)
    click.echo(json.dumps(settings.masked(), indent=2, default=str))


@cli.command()
@click.option("--environment", "-e", default=None, help="Environment (dev/prod)")
def health(environment: str):
    """Check that the secret backend is reachable."""
    from core.vault import VaultClient

    settings = _load_settings(environment)
    backend = VaultClient(settings.vault)
    try:
        healthy = backend.health_check()
    finally:
        backend.close()

    if healthy:
        click.echo(f"✓ Backend healthy ({settings.vault['url']})")
    else:
        click.echo(f"✗ Backend unhealthy ({settings.vault['url']})", err=True)
        raise SystemExit(1)


def main():
    """Entry point."""
    cli()


if __name__ == "__main__":
    main()
