from collections.abc import Sequence
from pathlib import Path

import click

from vscode_search_provider.config import ProviderConfig, get_provider_config
from vscode_search_provider.index.variants import KNOWN_VARIANTS, describe_stores, probe_executable

config_root_option = click.option(
    "--config-root",
    "-c",
    "config_root",
    help="User configuration directory holding the editors' config. Overrides VSCODE_SEARCH_PROVIDER_CONFIG_ROOT.",
    type=click.Path(file_okay=False, dir_okay=True, path_type=Path),
    default=None,
)


def _load_config(config_root: Path | None, staleness: float | None = None) -> ProviderConfig:
    try:
        return get_provider_config(config_root, staleness)
    except ValueError as e:
        raise click.BadParameter(str(e)) from e


@click.group("vscode-search-provider")
def main():
    """
    Search recent workspaces of VSCode variants.
    """
    pass


@main.command("mcp")
@config_root_option
@click.option(
    "--staleness",
    "-s",
    help="Seconds an index snapshot is reused before re-reading the stores. Overrides VSCODE_SEARCH_PROVIDER_STALENESS.",
    type=float,
    default=None,
)
@click.option("--watch", is_flag=True, help="Watch the editors' stores for changes.")
def mcp_cmd(config_root: Path | None, staleness: float | None, watch: bool):
    """
    Run the search provider as an MCP server.
    """
    from vscode_search_provider.mcp_server import run_server

    config = _load_config(config_root, staleness)

    run_server(config, watch_stores=watch)


@main.command("search")
@config_root_option
@click.option("--limit", "-n", type=click.IntRange(min=1), default=None, help="Show at most this many results.")
@click.argument("terms", nargs=-1, required=True)
def search_cmd(config_root: Path | None, limit: int | None, terms: Sequence[str]):
    """
    Search recent workspaces of all installed variants.
    """
    from vscode_search_provider.index.messages import SearchRequestMessage
    from vscode_search_provider.provider import SearchProvider

    config = _load_config(config_root)
    provider = SearchProvider.for_installed_variants(config.config_root, config.staleness)
    resp = provider.handle_search(SearchRequestMessage(terms, limit=limit))
    if resp.failed:
        click.echo("No variant store could be read", err=True)
    for result in resp.results:
        click.echo(f"{result.name}\t{result.variant}\t{result.path}\t{result.identifier}")


@main.command("variants")
@config_root_option
def variants_cmd(config_root: Path | None):
    """
    List known variants, whether they are installed, and where their stores live.
    """
    config = _load_config(config_root)
    for variant in KNOWN_VARIANTS.values():
        executable = probe_executable(variant)
        status = executable if executable else "not installed"
        click.echo(f"{variant.name} [{variant.key}]: {status}")
        for line in describe_stores(variant, config.config_root):
            click.echo(f"  {line}")


if __name__ == "__main__":
    main()
