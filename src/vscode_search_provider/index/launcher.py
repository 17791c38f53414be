import subprocess

from vscode_search_provider.index.errors import LaunchError, WorkspaceNotFoundError
from vscode_search_provider.index.models import LaunchSpec, WorkspaceEntry
from vscode_search_provider.index.workspace_index import WorkspaceIndex
from vscode_search_provider.logger import logging

logger = logging.getLogger(__name__)


def launch_spec_for(entry: WorkspaceEntry) -> LaunchSpec:
    """Fill the variant's launch template with the entry's path, one argument at a time."""
    variant = entry.variant
    executable = variant.executable or variant.executables[0]
    args = tuple(arg.replace("{path}", str(entry.path)) for arg in variant.launch_args)
    return LaunchSpec(executable=executable, args=args)


class LaunchResolver:
    index: WorkspaceIndex

    def __init__(self, index: WorkspaceIndex):
        self.index = index

    def resolve(self, identifier: str) -> LaunchSpec:
        """
        Resolve an identifier to the command that reopens its workspace.

        Looks the identifier up in the index's current snapshot, not in whatever
        snapshot the identifier came from, since the workspace may have vanished
        from its store in between.

        Raises:
            WorkspaceNotFoundError: If the current snapshot has no such workspace.
        """
        entry = self.index.current().get(identifier)
        if entry is None:
            raise WorkspaceNotFoundError(identifier)
        return launch_spec_for(entry)


def spawn(spec: LaunchSpec) -> int:
    """
    Start the editor detached from this process and return its pid.

    Raises:
        LaunchError: If the executable cannot be started.
    """
    logger.info("Launching %s", spec.argv)
    try:
        process = subprocess.Popen(
            spec.argv,
            stdin=subprocess.DEVNULL,
            stdout=subprocess.DEVNULL,
            stderr=subprocess.DEVNULL,
            start_new_session=True,
        )
    except OSError as e:
        raise LaunchError(f"Failed to launch {spec.executable}: {e}") from e
    return process.pid
