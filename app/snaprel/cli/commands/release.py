"""Release command.

This module provides the `snaprel release` command, which performs a
complete release of the snap in a git working copy.
"""

from pathlib import Path
from typing import Annotated

import typer

from snaprel.core.config import EnvironmentOverrides, find_config_path, load_config
from snaprel.core.orchestrator import ReleaseOrchestrator
from snaprel.errors import InconsistentChangesError, SnaprelError
from snaprel.utils.formatting import err_console, print_error, print_info, print_success


def release(
    release_branch: Annotated[
        str,
        typer.Argument(help="Branch the release is cut from (e.g. main or 22)."),
    ],
    workspace: Annotated[
        Path,
        typer.Argument(help="Directory for built snaps and unpacked files."),
    ],
    repo: Annotated[
        Path,
        typer.Option(
            "--repo",
            "-C",
            help="Root of the git working copy.",
        ),
    ] = Path("."),
    config_path: Annotated[
        Path | None,
        typer.Option(
            "--config",
            "-c",
            help="Configuration file to use instead of the default lookup.",
        ),
    ] = None,
) -> None:
    """Release the snap of a working copy.

    Builds the snaps from a temporary branch, adds a changelog entry
    with the merged changes and the changes in primed packages, runs
    the acceptance tests, then tags the release and opens the next
    development version.

    CI values are read from the environment: BUILD_ARCHITECTURES,
    SNAPCRAFT_CHANNEL, NEXT_VERSION, GITHUB_RUN_ID and GITHUB_REPOSITORY.

    Examples:
        snaprel release main /tmp/build
        snaprel release 22 /tmp/build --repo ~/src/network-manager
    """
    repo = repo.resolve()
    workspace = workspace.resolve()

    try:
        config = load_config(find_config_path(repo, config_path))
        orchestrator = ReleaseOrchestrator(
            repo,
            workspace,
            release_branch,
            config,
            EnvironmentOverrides.from_environ(),
        )
        state = orchestrator.run()
    except InconsistentChangesError as e:
        print_error("Package changes differ between architectures, rebuild the release")
        err_console.print(e.first, markup=False, highlight=False)
        err_console.print("versus", markup=False, highlight=False)
        err_console.print(e.second, markup=False, highlight=False)
        raise typer.Exit(code=1) from e
    except SnaprelError as e:
        print_error(str(e))
        raise typer.Exit(code=1) from e

    print_success(f"Released {state.snap} {state.version}")
    print_info(f"Tag: {state.tag}")
    print_info(f"Development continues at {state.next_version}-dev")
