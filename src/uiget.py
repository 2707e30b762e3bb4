"""uiget - install UI components from shadcn-style registries.

    Returns:
        int: Exit code
"""
import logging
import os
import sys

from args import parse_args
from cli_config import load_project_config, run_init
from cli_registry import run_registry
from common.errors import UigetError
from common.http_client import HttpRequestError
from common.logging_utils import configure_logging, extra_context, is_debug_enabled
from constants import ExitCodes
from installer.component_installer import ComponentInstaller, InstallError
from registry.errors import RegistryError
from registry.manager import parse_component_with_namespace

logger = logging.getLogger(__name__)


def _exit_code_for(exc: UigetError) -> int:
    if isinstance(exc, (RegistryError, HttpRequestError)):
        return ExitCodes.CONNECTION_ERROR.value
    if isinstance(exc, InstallError):
        return ExitCodes.INSTALL_ERROR.value
    return ExitCodes.FILE_ERROR.value


def _print_listings(listings, empty_message):
    if not listings:
        print(empty_message)
        return
    for listing in listings:
        print(f"\n{listing.namespace} ({len(listing.components)} components)")
        for status in listing.components:
            kind = f"  [{status.info.type}]" if status.info.type else ""
            print(f"  {status.marker} {status.info.name}{kind}")


def _build_installer(args, cwd):
    config = load_project_config(args, cwd)
    return ComponentInstaller(config, cwd=cwd, verbose=args.VERBOSE)


def run_add(args, cwd):
    installer = _build_installer(args, cwd)
    if args.COMPONENT is None:
        installer.install(None, args.REGISTRY, args.FORCE, args.SKIP_DEPS)
        return
    name, namespace = parse_component_with_namespace(args.COMPONENT, args.REGISTRY)
    installer.install(name, namespace, args.FORCE, args.SKIP_DEPS)


def run_list(args, cwd):
    installer = _build_installer(args, cwd)
    _print_listings(installer.list_components(args.REGISTRY), "No components found.")


def run_search(args, cwd):
    installer = _build_installer(args, cwd)
    results = installer.search_components(args.QUERY, args.REGISTRY)
    _print_listings(results, f"No components matching '{args.QUERY}'.")


def run_info(args, cwd):
    installer = _build_installer(args, cwd)
    name, namespace = parse_component_with_namespace(args.COMPONENT, args.REGISTRY)
    component = installer.get_component_info(name, namespace)
    installed = installer.is_component_installed(component.name)
    print(f"{component.name} ({component.registry})")
    if component.type:
        print(f"  Type: {component.type}")
    if component.description:
        print(f"  Description: {component.description}")
    print(f"  Installed: {'yes' if installed else 'no'}")
    for label, values in (
        ("Dependencies", component.dependencies),
        ("Dev dependencies", component.dev_dependencies),
        ("Registry dependencies", component.registry_dependencies),
    ):
        if values:
            print(f"  {label}: {', '.join(values)}")
    print("  Files:")
    for file in component.files:
        print(f"    {file.target_path}")


def run_outdated(args, cwd):
    installer = _build_installer(args, cwd)
    installed = installer.get_installed_components()
    if not installed:
        print("No installed components found.")
        return
    outdated = installer.check_outdated_components(installed, args.REGISTRY)
    if not outdated:
        print(f"All {len(installed)} installed component(s) are up to date.")
        return
    print("Outdated components:")
    for name in outdated:
        print(f"  ⚠ {name}")
    print("Run 'uiget add <component> --force' to update.")


COMMANDS = {
    "init": run_init,
    "add": run_add,
    "list": run_list,
    "search": run_search,
    "info": run_info,
    "outdated": run_outdated,
    "registry": run_registry,
}


def main(argv=None):
    """Main function of the program."""
    args = parse_args(argv)
    configure_logging(args.LOG_LEVEL, args.LOG_FILE)

    if is_debug_enabled(logger):
        logger.debug(
            "CLI start",
            extra=extra_context(event="function_entry", component="cli", action=args.COMMAND),
        )

    handler = COMMANDS[args.COMMAND]
    try:
        handler(args, os.getcwd())
    except UigetError as exc:
        logger.error("%s", exc)
        sys.exit(_exit_code_for(exc))
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        sys.exit(130)

    sys.exit(ExitCodes.SUCCESS.value)


if __name__ == "__main__":
    main()
