"""CLI handlers for the ``registry`` command group."""

import logging
import sys

from cli_config import config_path_for, load_project_config
from constants import ExitCodes
from project.config import RegistryConfig, save_config
from registry.client import RegistryClient

logger = logging.getLogger(__name__)


def run_registry(args, cwd):
    """Dispatch ``registry add|remove|list|test``."""
    config = load_project_config(args, cwd)
    action = args.REGISTRY_COMMAND

    if action == "list":
        if not config.registries:
            print("No registries configured.")
            return
        for namespace, reg in config.registries.items():
            print(f"{namespace}: {reg.url}")
        return

    if action == "add":
        replaced = args.NAMESPACE in config.registries
        config.add_registry(args.NAMESPACE, args.URL)
        save_config(config, config_path_for(args, cwd))
        logger.info("%s registry '%s' -> %s", "Updated" if replaced else "Added", args.NAMESPACE, args.URL)
        return

    if action == "remove":
        if not config.remove_registry(args.NAMESPACE):
            logger.error("Registry '%s' not found", args.NAMESPACE)
            sys.exit(ExitCodes.USAGE_ERROR.value)
        save_config(config, config_path_for(args, cwd))
        logger.info("Removed registry '%s'", args.NAMESPACE)
        return

    if action == "test":
        reg = config.registries.get(args.NAMESPACE)
        if reg is None:
            logger.error("Registry '%s' not found", args.NAMESPACE)
            sys.exit(ExitCodes.USAGE_ERROR.value)
        _test_registry(args.NAMESPACE, reg, config.style)
        return

    logger.error("Unknown registry action: %s", action)
    sys.exit(ExitCodes.USAGE_ERROR.value)


def _test_registry(namespace: str, reg: RegistryConfig, style):
    client = RegistryClient(namespace, reg, style=style)
    index = client.fetch_index()
    if not index:
        logger.warning("Registry '%s' responded but no index was found", namespace)
        return
    print(f"Registry '{namespace}' OK: {len(index)} component(s) available")
