"""Configuration commands and config loading for the CLI.

Kept out of uiget.py so the entrypoint only dispatches.
"""

from __future__ import annotations

import logging
import os
import sys

from constants import Constants, ExitCodes
from project.config import (
    AliasesConfig,
    Config,
    TailwindConfig,
    TypeScriptConfig,
    find_config_path,
    load_config,
    save_config,
)

logger = logging.getLogger(__name__)


def config_path_for(args, cwd: str) -> str:
    return find_config_path(cwd, getattr(args, "CONFIG", None))


def load_project_config(args, cwd: str) -> Config:
    """Load the configuration named by ``--config`` or found in ``cwd``."""
    return load_config(config_path_for(args, cwd))


def run_init(args, cwd: str) -> None:
    """Create a configuration file with default aliases and registry."""
    path = config_path_for(args, cwd)
    if os.path.exists(path) and not args.FORCE:
        logger.error("Configuration already exists at %s (use --force to overwrite)", path)
        sys.exit(ExitCodes.FILE_ERROR.value)

    config = Config.default()
    config.tailwind = TailwindConfig(css=args.CSS, base_color=args.BASE_COLOR)
    config.aliases = AliasesConfig(components=args.COMPONENTS_ALIAS, utils=args.UTILS_ALIAS)
    if args.NO_TYPESCRIPT:
        config.typescript = TypeScriptConfig(enabled=False)
    save_config(config, path)
    logger.info("Created %s", path)
    logger.info("Default registry: %s", Constants.DEFAULT_REGISTRY_URL)
