"""Argument parsing functionality for uiget."""

import argparse

from constants import Constants


def _add_registry_option(parser):
    parser.add_argument("-r", "--registry",
                        dest="REGISTRY",
                        help="Registry namespace to use (default: probe all registries)",
                        action="store",
                        type=str)


def build_parser():
    """Builds the top-level parser with one subparser per command."""
    parser = argparse.ArgumentParser(
        prog="uiget",
        description="uiget - install UI components from shadcn-style registries",
        add_help=True,
    )
    parser.add_argument("--version",
                        action="version",
                        version=f"%(prog)s {Constants.VERSION}")
    parser.add_argument("-c", "--config",
                        dest="CONFIG",
                        help=f"Path to configuration file (default: {' or '.join(Constants.CONFIG_FILES)})",
                        action="store",
                        type=str)
    parser.add_argument("-v", "--verbose",
                        dest="VERBOSE",
                        help="Show detection and path resolution details",
                        action="store_true")
    parser.add_argument("--loglevel",
                        dest="LOG_LEVEL",
                        help="Set the logging level",
                        action="store",
                        type=str.upper,
                        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'],
                        default='INFO')
    parser.add_argument("--logfile",
                        dest="LOG_FILE",
                        help="Log output file",
                        action="store",
                        type=str)

    sub = parser.add_subparsers(dest="COMMAND", metavar="<command>")
    sub.required = True

    init = sub.add_parser("init", help="Create a configuration file")
    init.add_argument("-f", "--force", dest="FORCE", action="store_true",
                      help="Overwrite an existing configuration file")
    init.add_argument("--base-color", dest="BASE_COLOR", default=Constants.DEFAULT_BASE_COLOR,
                      help="Tailwind base color")
    init.add_argument("--css", dest="CSS", default=Constants.DEFAULT_CSS,
                      help="Path of the global CSS file")
    init.add_argument("--components", dest="COMPONENTS_ALIAS", default=Constants.DEFAULT_COMPONENTS_ALIAS,
                      help="Components import alias")
    init.add_argument("--utils", dest="UTILS_ALIAS", default=Constants.DEFAULT_UTILS_ALIAS,
                      help="Utils import alias")
    init.add_argument("--no-typescript", dest="NO_TYPESCRIPT", action="store_true",
                      help="Disable TypeScript path mapping and import rewriting")

    add = sub.add_parser("add", help="Install a component (interactive when omitted)")
    add.add_argument("COMPONENT", nargs="?", help="Component name, optionally as @namespace/name")
    _add_registry_option(add)
    add.add_argument("--skip-deps", dest="SKIP_DEPS", action="store_true",
                     help="Do not install registry dependencies")
    add.add_argument("-f", "--force", dest="FORCE", action="store_true",
                     help="Overwrite existing files")

    list_cmd = sub.add_parser("list", help="List components available in registries")
    _add_registry_option(list_cmd)

    search = sub.add_parser("search", help="Search components by name or type")
    search.add_argument("QUERY", help="Search text")
    _add_registry_option(search)

    info = sub.add_parser("info", help="Show details about a component")
    info.add_argument("COMPONENT", help="Component name, optionally as @namespace/name")
    _add_registry_option(info)

    outdated = sub.add_parser("outdated", help="List installed components that differ from the registry")
    _add_registry_option(outdated)

    registry = sub.add_parser("registry", help="Manage configured registries")
    reg_sub = registry.add_subparsers(dest="REGISTRY_COMMAND", metavar="<action>")
    reg_sub.required = True
    reg_add = reg_sub.add_parser("add", help="Add or replace a registry")
    reg_add.add_argument("NAMESPACE", help="Registry namespace, e.g. @acme")
    reg_add.add_argument("URL", help="URL template containing {name}")
    reg_remove = reg_sub.add_parser("remove", help="Remove a registry")
    reg_remove.add_argument("NAMESPACE", help="Registry namespace")
    reg_sub.add_parser("list", help="List configured registries")
    reg_test = reg_sub.add_parser("test", help="Check that a registry index can be fetched")
    reg_test.add_argument("NAMESPACE", help="Registry namespace")

    return parser


def parse_args(argv=None):
    """Parses the arguments passed to the program."""
    return build_parser().parse_args(argv)
