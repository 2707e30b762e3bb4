"""Constants used in the project."""

from enum import Enum


class ExitCodes(Enum):
    """Exit codes for the program.

    Args:
        Enum (int): Exit codes for the program.
    """

    SUCCESS = 0
    FILE_ERROR = 1
    CONNECTION_ERROR = 2
    INSTALL_ERROR = 3
    USAGE_ERROR = 4


class ComponentTypes(Enum):
    """Registry item categories understood by the installer.

    Args:
        Enum (string): Registry item type tags.
    """

    UI = "registry:ui"
    BLOCK = "registry:block"
    HOOK = "registry:hook"
    LIB = "registry:lib"
    UTIL = "registry:util"


class Constants:  # pylint: disable=too-few-public-methods
    """General constants used in the project.
    Data holder for configuration constants; not intended to provide behavior.
    """

    VERSION = "0.1.0"
    USER_AGENT = f"uiget/{VERSION}"

    CONFIG_FILE = "uiget.json"
    CONFIG_FILE_SHADCN = "components.json"
    CONFIG_FILES = [CONFIG_FILE, CONFIG_FILE_SHADCN]
    CONFIG_SCHEMA_URL = "https://shadcn-svelte.com/schema.json"

    PACKAGE_JSON_FILE = "package.json"
    TSCONFIG_FILE = "tsconfig.json"
    PNPM_WORKSPACE_FILE = "pnpm-workspace.yaml"
    YARN_LOCK_FILE = "yarn.lock"
    PNPM_LOCK_FILE = "pnpm-lock.yaml"
    PACKAGE_LOCK_FILE = "package-lock.json"
    BUN_LOCKB_FILE = "bun.lockb"
    BUN_LOCK_FILE = "bun.lock"
    YARN_BERRY_MARKERS = [
        ".pnp.cjs",
        ".pnp.loader.mjs",
        ".pnp.data.json",
        ".yarnrc.yml",
        ".yarn",
    ]
    NODE_BIN_DIR = "node_modules/.bin"
    USER_AGENT_ENV = "npm_config_user_agent"

    DEFAULT_REGISTRY_NAMESPACE = "default"
    DEFAULT_REGISTRY_NAMESPACES = ["default", "@default"]
    DEFAULT_REGISTRY_URL = "https://shadcn-svelte.com/registry/{name}.json"
    SHADCN_HOST = "ui.shadcn.com"
    SHADCN_INDEX_URL = "https://ui.shadcn.com/r/index.json"

    DEFAULT_COMPONENTS_ALIAS = "$lib/components"
    DEFAULT_UTILS_ALIAS = "$lib/utils"
    DEFAULT_UI_ALIAS = "$lib/components/ui"
    DEFAULT_HOOKS_ALIAS = "$lib/hooks"
    DEFAULT_LIB_ALIAS = "$lib"
    LIB_TOKEN = "$lib"
    LIB_FALLBACK_DIR = "src/lib"
    DEFAULT_BASE_COLOR = "slate"
    DEFAULT_CSS = "src/app.css"
    DEFAULT_STYLE = "default"

    COMPONENT_EXTENSIONS = ["tsx", "ts", "jsx", "js", "svelte", "vue"]
    BULK_PREVIEW_LIMIT = 10

    LOG_FORMAT = "[%(levelname)s] %(message)s"
    LOG_FILE_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"
    REQUEST_TIMEOUT = 30  # Timeout in seconds for all HTTP requests
