"""Global constants for stow-desktop."""

APP_NAME = "Stow Dashboard"

# Server process defaults

DEFAULT_PORT = 3088
DEFAULT_HOST = "localhost"
SERVER_ENTRY = "server.js"
SERVER_ENV_FILE = ".env.local"
RUNTIME_BINARY = "node"

# Where a development checkout keeps the standalone build, relative to an ancestor
STANDALONE_SUBPATH = (".next", "standalone")
MACOS_RESOURCES_SUBPATH = ("Resources", "standalone")
ANCESTOR_SEARCH_DEPTH = 10

RUNTIME_BINARY_CANDIDATES = (
    "/opt/homebrew/bin/node",  # Apple Silicon Homebrew
    "/usr/local/bin/node",  # Intel Homebrew / manual install
    "/usr/bin/node",
    "/opt/local/bin/node",  # MacPorts
)

# Health probe

PROBE_TIMEOUT_SECONDS = 15.0
PROBE_INTERVAL_SECONDS = 0.2
SHOW_DELAY_SECONDS = 0.5

# Window

WINDOW_NAME = "main"
WINDOW_WIDTH = 1400
WINDOW_HEIGHT = 900
WINDOW_MIN_WIDTH = 800
WINDOW_MIN_HEIGHT = 600

# Rescan

RESCAN_PATH = "/api/scan"
RESCAN_TIMEOUT_SECONDS = 5.0
RESCAN_MAX_INFLIGHT = 4

# Environment variables read by the CLI

PORT_ENV_VAR = "STOW_PORT"
SERVER_DIR_ENV_VAR = "STOW_SERVER_DIR"
NODE_ENV_VAR = "STOW_NODE"
