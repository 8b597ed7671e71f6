"""Download, platform and environment constants."""

# Streaming
CHUNK_SIZE = 8192

# Options merged under caller-supplied download options
DEFAULT_FETCH_OPTIONS = {"extract": True}

# Environment variables read by Settings.from_env
ENV_PREFIX = "BIN_MANAGER_"
ENV_LOG_LEVEL = f"{ENV_PREFIX}LOG_LEVEL"
ENV_DESTINATION = f"{ENV_PREFIX}DESTINATION"
ENV_APP_NAME = f"{ENV_PREFIX}APP_NAME"

DEFAULT_APP_NAME = "bin-manager"
DEFAULT_LOG_LEVEL = "INFO"
CACHE_SUBDIR = "bin"

WINDOWS_EXECUTABLE_SUFFIX = ".exe"
