"""
Default settings for tsam.

These are the default values used when no user configuration exists.
"""

# Fixed by the argument-file contract; not overridable by settings
DEFAULT_STATE = "default"
DEFAULT_MODULE_PATH = "root"
VARIABLES_FILE_NAME = "vars.tf"

DEFAULT_SETTINGS = {
    "version": "1.0.0",

    # Logging (console output always goes to stderr)
    "log_level": "WARNING",
    "log_file": False,

    # Network backends (http, consul, remote)
    "http": {
        "timeout": 30,
    },

    # Local backend layout
    "local": {
        "default_path": "terraform.tfstate",
        "workspace_dir": "terraform.tfstate.d",
    },
}
