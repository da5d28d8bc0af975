# extsync Default Configuration
# Full default configuration as Python dict and YAML generator

import copy
from typing import Any

import yaml

DEFAULT_CONFIG: dict[str, Any] = {
    "editor": {
        "name": "code",
        "list_command": ["{editor}", "--list-extensions"],
        "install_command": ["{editor}", "--install-extension", "{id}"],
        "uninstall_command": ["{editor}", "--uninstall-extension", "{id}"],
        "settings_dir": None,
        "settings_files": ["settings.json", "keybindings.json", "snippets/*.json"],
        "backups_dir": "~/.config/extsync/backups",
    },
    "remote": {
        "backend": "directory",
        "path": "~/extsync-remote",
        "snapshot_file": "extsync.json",
        "git_remote": "origin",
        "auto_pull": True,
        "auto_push": True,
        "commit_prefix": "[SYNC]",
    },
    "sync": {
        "poll_interval": 60,
        "startup_delay": 10,
        "collaborator_timeout": 120,
        "notify": True,
    },
    "instance": {
        "registry_file": "~/.config/extsync/instances.yaml",
    },
    "output": {
        "verbose": False,
        "colored": True,
        "log_file": "~/.config/extsync/sync.log",
    },
    "state_file": "~/.config/extsync/state.yaml",
}


def get_default_config() -> dict[str, Any]:
    """Get a deep copy of the default configuration."""
    return copy.deepcopy(DEFAULT_CONFIG)


def generate_default_config() -> str:
    """Generate default configuration as YAML string with comments."""
    header = """# extsync - Extension & Settings Sync Configuration
#
# Keeps the extensions and settings of a local editor in sync with a
# snapshot shared by all your machines.
#
# editor.*_command: argv lists; {editor} is replaced by editor.name and
#                   {id} by the extension identifier.
# editor.settings_dir: null means the platform default for editor.name.
#
# Remote backends:
#   - directory: snapshot file in a shared folder (network share, Syncthing, ...)
#   - git:       snapshot file committed to a git working copy

"""
    return header + yaml.dump(DEFAULT_CONFIG, default_flow_style=False, sort_keys=False, allow_unicode=True)
