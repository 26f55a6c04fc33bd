"""
Loads the instance bootstrap (user data) script before the stack is built
"""

import logging
import os
from typing import Optional

from .errors import BootstrapScriptError

logger = logging.getLogger(__name__)

# Relative script paths resolve against the CDK app directory
APP_DIR = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))


def resolve_script_path(path: str, base_dir: Optional[str] = None) -> str:
    if os.path.isabs(path):
        return path
    return os.path.join(base_dir or APP_DIR, path)


def load_bootstrap_script(path: str, base_dir: Optional[str] = None) -> str:
    """
    Read the bootstrap script that every instance runs at first boot.

    The file is read eagerly so a missing or empty script fails synthesis
    instead of producing instances that never install the deployment agent.
    """
    full_path = resolve_script_path(path, base_dir)

    if not os.path.isfile(full_path):
        raise BootstrapScriptError(full_path, "file not found")

    try:
        with open(full_path, 'r', encoding='utf-8') as f:
            script = f.read()
    except (OSError, UnicodeDecodeError) as e:
        raise BootstrapScriptError(full_path, str(e)) from e

    if not script.strip():
        raise BootstrapScriptError(full_path, "file is empty")

    logger.info("Loaded bootstrap script %s (%d bytes)", full_path, len(script.encode('utf-8')))
    return script
