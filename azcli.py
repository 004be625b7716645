# azcli.py
"""Thin wrapper around the Azure CLI used for prerequisite and session checks."""

import json
import os
import shutil
import subprocess

from logger import get_logger

logger = get_logger(__name__)


class AzureCliError(Exception):
    """Raised when an az command fails."""

    def __init__(self, command, return_code, stderr):
        self.command = command
        self.return_code = return_code
        self.stderr = stderr
        super().__init__(f"az {command} failed (exit {return_code}): {stderr}")


def get_az_exe():
    return "az.cmd" if os.name == "nt" else "az"


def is_installed(executable):
    return shutil.which(executable) is not None


def run_capture(args):
    cmd = [get_az_exe(), *args]
    logger.debug("$ " + " ".join(cmd))
    result = subprocess.run(cmd, capture_output=True, text=True)
    if result.returncode != 0:
        raise AzureCliError(" ".join(args), result.returncode, result.stderr.strip())
    return result.stdout.strip()


def run_json(args):
    output = run_capture([*args, "-o", "json"])
    return json.loads(output) if output else None


def cli_version():
    return run_json(["version"])["azure-cli"]


def account_show():
    """The active az session, or None when nobody is logged in."""
    try:
        return run_json(["account", "show"])
    except AzureCliError:
        return None
