# validate.py
"""
Lint customer parameter files and the landing zone program.

Usage:
    python validate.py                 # every file under parameters/
    python validate.py -c contoso      # parameters/contoso.yaml only

Exit code 0 when everything passes, 1 otherwise.
"""

import argparse
import ipaddress
import re
import sys
from itertools import combinations
from pathlib import Path
from typing import Any, Dict, List

import yaml

import config
from config import ParameterError, lookup
from logger import setup_logger

GUID_PATTERN = re.compile(r"^[0-9a-fA-F]{8}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{12}$")
PLACEHOLDER_PATTERN = re.compile(r"^0{8}-")

PROGRAM_MODULES = [
    "__main__.py",
    "config.py",
    "naming.py",
    "tagging.py",
    "landing_zone.py",
    "management_groups.py",
    "networking.py",
    "monitoring.py",
    "security.py",
    "policy.py",
    "backup.py",
    "custom_resources.py",
]

# Smallest subnet Azure accepts for each platform subnet
MINIMUM_SUBNET_SIZES = {
    "firewall_subnet": 26,
    "gateway_subnet": 27,
    "bastion_subnet": 26,
}

logger = setup_logger()


class UsageError(Exception):
    """Raised for bad command line arguments; the CLIs exit with code 1."""


class ArgumentParser(argparse.ArgumentParser):
    def error(self, message):
        self.print_usage(sys.stderr)
        raise UsageError(message)


def check_program(root: Path = config.ROOT_DIR) -> List[str]:
    """Counterpart of a template build: the project file is sane and every module compiles."""
    findings = []
    project_file = root / "Pulumi.yaml"
    if not project_file.is_file():
        return [f"Pulumi project file not found: {project_file}"]

    with open(project_file, "r") as file:
        project = yaml.safe_load(file) or {}
    if project.get("name") != config.PROJECT_NAME:
        findings.append(f"Pulumi project name must be '{config.PROJECT_NAME}', got '{project.get('name')}'")
    runtime = project.get("runtime")
    runtime_name = runtime.get("name") if isinstance(runtime, dict) else runtime
    if runtime_name != "python":
        findings.append(f"Pulumi project runtime must be 'python', got '{runtime_name}'")

    for module in PROGRAM_MODULES:
        path = root / module
        if not path.is_file():
            findings.append(f"Program module missing: {module}")
            continue
        try:
            compile(path.read_text(), str(path), "exec")
        except SyntaxError as e:
            findings.append(f"{module}:{e.lineno}: {e.msg}")
    return findings


def check_subscription_id(label: str, value: Any) -> List[str]:
    value = str(value or "")
    if PLACEHOLDER_PATTERN.match(value):
        return [f"Subscription ID '{label}' is still a placeholder: {value}"]
    if not GUID_PATTERN.match(value):
        return [f"Subscription ID '{label}' is not a GUID: {value}"]
    return []


def _parse_network(label: str, value: Any, findings: List[str]):
    try:
        return ipaddress.ip_network(str(value), strict=True)
    except ValueError as e:
        findings.append(f"Invalid CIDR for {label}: {e}")
        return None


def check_network(data: Dict[str, Any]) -> List[str]:
    findings = []
    net = data.get("network") or {}
    if not isinstance(net, dict):
        return ["'network' must be a mapping"]
    net = dict(net)
    spokes = net.pop("spokes", None) or []
    if not isinstance(spokes, list):
        findings.append("'network.spokes' must be a list of spokes")
        spokes = []

    try:
        # Reuse the defaulting rules so carved subnets get checked too
        hub_plan = config.Network(**net)
    except (TypeError, ValueError) as e:
        return findings + [f"Invalid network section: {e}"]

    hub = _parse_network("network.hub_address_space", hub_plan.hub_address_space, findings)
    if hub is None:
        return findings

    hub_subnets = {}
    for key in ("firewall_subnet", "gateway_subnet", "bastion_subnet", "shared_services_subnet"):
        subnet = _parse_network(f"network.{key}", getattr(hub_plan, key), findings)
        if subnet is None:
            continue
        hub_subnets[key] = subnet
        if subnet.version != hub.version or not subnet.subnet_of(hub):
            findings.append(f"network.{key} {subnet} is outside the hub address space {hub}")
        minimum = MINIMUM_SUBNET_SIZES.get(key)
        if minimum and subnet.prefixlen > minimum:
            findings.append(f"network.{key} {subnet} must be /{minimum} or larger")

    for (key_a, a), (key_b, b) in combinations(hub_subnets.items(), 2):
        if a.overlaps(b):
            findings.append(f"network.{key_a} {a} overlaps network.{key_b} {b}")

    spaces = {"hub": hub}
    for index, spoke in enumerate(spokes):
        if not isinstance(spoke, dict):
            findings.append(f"network.spokes[{index}] must be a mapping, got {spoke!r}")
            continue
        name = spoke.get("name") or f"spokes[{index}]"
        for key in ("name", "subscription_id", "address_space"):
            if not spoke.get(key):
                findings.append(f"Spoke '{name}' is missing '{key}'")
        if spoke.get("subscription_id"):
            findings.extend(check_subscription_id(f"spoke {name}", spoke["subscription_id"]))
        if not spoke.get("address_space"):
            continue
        space = _parse_network(f"spoke {name}", spoke["address_space"], findings)
        if space is None:
            continue
        for other_name, other in spaces.items():
            if space.version == other.version and space.overlaps(other):
                findings.append(f"Spoke '{name}' address space {space} overlaps {other_name} {other}")
        spaces[name] = space
        subnets = spoke.get("subnets") or {}
        if not isinstance(subnets, dict):
            findings.append(f"Spoke '{name}' subnets must be a mapping of subnet names to prefixes")
            continue
        for subnet_name, prefix in subnets.items():
            subnet = _parse_network(f"spoke {name} subnet {subnet_name}", prefix, findings)
            if subnet is not None and (subnet.version != space.version or not subnet.subnet_of(space)):
                findings.append(f"Spoke '{name}' subnet {subnet_name} {subnet} is outside {space}")

    return findings


def check_parameters(data: Dict[str, Any]) -> List[str]:
    findings = []

    if data.get("using") != config.PROJECT_NAME:
        findings.append(f"Parameter file must declare 'using: {config.PROJECT_NAME}'")

    for key in config.REQUIRED_PARAMETERS:
        if lookup(data, key) in (None, "", []):
            findings.append(f"Required parameter '{key}' has no value")

    subscriptions = data.get("subscriptions") or {}
    if not isinstance(subscriptions, dict):
        findings.append("'subscriptions' must be a mapping of subscription keys to IDs")
        subscriptions = {}
    for key in ("management", "connectivity", "identity"):
        if subscriptions.get(key):
            findings.extend(check_subscription_id(key, subscriptions[key]))
    landing_zones = subscriptions.get("landing_zones") or {}
    if not isinstance(landing_zones, dict):
        findings.append("'subscriptions.landing_zones' must be a mapping of names to subscription IDs")
        landing_zones = {}
    for key, value in landing_zones.items():
        findings.extend(check_subscription_id(f"landing_zones.{key}", value))

    environment = data.get("environment", "prod")
    if environment not in config.ENVIRONMENTS:
        findings.append(f"environment must be one of {', '.join(config.ENVIRONMENTS)}, got '{environment}'")

    findings.extend(check_network(data))
    return findings


def validate_file(path: Path) -> List[str]:
    try:
        data = config.read_parameter_file(path)
    except ParameterError as e:
        return [str(e)]

    findings = check_parameters(data)
    if not findings:
        try:
            config.from_dict(data)
        except ParameterError as e:
            findings.append(str(e))
    return findings


def parameter_files(customer=None) -> List[Path]:
    if customer:
        return [config.parameter_file(customer)]
    return sorted(config.PARAMETERS_DIR.glob("*.yaml"))


def validate(customer=None) -> int:
    failed = False

    logger.info("Validating landing zone program...")
    program_findings = check_program()
    for finding in program_findings:
        logger.error(finding)
    if program_findings:
        failed = True
    else:
        logger.info("Program validation passed")

    files = parameter_files(customer)
    if not files:
        logger.error(f"No parameter files found in {config.PARAMETERS_DIR}")
        return 1

    for path in files:
        logger.info(f"Validating {path.name}...")
        findings = validate_file(path)
        for finding in findings:
            logger.error(f"  {finding}")
        if findings:
            failed = True
        else:
            logger.info(f"  {path.name} passed")

    if failed:
        logger.error("Validation failed")
        return 1
    logger.info("All validations passed")
    return 0


def main(argv=None) -> int:
    parser = ArgumentParser(description="Validate landing zone parameter files")
    parser.add_argument("-c", "--customer", help="Customer parameter file name (default: all)")
    parser.add_argument("--debug", action="store_true", help="Verbose output")
    try:
        args = parser.parse_args(argv)
    except UsageError as e:
        logger.error(str(e))
        return 1

    setup_logger(debug_mode=args.debug)
    return validate(args.customer)


if __name__ == "__main__":
    sys.exit(main())
