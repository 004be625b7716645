# config.py
"""
Customer parameter set for the landing zone.

A parameter file is YAML under ``parameters/<customer>.yaml``. It is read
once per deployment and turned into the dataclasses below; nothing in the
program mutates them afterwards.
"""

import ipaddress
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

import naming

PROJECT_NAME = "landing-zone"
ROOT_DIR = Path(__file__).resolve().parent
PARAMETERS_DIR = ROOT_DIR / "parameters"
OUTPUTS_DIR = ROOT_DIR / "outputs"

ENVIRONMENTS = ["prod", "nonprod", "dev", "test", "sandbox"]

# Dotted paths that must hold a non-empty value
REQUIRED_PARAMETERS = [
    "organization_name",
    "primary_location",
    "secondary_location",
    "subscriptions.management",
    "subscriptions.connectivity",
    "subscriptions.identity",
    "cost_center",
    "owners",
]

DEFAULT_DEFENDER_PLANS = [
    "VirtualMachines",
    "StorageAccounts",
    "KeyVaults",
    "Arm",
    "SqlServers",
    "Containers",
]

DEFAULT_REQUIRED_TAGS = ["CostCenter", "Owner", "Environment"]


class ParameterError(ValueError):
    """Raised when a parameter file is missing or malformed."""


@dataclass
class Subscriptions:
    management: str
    connectivity: str
    identity: str
    landing_zones: Dict[str, str] = field(default_factory=dict)

    def platform(self) -> Dict[str, str]:
        return {
            "management": self.management,
            "connectivity": self.connectivity,
            "identity": self.identity,
        }


@dataclass
class Spoke:
    name: str
    subscription_id: str
    address_space: str
    subnets: Dict[str, str] = field(default_factory=dict)


@dataclass
class Network:
    hub_address_space: str = "10.0.0.0/16"
    firewall_subnet: Optional[str] = None
    gateway_subnet: Optional[str] = None
    bastion_subnet: Optional[str] = None
    shared_services_subnet: Optional[str] = None
    dns_servers: List[str] = field(default_factory=list)
    spokes: List[Spoke] = field(default_factory=list)
    vpn_gateway_sku: str = "VpnGw1AZ"
    express_route_gateway_sku: str = "ErGw1AZ"
    firewall_tier: str = "Standard"
    bastion_sku: str = "Standard"

    def __post_init__(self):
        hub = ipaddress.ip_network(self.hub_address_space, strict=False)
        # Default hub layout: /26 firewall, /27 gateway, /26 bastion, /24 shared services
        self.firewall_subnet = self.firewall_subnet or _carve(hub, 0, 26)
        self.gateway_subnet = self.gateway_subnet or _carve(hub, 64, 27)
        self.bastion_subnet = self.bastion_subnet or _carve(hub, 128, 26)
        self.shared_services_subnet = self.shared_services_subnet or _carve(hub, 256, 24)


@dataclass
class Features:
    enable_express_route: bool = False
    enable_vpn_gateway: bool = False
    enable_firewall: bool = True
    enable_bastion: bool = True
    enable_defender: bool = True
    enable_backup: bool = True


@dataclass
class Security:
    contact_emails: List[str] = field(default_factory=list)
    defender_plans: List[str] = field(default_factory=lambda: list(DEFAULT_DEFENDER_PLANS))


@dataclass
class Governance:
    allowed_locations: List[str] = field(default_factory=list)
    required_tags: List[str] = field(default_factory=lambda: list(DEFAULT_REQUIRED_TAGS))


@dataclass
class CustomerParameters:
    using: str
    organization_name: str
    organization_prefix: str
    primary_location: str
    secondary_location: str
    subscriptions: Subscriptions
    cost_center: str
    owners: List[str]
    environment: str = "prod"
    network: Network = field(default_factory=Network)
    features: Features = field(default_factory=Features)
    security: Security = field(default_factory=Security)
    governance: Governance = field(default_factory=Governance)
    log_retention_days: int = 90
    backup_retention_days: int = 30
    tags: Dict[str, str] = field(default_factory=dict)
    additional_resources: List[Dict[str, Any]] = field(default_factory=list)

    @property
    def contact_emails(self) -> List[str]:
        return self.security.contact_emails or self.owners


def _carve(hub, offset: int, prefix: int) -> str:
    return str(ipaddress.ip_network(f"{hub.network_address + offset}/{prefix}", strict=False))


def lookup(data: Dict[str, Any], dotted: str) -> Any:
    """Return the value at a dotted path, or None when any part is missing."""
    value: Any = data
    for part in dotted.split("."):
        if not isinstance(value, dict):
            return None
        value = value.get(part)
    return value


def parameter_file(customer: str) -> Path:
    return PARAMETERS_DIR / f"{customer}.yaml"


def read_parameter_file(file_path) -> Dict[str, Any]:
    """Load the raw YAML mapping of a parameter file."""
    path = Path(file_path)
    if not path.is_file():
        raise ParameterError(f"Parameter file not found: {path}")
    try:
        with open(path, "r") as file:
            data = yaml.safe_load(file)
    except yaml.YAMLError as e:
        raise ParameterError(f"Invalid YAML in {path}: {e}") from e
    if not isinstance(data, dict):
        raise ParameterError(f"Parameter file {path} must contain a mapping")
    return data


def from_dict(data: Dict[str, Any]) -> CustomerParameters:
    missing = [key for key in REQUIRED_PARAMETERS if lookup(data, key) in (None, "", [])]
    if missing:
        raise ParameterError(f"Missing required parameters: {', '.join(missing)}")

    subs = data["subscriptions"]
    net = dict(data.get("network") or {})
    spokes = [Spoke(**spoke) for spoke in net.pop("spokes", None) or []]
    security = data.get("security") or {}
    governance = dict(data.get("governance") or {})
    if not governance.get("allowed_locations"):
        governance["allowed_locations"] = [data["primary_location"], data["secondary_location"]]

    owners = data["owners"]
    if isinstance(owners, str):
        owners = [owners]

    try:
        return CustomerParameters(
            using=data.get("using", ""),
            organization_name=data["organization_name"],
            organization_prefix=data.get("organization_prefix")
            or naming.organization_prefix(data["organization_name"]),
            primary_location=data["primary_location"],
            secondary_location=data["secondary_location"],
            subscriptions=Subscriptions(
                management=subs["management"],
                connectivity=subs["connectivity"],
                identity=subs["identity"],
                landing_zones=subs.get("landing_zones") or {},
            ),
            cost_center=str(data["cost_center"]),
            owners=list(owners),
            environment=data.get("environment", "prod"),
            network=Network(spokes=spokes, **net),
            features=Features(**(data.get("features") or {})),
            security=Security(**security),
            governance=Governance(**governance),
            log_retention_days=(data.get("monitoring") or {}).get("log_retention_days", 90),
            backup_retention_days=(data.get("backup") or {}).get("retention_days", 30),
            tags=data.get("tags") or {},
            additional_resources=data.get("additional_resources") or [],
        )
    except (TypeError, ValueError) as e:
        # Unknown keys inside a section end up as unexpected dataclass arguments
        raise ParameterError(f"Invalid parameter: {e}") from e


def load_parameters(file_path) -> CustomerParameters:
    """Load and convert a customer parameter file."""
    return from_dict(read_parameter_file(file_path))
