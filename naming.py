# naming.py
"""
Naming standard for landing zone resources.

Names follow <abbreviation>-<prefix>-<purpose>-<environment>-<region>, all
lower case, with empty parts left out.
"""

import re
from typing import Optional

RESOURCE_ABBREVIATIONS = {
    "resource_group": "rg",
    "virtual_network": "vnet",
    "subnet": "snet",
    "peering": "peer",
    "route_table": "rt",
    "public_ip": "pip",
    "firewall": "afw",
    "firewall_policy": "afwp",
    "bastion": "bas",
    "vpn_gateway": "vpng",
    "express_route_gateway": "ergw",
    "log_analytics": "log",
    "action_group": "ag",
    "recovery_vault": "rsv",
    "backup_policy": "bkpol",
    "policy_assignment": "pa",
    "policy_initiative": "pi",
    "policy_definition": "pd",
}

AZURE_LOCATION_ABBREVIATIONS = {
    "eastus": "eus",
    "eastus2": "eus2",
    "westus": "wus",
    "westus2": "wus2",
    "westus3": "wus3",
    "centralus": "cus",
    "northcentralus": "ncus",
    "southcentralus": "scus",
    "canadacentral": "cac",
    "canadaeast": "cae",
    "brazilsouth": "brs",
    "northeurope": "ne",
    "westeurope": "we",
    "uksouth": "uks",
    "ukwest": "ukw",
    "francecentral": "frc",
    "germanywestcentral": "gwc",
    "norwayeast": "nwe",
    "swedencentral": "swc",
    "switzerlandnorth": "swn",
    "uaenorth": "uaen",
    "australiaeast": "aue",
    "australiasoutheast": "ause",
    "japaneast": "jpe",
    "japanwest": "jpw",
    "koreacentral": "kc",
    "southeastasia": "sea",
    "eastasia": "ea",
    "centralindia": "ci",
    "southafricanorth": "san",
    "qatarcentral": "qc",
    "polandcentral": "plc",
    "italynorth": "itn",
}


def location_code(location: str) -> str:
    # Unknown regions fall back to their first three letters
    return AZURE_LOCATION_ABBREVIATIONS.get(location.lower(), location[:3].lower())


def abbreviation(resource_type: str) -> str:
    try:
        return RESOURCE_ABBREVIATIONS[resource_type]
    except KeyError:
        raise ValueError(f"No naming abbreviation for resource type '{resource_type}'")


def resource_name(
    resource_type: str,
    prefix: str,
    purpose: str = "",
    environment: str = "",
    location: Optional[str] = None,
) -> str:
    parts = [
        abbreviation(resource_type),
        prefix,
        purpose,
        environment,
        location_code(location) if location else "",
    ]
    return "-".join(p for p in parts if p).lower()


def management_group_id(prefix: str, purpose: str = "") -> str:
    return f"{prefix}-{purpose}".lower() if purpose else prefix.lower()


def organization_prefix(organization_name: str) -> str:
    """Derive a short prefix from an organization name ("Contoso Ltd" -> "contoso")."""
    words = re.findall(r"[a-z0-9]+", organization_name.lower())
    if not words:
        raise ValueError(f"Cannot derive a prefix from organization name '{organization_name}'")
    return words[0][:10]
