import copy
import os
import sys

import pulumi
import pytest
import yaml

# Make the flat program modules importable from tests/
sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))


class LandingZoneMocks(pulumi.runtime.Mocks):
    """Echo inputs back as state and hand out predictable resource IDs."""

    def __init__(self):
        self.created = []

    def new_resource(self, args: pulumi.runtime.MockResourceArgs):
        self.created.append((args.typ, args.name, dict(args.inputs)))
        resource_id = args.resource_id or f"/mock/{args.name}"
        return [resource_id, dict(args.inputs)]

    def call(self, args: pulumi.runtime.MockCallArgs):
        return {}


MOCKS = LandingZoneMocks()
# Mocks must be in place before any module that declares resources is used
pulumi.runtime.set_mocks(MOCKS, preview=False)


BASE_PARAMETERS = {
    "using": "landing-zone",
    "organization_name": "Contoso",
    "organization_prefix": "contoso",
    "environment": "prod",
    "primary_location": "westeurope",
    "secondary_location": "northeurope",
    "subscriptions": {
        "management": "3f2a9c1e-7b4d-4e8a-9c21-5d6e7f8a9b01",
        "connectivity": "8b1c2d3e-4f5a-4b6c-8d7e-9f0a1b2c3d02",
        "identity": "c4d5e6f7-a8b9-4c0d-9e1f-2a3b4c5d6e03",
        "landing_zones": {
            "corp-finance": "d7e8f9a0-b1c2-4d3e-8f4a-5b6c7d8e9f04",
            "online-web": "e1f2a3b4-c5d6-4e7f-9a8b-0c1d2e3f4a05",
        },
    },
    "cost_center": "IT-4200",
    "owners": ["cloud-platform@contoso.com"],
    "network": {
        "hub_address_space": "10.0.0.0/16",
        "spokes": [
            {
                "name": "corp-finance",
                "subscription_id": "d7e8f9a0-b1c2-4d3e-8f4a-5b6c7d8e9f04",
                "address_space": "10.1.0.0/16",
                "subnets": {"snet-app": "10.1.1.0/24"},
            }
        ],
    },
    "features": {
        "enable_express_route": False,
        "enable_vpn_gateway": True,
        "enable_firewall": True,
        "enable_bastion": True,
        "enable_defender": True,
        "enable_backup": True,
    },
    "security": {"contact_emails": ["secops@contoso.com"]},
    "tags": {"Compliance": "ISO27001"},
}


@pytest.fixture
def mocks():
    MOCKS.created.clear()
    return MOCKS


@pytest.fixture
def parameters_data():
    return copy.deepcopy(BASE_PARAMETERS)


@pytest.fixture
def params(parameters_data):
    import config
    return config.from_dict(parameters_data)


@pytest.fixture
def parameters_dir(tmp_path, monkeypatch):
    """Point the parameter lookup at a temporary directory."""
    import config
    directory = tmp_path / "parameters"
    directory.mkdir()
    monkeypatch.setattr(config, "PARAMETERS_DIR", directory)
    monkeypatch.setattr(config, "OUTPUTS_DIR", tmp_path / "outputs")
    return directory


@pytest.fixture
def write_parameters(parameters_dir):
    def _write(customer, data):
        path = parameters_dir / f"{customer}.yaml"
        with open(path, "w") as file:
            yaml.safe_dump(data, file)
        return path
    return _write
