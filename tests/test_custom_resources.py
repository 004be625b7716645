from types import SimpleNamespace

import pulumi
import pytest

from custom_resources import CustomResourceBuilder, to_snake_case


def make_builder(params, core=None):
    return CustomResourceBuilder(params, "westeurope", {"ManagedBy": "Pulumi"}, core_resources=core)


def test_to_snake_case():
    assert to_snake_case("VirtualNetwork") == "virtual_network"
    assert to_snake_case("NetworkSecurityGroup") == "network_security_group"


def test_generate_resource_name(params):
    assert make_builder(params).generate_resource_name("nsg-web") == "contoso-prod-we-nsg-web"


def test_resolve_nested_references(params):
    core = {"hub_vnet": SimpleNamespace(id="/hub", name="vnet-hub")}
    builder = make_builder(params, core)

    resolved = builder.resolve_args({
        "remote": "ref:hub_vnet",
        "names": ["ref:hub_vnet.name", "literal"],
        "nested": {"deep": [{"id": "ref:hub_vnet.id"}]},
        "count": 3,
    })

    assert resolved == {
        "remote": "/hub",
        "names": ["vnet-hub", "literal"],
        "nested": {"deep": [{"id": "/hub"}]},
        "count": 3,
    }


def test_unknown_reference(params):
    with pytest.raises(ValueError, match="Referenced resource 'ghost' not found"):
        make_builder(params).resolve_args({"id": "ref:ghost.id"})


def test_unknown_attribute(params):
    core = {"hub_vnet": SimpleNamespace(id="/hub")}
    with pytest.raises(ValueError, match="Attribute 'colour' not found"):
        make_builder(params, core).resolve_args({"x": "ref:hub_vnet.colour"})


def test_earlier_entries_shadow_core_resources(params):
    core = {"thing": SimpleNamespace(id="/core")}
    builder = make_builder(params, core)
    builder.resources["thing"] = SimpleNamespace(id="/custom")
    assert builder.resolve_args({"id": "ref:thing"}) == {"id": "/custom"}


@pulumi.runtime.test
def test_unknown_module_and_class_are_skipped(params):
    builder = make_builder(params)
    assert builder.build_one({"name": "x", "type": "spaceships.Cruiser"}) is None
    assert builder.build_one({"name": "y", "type": "network.FluxCapacitor"}) is None
    assert builder.resources == {}


@pulumi.runtime.test
def test_location_and_tags_are_filled(params, mocks):
    builder = make_builder(params)
    nsg = builder.build_one({
        "name": "nsg-web",
        "type": "network.NetworkSecurityGroup",
        "args": {"resource_group_name": "rg-web", "tags": {"Tier": "web"}},
    })

    def check(_):
        inputs = [i for t, n, i in mocks.created if n == "contoso-prod-we-nsg-web"][-1]
        assert inputs["location"] == "westeurope"
        assert inputs["tags"] == {"ManagedBy": "Pulumi", "Tier": "web"}

    return nsg.id.apply(check)


@pulumi.runtime.test
def test_existing_without_identifying_args_creates_resource(params):
    builder = make_builder(params)
    vnet = builder.build_one({
        "name": "vnet-legacy",
        "type": "network.VirtualNetwork",
        "existing": True,
        "args": {"resource_group_name": "rg-legacy"},
    })

    assert builder.resources["vnet-legacy"] is vnet

    def check(vnet_id):
        assert vnet_id == "/mock/contoso-prod-we-vnet-legacy"

    return vnet.id.apply(check)
