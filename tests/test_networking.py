import pulumi
import pulumi_azure_native as azure_native

import config
from networking import NOT_DEPLOYED, HubNetwork, firewall_private_ip


def created_names(mocks):
    return [name for _, name, _ in mocks.created]


def peering_inputs(mocks):
    return {
        name: inputs for typ, name, inputs in mocks.created
        if typ == "azure-native:network:VirtualNetworkPeering"
    }


def flag(inputs, camel, snake):
    return inputs.get(camel, inputs.get(snake))


def build_hub(params, **kwargs):
    provider = azure_native.Provider("connectivity", subscription_id=params.subscriptions.connectivity)
    return HubNetwork("hub", params, provider, "westeurope", **kwargs)


def test_firewall_private_ip_is_fourth_host():
    assert firewall_private_ip("10.0.0.0/26") == "10.0.0.4"
    assert firewall_private_ip("172.16.8.0/26") == "172.16.8.4"


@pulumi.runtime.test
def test_express_route_disabled_reports_not_deployed(params, mocks):
    hub = build_hub(params)

    assert hub.express_route_gateway is None
    assert hub.outputs["expressRouteGatewayId"] == NOT_DEPLOYED
    assert hub.vpn_gateway is not None

    def check(_):
        names = created_names(mocks)
        assert not [n for n in names if n.startswith("ergw-")]
        assert "pip-contoso-ergw-prod-we" not in names
        assert "vpng-contoso-hub-prod-we" in names

    return pulumi.Output.all(hub.vpn_gateway.id, hub.vnet.id).apply(check)


@pulumi.runtime.test
def test_express_route_enabled_waits_for_vpn_gateway(parameters_data):
    parameters_data["features"]["enable_express_route"] = True
    hub = build_hub(config.from_dict(parameters_data))

    assert hub.express_route_gateway is not None
    assert hub.outputs["expressRouteGatewayId"] is not NOT_DEPLOYED
    assert hub.gateways == [hub.vpn_gateway, hub.express_route_gateway]

    def check(gateway_id):
        assert gateway_id == "/mock/ergw-contoso-hub-prod-we"

    return hub.express_route_gateway.id.apply(check)


@pulumi.runtime.test
def test_disabled_features_create_nothing(parameters_data):
    parameters_data["features"] = {
        "enable_express_route": False,
        "enable_vpn_gateway": False,
        "enable_firewall": False,
        "enable_bastion": False,
    }
    parameters_data["network"]["spokes"] = []
    hub = build_hub(config.from_dict(parameters_data))

    for key in ("firewallPrivateIp", "firewallId", "bastionId", "vpnGatewayId", "expressRouteGatewayId"):
        assert hub.outputs[key] == NOT_DEPLOYED
    assert hub.gateways == []
    assert hub.spokes == {}


@pulumi.runtime.test
def test_subnet_ids_derive_from_vnet(params):
    hub = build_hub(params)

    def check(subnet_id):
        assert subnet_id == "/mock/vnet-contoso-hub-prod-we/subnets/GatewaySubnet"

    return hub.subnet_id("GatewaySubnet").apply(check)


@pulumi.runtime.test
def test_firewall_output_and_spoke_route_table(params):
    hub = build_hub(params)

    assert hub.outputs["firewallPrivateIp"] == "10.0.0.4"
    spoke = hub.spokes["corp-finance"]
    assert spoke["route_table"] is not None
    assert len(spoke["peerings"]) == 2

    def check(ids):
        route_table_id, vnet_id = ids
        assert route_table_id == "/mock/rt-contoso-corp-finance-prod-we"
        assert vnet_id == "/mock/vnet-contoso-corp-finance-prod-we"

    return pulumi.Output.all(spoke["route_table"].id, spoke["vnet"].id).apply(check)


@pulumi.runtime.test
def test_spoke_without_firewall_has_no_route_table(parameters_data):
    parameters_data["features"]["enable_firewall"] = False
    hub = build_hub(config.from_dict(parameters_data))

    assert hub.spokes["corp-finance"]["route_table"] is None


@pulumi.runtime.test
def test_spoke_uses_its_own_provider(params):
    spoke_provider = azure_native.Provider("spoke", subscription_id=params.network.spokes[0].subscription_id)
    hub = build_hub(params, spoke_providers={"corp-finance": spoke_provider})

    assert set(hub.spokes) == {"corp-finance"}
    assert set(hub.outputs["spokeVnetIds"]) == {"corp-finance"}


@pulumi.runtime.test
def test_peering_uses_hub_gateway_when_deployed(params, mocks):
    hub = build_hub(params)
    peerings = hub.spokes["corp-finance"]["peerings"]

    def check(_):
        created = peering_inputs(mocks)
        hub_side = created["peer-hub-to-corp-finance"]
        spoke_side = created["peer-corp-finance-to-hub"]
        assert flag(hub_side, "allowGatewayTransit", "allow_gateway_transit") is True
        assert flag(hub_side, "useRemoteGateways", "use_remote_gateways") is False
        assert flag(spoke_side, "allowGatewayTransit", "allow_gateway_transit") is False
        assert flag(spoke_side, "useRemoteGateways", "use_remote_gateways") is True

    return pulumi.Output.all(*[p.id for p in peerings]).apply(check)


@pulumi.runtime.test
def test_peering_without_gateway_keeps_traffic_local(parameters_data, mocks):
    parameters_data["features"]["enable_vpn_gateway"] = False
    parameters_data["features"]["enable_express_route"] = False
    hub = build_hub(config.from_dict(parameters_data))
    peerings = hub.spokes["corp-finance"]["peerings"]

    assert hub.gateways == []

    def check(_):
        created = peering_inputs(mocks)
        assert flag(created["peer-hub-to-corp-finance"], "allowGatewayTransit", "allow_gateway_transit") is False
        assert flag(created["peer-corp-finance-to-hub"], "useRemoteGateways", "use_remote_gateways") is False

    return pulumi.Output.all(*[p.id for p in peerings]).apply(check)
