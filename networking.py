# networking.py
"""
Hub-spoke connectivity for the landing zone.

The hub lives in the connectivity subscription. Firewall, Bastion, VPN and
ExpressRoute gateways are each behind a feature flag; a disabled block
creates nothing and its output reads ``NOT_DEPLOYED``. The hub subnets are
always carved so enabling a feature later leaves the address plan intact.
"""

import ipaddress
from typing import Dict, Optional

import pulumi
from pulumi_azure_native import network, resources

import naming
from tagging import standard_tags

NOT_DEPLOYED = "Not deployed"

FIREWALL_SUBNET = "AzureFirewallSubnet"
GATEWAY_SUBNET = "GatewaySubnet"
BASTION_SUBNET = "AzureBastionSubnet"
SHARED_SERVICES_SUBNET = "snet-shared-services"


def firewall_private_ip(firewall_subnet: str) -> str:
    """Azure hands the firewall the first usable host after the four reserved ones."""
    subnet = ipaddress.ip_network(firewall_subnet, strict=False)
    return str(subnet.network_address + 4)


class HubNetwork(pulumi.ComponentResource):
    def __init__(
        self,
        name: str,
        params,
        provider: pulumi.ProviderResource,
        location: str,
        spoke_providers: Optional[Dict[str, pulumi.ProviderResource]] = None,
        opts: pulumi.ResourceOptions = None,
    ):
        super().__init__("landingzone:connectivity:HubNetwork", name, None, opts)

        self.params = params
        self.net = params.network
        self.features = params.features
        self.provider = provider
        self.location = location
        self.spoke_providers = spoke_providers or {}
        self.prefix = params.organization_prefix
        self.env = params.environment
        self.tags = standard_tags(params, {"Workload": "connectivity"})

        self.firewall = None
        self.bastion = None
        self.vpn_gateway = None
        self.express_route_gateway = None
        self.spokes = {}

        self._define_hub()
        if self.features.enable_firewall:
            self._define_firewall()
        if self.features.enable_bastion:
            self._define_bastion()
        if self.features.enable_vpn_gateway:
            self.vpn_gateway = self._define_gateway("vpn_gateway", "Vpn", self.net.vpn_gateway_sku)
        if self.features.enable_express_route:
            # Azure rejects concurrent gateway operations on one GatewaySubnet
            depends_on = [self.vpn_gateway] if self.vpn_gateway else []
            self.express_route_gateway = self._define_gateway(
                "express_route_gateway", "ExpressRoute", self.net.express_route_gateway_sku, depends_on
            )
        for spoke in self.net.spokes:
            self._define_spoke(spoke)

        self.outputs = {
            "hubResourceGroupName": self.resource_group.name,
            "hubVnetId": self.vnet.id,
            "firewallPrivateIp": self.firewall_private_ip if self.firewall else NOT_DEPLOYED,
            "firewallId": self.firewall.id if self.firewall else NOT_DEPLOYED,
            "bastionId": self.bastion.id if self.bastion else NOT_DEPLOYED,
            "vpnGatewayId": self.vpn_gateway.id if self.vpn_gateway else NOT_DEPLOYED,
            "expressRouteGatewayId": (
                self.express_route_gateway.id if self.express_route_gateway else NOT_DEPLOYED
            ),
            "spokeVnetIds": {key: spoke["vnet"].id for key, spoke in self.spokes.items()},
        }
        self.register_outputs(self.outputs)

    def _opts(self, provider=None, **kwargs) -> pulumi.ResourceOptions:
        return pulumi.ResourceOptions(parent=self, provider=provider or self.provider, **kwargs)

    def _resource_name(self, resource_type: str, purpose: str = "hub") -> str:
        return naming.resource_name(resource_type, self.prefix, purpose, self.env, self.location)

    @property
    def gateways(self):
        return [gw for gw in (self.vpn_gateway, self.express_route_gateway) if gw is not None]

    def subnet_id(self, subnet_name: str) -> pulumi.Output[str]:
        return self.vnet.id.apply(lambda vnet_id: f"{vnet_id}/subnets/{subnet_name}")

    def _define_hub(self):
        rg_name = self._resource_name("resource_group", "connectivity")
        self.resource_group = resources.ResourceGroup(
            rg_name,
            resource_group_name=rg_name,
            location=self.location,
            tags=self.tags,
            opts=self._opts(),
        )

        vnet_name = self._resource_name("virtual_network")
        self.vnet = network.VirtualNetwork(
            vnet_name,
            virtual_network_name=vnet_name,
            resource_group_name=self.resource_group.name,
            location=self.location,
            address_space=network.AddressSpaceArgs(address_prefixes=[self.net.hub_address_space]),
            dhcp_options=(
                network.DhcpOptionsArgs(dns_servers=self.net.dns_servers) if self.net.dns_servers else None
            ),
            subnets=[
                network.SubnetArgs(name=FIREWALL_SUBNET, address_prefix=self.net.firewall_subnet),
                network.SubnetArgs(name=GATEWAY_SUBNET, address_prefix=self.net.gateway_subnet),
                network.SubnetArgs(name=BASTION_SUBNET, address_prefix=self.net.bastion_subnet),
                network.SubnetArgs(name=SHARED_SERVICES_SUBNET, address_prefix=self.net.shared_services_subnet),
            ],
            tags=self.tags,
            opts=self._opts(),
        )

    def _public_ip(self, purpose: str) -> network.PublicIPAddress:
        pip_name = self._resource_name("public_ip", purpose)
        return network.PublicIPAddress(
            pip_name,
            public_ip_address_name=pip_name,
            resource_group_name=self.resource_group.name,
            location=self.location,
            sku=network.PublicIPAddressSkuArgs(name="Standard", tier="Regional"),
            public_ip_allocation_method="Static",
            tags=self.tags,
            opts=self._opts(),
        )

    def _define_firewall(self):
        policy_name = self._resource_name("firewall_policy")
        self.firewall_policy = network.FirewallPolicy(
            policy_name,
            firewall_policy_name=policy_name,
            resource_group_name=self.resource_group.name,
            location=self.location,
            sku=network.FirewallPolicySkuArgs(tier=self.net.firewall_tier),
            threat_intel_mode="Alert",
            dns_settings=network.DnsSettingsArgs(enable_proxy=True),
            tags=self.tags,
            opts=self._opts(),
        )

        pip = self._public_ip("afw")
        firewall_name = self._resource_name("firewall")
        self.firewall = network.AzureFirewall(
            firewall_name,
            azure_firewall_name=firewall_name,
            resource_group_name=self.resource_group.name,
            location=self.location,
            sku=network.AzureFirewallSkuArgs(name="AZFW_VNet", tier=self.net.firewall_tier),
            firewall_policy=network.SubResourceArgs(id=self.firewall_policy.id),
            ip_configurations=[
                network.AzureFirewallIPConfigurationArgs(
                    name="ipconfig-afw",
                    subnet=network.SubResourceArgs(id=self.subnet_id(FIREWALL_SUBNET)),
                    public_ip_address=network.SubResourceArgs(id=pip.id),
                )
            ],
            tags=self.tags,
            opts=self._opts(),
        )
        self.firewall_private_ip = firewall_private_ip(self.net.firewall_subnet)

    def _define_bastion(self):
        pip = self._public_ip("bas")
        bastion_name = self._resource_name("bastion")
        self.bastion = network.BastionHost(
            bastion_name,
            bastion_host_name=bastion_name,
            resource_group_name=self.resource_group.name,
            location=self.location,
            sku=network.SkuArgs(name=self.net.bastion_sku),
            ip_configurations=[
                network.BastionHostIPConfigurationArgs(
                    name="ipconfig-bas",
                    subnet=network.SubResourceArgs(id=self.subnet_id(BASTION_SUBNET)),
                    public_ip_address=network.SubResourceArgs(id=pip.id),
                )
            ],
            tags=self.tags,
            opts=self._opts(),
        )

    def _define_gateway(self, resource_type, gateway_type, sku, depends_on=None):
        purpose = "vpng" if gateway_type == "Vpn" else "ergw"
        pip = self._public_ip(purpose)
        gateway_name = self._resource_name(resource_type)
        return network.VirtualNetworkGateway(
            gateway_name,
            virtual_network_gateway_name=gateway_name,
            resource_group_name=self.resource_group.name,
            location=self.location,
            gateway_type=gateway_type,
            vpn_type="RouteBased" if gateway_type == "Vpn" else None,
            enable_bgp=False,
            active_active=False,
            sku=network.VirtualNetworkGatewaySkuArgs(name=sku, tier=sku),
            ip_configurations=[
                network.VirtualNetworkGatewayIPConfigurationArgs(
                    name=f"ipconfig-{purpose}",
                    subnet=network.SubResourceArgs(id=self.subnet_id(GATEWAY_SUBNET)),
                    public_ip_address=network.SubResourceArgs(id=pip.id),
                    private_ip_allocation_method="Dynamic",
                )
            ],
            tags=self.tags,
            opts=self._opts(depends_on=depends_on or []),
        )

    def _define_spoke(self, spoke):
        provider = self.spoke_providers.get(spoke.name, self.provider)
        tags = standard_tags(self.params, {"Workload": spoke.name})

        rg_name = self._resource_name("resource_group", spoke.name)
        rg = resources.ResourceGroup(
            rg_name,
            resource_group_name=rg_name,
            location=self.location,
            tags=tags,
            opts=self._opts(provider),
        )

        route_table = None
        if self.firewall:
            rt_name = self._resource_name("route_table", spoke.name)
            route_table = network.RouteTable(
                rt_name,
                route_table_name=rt_name,
                resource_group_name=rg.name,
                location=self.location,
                disable_bgp_route_propagation=True,
                routes=[
                    network.RouteArgs(
                        name="default-to-firewall",
                        address_prefix="0.0.0.0/0",
                        next_hop_type="VirtualAppliance",
                        next_hop_ip_address=self.firewall_private_ip,
                    )
                ],
                tags=tags,
                opts=self._opts(provider),
            )

        vnet_name = self._resource_name("virtual_network", spoke.name)
        vnet = network.VirtualNetwork(
            vnet_name,
            virtual_network_name=vnet_name,
            resource_group_name=rg.name,
            location=self.location,
            address_space=network.AddressSpaceArgs(address_prefixes=[spoke.address_space]),
            subnets=[
                network.SubnetArgs(
                    name=subnet_name,
                    address_prefix=prefix,
                    route_table=network.RouteTableArgs(id=route_table.id) if route_table else None,
                )
                for subnet_name, prefix in spoke.subnets.items()
            ],
            tags=tags,
            opts=self._opts(provider),
        )

        has_gateway = bool(self.gateways)
        hub_to_spoke = network.VirtualNetworkPeering(
            f"peer-hub-to-{spoke.name}",
            virtual_network_peering_name=f"peer-hub-to-{spoke.name}",
            resource_group_name=self.resource_group.name,
            virtual_network_name=self.vnet.name,
            remote_virtual_network=network.SubResourceArgs(id=vnet.id),
            allow_virtual_network_access=True,
            allow_forwarded_traffic=True,
            allow_gateway_transit=has_gateway,
            use_remote_gateways=False,
            opts=self._opts(depends_on=self.gateways),
        )
        spoke_to_hub = network.VirtualNetworkPeering(
            f"peer-{spoke.name}-to-hub",
            virtual_network_peering_name=f"peer-{spoke.name}-to-hub",
            resource_group_name=rg.name,
            virtual_network_name=vnet.name,
            remote_virtual_network=network.SubResourceArgs(id=self.vnet.id),
            allow_virtual_network_access=True,
            allow_forwarded_traffic=True,
            allow_gateway_transit=False,
            use_remote_gateways=has_gateway,
            opts=self._opts(provider, depends_on=[hub_to_spoke]),
        )

        self.spokes[spoke.name] = {
            "resource_group": rg,
            "vnet": vnet,
            "route_table": route_table,
            "peerings": [hub_to_spoke, spoke_to_hub],
        }
