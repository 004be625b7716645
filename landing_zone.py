# landing_zone.py
"""
Orchestrates the landing zone components for one customer.

Components are wired output to input: the Log Analytics workspace ID from
monitoring feeds the Defender baseline and the backup vault diagnostics.
A deployment phase picks which components take part.
"""

from typing import Any, Dict, Optional, Set

import pulumi
import pulumi_azure_native as azure_native

from backup import Backup
from custom_resources import CustomResourceBuilder
from management_groups import ManagementGroups
from monitoring import Monitoring, existing_workspace_id
from networking import NOT_DEPLOYED, HubNetwork
from policy import GovernancePolicies
from security import DefenderBaseline
from tagging import standard_tags

PHASES = {
    "full": {"management_groups", "networking", "monitoring", "security", "policy", "backup", "extensions"},
    "core": {"management_groups", "networking", "monitoring"},
    "connectivity": {"networking"},
    "management": {"monitoring", "backup"},
    "governance": {"management_groups", "policy", "security"},
}

MODES = ["greenfield", "brownfield"]


def components_for(phase: str) -> Set[str]:
    try:
        return set(PHASES[phase])
    except KeyError:
        raise ValueError(f"Unknown deployment phase '{phase}'. Expected one of: {', '.join(PHASES)}")


class LandingZone:
    def __init__(
        self,
        params,
        root_group_id: str,
        phase: str = "full",
        mode: str = "greenfield",
        location: Optional[str] = None,
    ):
        if mode not in MODES:
            raise ValueError(f"Unknown deployment mode '{mode}'. Expected one of: {', '.join(MODES)}")
        self.params = params
        self.root_group_id = root_group_id
        self.phase = phase
        self.mode = mode
        self.components = components_for(phase)
        self.location = location or params.primary_location

        self.providers: Dict[str, pulumi.ProviderResource] = {}
        self.management_groups = None
        self.network = None
        self.monitoring = None
        self.security = None
        self.policies = None
        self.backup = None
        self.extensions: Dict[str, Any] = {}

    def provider_for(self, key: str, subscription_id: str) -> pulumi.ProviderResource:
        if key not in self.providers:
            self.providers[key] = azure_native.Provider(f"provider-{key}", subscription_id=subscription_id)
        return self.providers[key]

    def build(self):
        params = self.params
        pulumi.log.info(
            f"Building landing zone for '{params.organization_name}' "
            f"(phase={self.phase}, mode={self.mode}, location={self.location})"
        )
        for key, subscription_id in params.subscriptions.platform().items():
            self.provider_for(key, subscription_id)

        if "management_groups" in self.components:
            placement_providers = dict(self.providers)
            for key, subscription_id in params.subscriptions.landing_zones.items():
                placement_providers[key] = self.provider_for(f"lz-{key}", subscription_id)
            self.management_groups = ManagementGroups(
                "management-groups",
                params,
                root_group_id=self.root_group_id,
                providers=placement_providers,
                brownfield=self.mode == "brownfield",
            )

        if "monitoring" in self.components:
            self.monitoring = Monitoring("monitoring", params, self.providers["management"], self.location)
            workspace_id = self.monitoring.workspace_id
        else:
            workspace_id = existing_workspace_id(params, self.location)

        if "networking" in self.components:
            spoke_providers = {
                spoke.name: self.provider_for(f"spoke-{spoke.name}", spoke.subscription_id)
                for spoke in params.network.spokes
            }
            self.network = HubNetwork(
                "hub-network",
                params,
                self.providers["connectivity"],
                self.location,
                spoke_providers=spoke_providers,
            )

        if "security" in self.components and params.features.enable_defender:
            self.security = DefenderBaseline("defender", params, self.providers, workspace_id)

        if "policy" in self.components:
            self.policies = GovernancePolicies("governance", params, self.management_groups)

        if "backup" in self.components and params.features.enable_backup:
            self.backup = Backup(
                "backup",
                params,
                self.providers["management"],
                self.location,
                resource_group_name=self.monitoring.resource_group.name,
                workspace_id=workspace_id,
            )

        if "extensions" in self.components and params.additional_resources:
            builder = CustomResourceBuilder(
                params,
                self.location,
                standard_tags(params, {"Workload": "custom"}),
                core_resources=self.core_resources(),
                providers=self.providers,
            )
            self.extensions = builder.build()

        return self

    def core_resources(self) -> Dict[str, Any]:
        core = {}
        if self.network:
            core["hub_resource_group"] = self.network.resource_group
            core["hub_vnet"] = self.network.vnet
            if self.network.firewall:
                core["firewall"] = self.network.firewall
        if self.monitoring:
            core["management_resource_group"] = self.monitoring.resource_group
            core["workspace"] = self.monitoring.workspace
            core["action_group"] = self.monitoring.action_group
        if self.backup:
            core["recovery_vault"] = self.backup.vault
        return core

    def outputs(self) -> Dict[str, Any]:
        outputs = {
            "phase": self.phase,
            "mode": self.mode,
            "managementGroupIds": self.management_groups.group_ids if self.management_groups else NOT_DEPLOYED,
            "logAnalyticsWorkspaceId": self.monitoring.workspace_id if self.monitoring else NOT_DEPLOYED,
            "recoveryVaultId": self.backup.vault.id if self.backup else NOT_DEPLOYED,
            "policyInitiativeId": self.policies.initiative.id if self.policies else NOT_DEPLOYED,
            "defenderStatus": self.security.status if self.security else NOT_DEPLOYED,
        }
        if self.network:
            outputs.update(self.network.outputs)
        else:
            for key in ("hubVnetId", "firewallPrivateIp", "bastionId", "vpnGatewayId", "expressRouteGatewayId"):
                outputs[key] = NOT_DEPLOYED
        if self.extensions:
            outputs["additionalResourceIds"] = {
                name: resource.id for name, resource in self.extensions.items()
            }
        return outputs
