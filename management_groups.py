# management_groups.py
from typing import Dict

import pulumi
from pulumi_azure_native import management

import naming

MANAGEMENT_GROUP_ID_FORMAT = "/providers/Microsoft.Management/managementGroups/{}"

# (key, id suffix, display name, parent key)
HIERARCHY = [
    ("root", "", None, None),
    ("platform", "platform", "Platform", "root"),
    ("management", "management", "Management", "platform"),
    ("connectivity", "connectivity", "Connectivity", "platform"),
    ("identity", "identity", "Identity", "platform"),
    ("landingzones", "landingzones", "Landing Zones", "root"),
    ("corp", "corp", "Corp", "landingzones"),
    ("online", "online", "Online", "landingzones"),
    ("sandbox", "sandbox", "Sandbox", "root"),
    ("decommissioned", "decommissioned", "Decommissioned", "root"),
]


def management_group_resource_id(group_id: str) -> str:
    return MANAGEMENT_GROUP_ID_FORMAT.format(group_id)


def landing_zone_group(subscription_key: str) -> str:
    """Landing zone subscriptions go under Online when their key says so, else Corp."""
    return "online" if subscription_key.lower().startswith("online") else "corp"


class ManagementGroups(pulumi.ComponentResource):
    """Organization management group hierarchy and subscription placement.

    In brownfield mode the hierarchy already exists and is only read; the
    subscriptions are still moved into their groups.
    """

    def __init__(
        self,
        name: str,
        params,
        root_group_id: str,
        providers: Dict[str, pulumi.ProviderResource],
        brownfield: bool = False,
        opts: pulumi.ResourceOptions = None,
    ):
        super().__init__("landingzone:governance:ManagementGroups", name, None, opts)

        self.params = params
        self.brownfield = brownfield
        self.providers = providers
        self.group_ids = {}
        self.groups = {}

        prefix = params.organization_prefix
        for key, suffix, display_name, parent_key in HIERARCHY:
            group_id = naming.management_group_id(prefix, suffix)
            parent = self.groups[parent_key].id if parent_key else management_group_resource_id(root_group_id)
            self.group_ids[key] = group_id
            self.groups[key] = self._define_group(
                key, group_id, display_name or params.organization_name, parent
            )

        self.root = self.groups["root"]
        self.root_id = management_group_resource_id(self.group_ids["root"])

        self._place_subscriptions()

        self.register_outputs({key: group.id for key, group in self.groups.items()})

    def _define_group(self, key, group_id, display_name, parent_id):
        resource_name = f"mg-{group_id}"
        if self.brownfield:
            pulumi.log.info(f"Using existing management group '{group_id}'")
            return management.ManagementGroup.get(
                resource_name,
                id=management_group_resource_id(group_id),
                opts=pulumi.ResourceOptions(parent=self),
            )
        return management.ManagementGroup(
            resource_name,
            group_id=group_id,
            display_name=display_name,
            details=management.CreateManagementGroupDetailsArgs(
                parent=management.CreateParentGroupInfoArgs(id=parent_id),
            ),
            opts=pulumi.ResourceOptions(parent=self),
        )

    def _place_subscriptions(self):
        placements = dict(self.params.subscriptions.platform())
        for key, subscription_id in self.params.subscriptions.landing_zones.items():
            placements[key] = subscription_id

        self.placements = {}
        for key, subscription_id in placements.items():
            if key not in self.providers:
                raise ValueError(f"No provider for subscription '{key}' ({subscription_id})")
            group_key = key if key in ("management", "connectivity", "identity") else landing_zone_group(key)
            # The subscription being placed is the one the provider targets
            self.placements[key] = management.ManagementGroupSubscription(
                f"mgsub-{key}",
                group_id=self.group_ids[group_key],
                opts=pulumi.ResourceOptions(
                    parent=self,
                    provider=self.providers[key],
                    depends_on=[self.groups[group_key]],
                ),
            )
