# policy.py
"""
Governance baseline: custom policy definitions bundled into one initiative.

The rule bodies are static; the policy engine evaluates them. Only the
initiative parameters (allowed locations, required tag names) come from the
customer parameter set.
"""

import pulumi
from pulumi_azure_native import authorization

from management_groups import management_group_resource_id

# Azure limits assignment names to 24 characters at management group scope
ASSIGNMENT_NAME_LIMIT = 24

ALLOWED_LOCATIONS = {
    "name": "alz-allowed-locations",
    "display_name": "Allowed locations",
    "description": "Restricts resource deployment to the approved regions.",
    "mode": "Indexed",
    "category": "General",
    "parameters": {"listOfAllowedLocations": "Array"},
    "rule": {
        "if": {
            "allOf": [
                {"field": "location", "notIn": "[parameters('listOfAllowedLocations')]"},
                {"field": "location", "notEquals": "global"},
            ]
        },
        "then": {"effect": "deny"},
    },
}

REQUIRE_RESOURCE_GROUP_TAG = {
    "name": "alz-require-rg-tag",
    "display_name": "Require a tag on resource groups",
    "description": "Denies resource groups created without the given tag.",
    "mode": "All",
    "category": "Tags",
    "parameters": {"tagName": "String"},
    "rule": {
        "if": {
            "allOf": [
                {"field": "type", "equals": "Microsoft.Resources/subscriptions/resourceGroups"},
                {"field": "[concat('tags[', parameters('tagName'), ']')]", "exists": "false"},
            ]
        },
        "then": {"effect": "deny"},
    },
}

DENY_PUBLIC_IP_ON_NIC = {
    "name": "alz-deny-nic-public-ip",
    "display_name": "Network interfaces should not have public IPs",
    "description": "Denies network interfaces with a public IP configuration.",
    "mode": "Indexed",
    "category": "Network",
    "parameters": {},
    "rule": {
        "if": {
            "allOf": [
                {"field": "type", "equals": "Microsoft.Network/networkInterfaces"},
                {
                    "not": {
                        "field": "Microsoft.Network/networkInterfaces/ipconfigurations[*].publicIpAddress.id",
                        "notLike": "*",
                    }
                },
            ]
        },
        "then": {"effect": "deny"},
    },
}

AUDIT_UNMANAGED_DISKS = {
    "name": "alz-audit-unmanaged-disks",
    "display_name": "Audit VMs that do not use managed disks",
    "description": "Audits virtual machines whose OS disk is a page blob.",
    "mode": "Indexed",
    "category": "Compute",
    "parameters": {},
    "rule": {
        "if": {
            "anyOf": [
                {
                    "allOf": [
                        {"field": "type", "equals": "Microsoft.Compute/virtualMachines"},
                        {"field": "Microsoft.Compute/virtualMachines/osDisk.uri", "exists": "true"},
                    ]
                },
                {
                    "allOf": [
                        {"field": "type", "equals": "Microsoft.Compute/virtualMachineScaleSets"},
                        {
                            "anyOf": [
                                {"field": "Microsoft.Compute/VirtualMachineScaleSets/osDisk.vhdContainers", "exists": "true"},
                                {"field": "Microsoft.Compute/VirtualMachineScaleSets/osdisk.imageUrl", "exists": "true"},
                            ]
                        },
                    ]
                },
            ]
        },
        "then": {"effect": "audit"},
    },
}

POLICY_DEFINITIONS = [ALLOWED_LOCATIONS, REQUIRE_RESOURCE_GROUP_TAG, DENY_PUBLIC_IP_ON_NIC, AUDIT_UNMANAGED_DISKS]


def assignment_name(name: str) -> str:
    if len(name) > ASSIGNMENT_NAME_LIMIT:
        raise ValueError(f"Policy assignment name '{name}' exceeds {ASSIGNMENT_NAME_LIMIT} characters")
    return name


def _parameter_definitions(parameters):
    return {
        name: authorization.ParameterDefinitionsValueArgs(type=param_type)
        for name, param_type in parameters.items()
    }


class GovernancePolicies(pulumi.ComponentResource):
    def __init__(
        self,
        name: str,
        params,
        management_groups,
        opts: pulumi.ResourceOptions = None,
    ):
        super().__init__("landingzone:governance:GovernancePolicies", name, None, opts)

        self.params = params
        self.root_group_id = management_groups.group_ids["root"]
        child_opts = pulumi.ResourceOptions(parent=self, depends_on=[management_groups.root])

        self.definitions = {}
        for definition in POLICY_DEFINITIONS:
            self.definitions[definition["name"]] = authorization.PolicyDefinitionAtManagementGroup(
                definition["name"],
                management_group_id=self.root_group_id,
                policy_definition_name=definition["name"],
                display_name=definition["display_name"],
                description=definition["description"],
                mode=definition["mode"],
                policy_type="Custom",
                metadata={"category": definition["category"], "source": "landing-zone"},
                parameters=_parameter_definitions(definition["parameters"]),
                policy_rule=definition["rule"],
                opts=child_opts,
            )

        self._define_baseline_initiative()
        self._define_corp_assignment(management_groups)

        self.register_outputs({"initiativeId": self.initiative.id})

    def initiative_references(self):
        allowed = self.definitions[ALLOWED_LOCATIONS["name"]]
        references = [
            authorization.PolicyDefinitionReferenceArgs(
                policy_definition_id=allowed.id,
                policy_definition_reference_id="allowedLocations",
                parameters={
                    "listOfAllowedLocations": authorization.ParameterValuesValueArgs(
                        value="[parameters('allowedLocations')]"
                    )
                },
            )
        ]
        require_tag = self.definitions[REQUIRE_RESOURCE_GROUP_TAG["name"]]
        for tag in self.params.governance.required_tags:
            references.append(
                authorization.PolicyDefinitionReferenceArgs(
                    policy_definition_id=require_tag.id,
                    policy_definition_reference_id=f"requireTag{tag}",
                    parameters={"tagName": authorization.ParameterValuesValueArgs(value=tag)},
                )
            )
        references.append(
            authorization.PolicyDefinitionReferenceArgs(
                policy_definition_id=self.definitions[AUDIT_UNMANAGED_DISKS["name"]].id,
                policy_definition_reference_id="auditUnmanagedDisks",
            )
        )
        return references

    def _define_baseline_initiative(self):
        child_opts = pulumi.ResourceOptions(parent=self, depends_on=list(self.definitions.values()))
        self.initiative = authorization.PolicySetDefinitionAtManagementGroup(
            "alz-baseline",
            management_group_id=self.root_group_id,
            policy_set_definition_name="alz-baseline",
            display_name=f"{self.params.organization_name} landing zone baseline",
            description="Location, tagging and compute guardrails for the landing zone.",
            policy_type="Custom",
            metadata={"category": "Landing Zone"},
            parameters=_parameter_definitions({"allowedLocations": "Array"}),
            policy_definitions=self.initiative_references(),
            opts=child_opts,
        )

        self.assignment = authorization.PolicyAssignment(
            "alz-baseline-assignment",
            policy_assignment_name=assignment_name(f"{self.params.organization_prefix}-baseline"),
            scope=management_group_resource_id(self.root_group_id),
            display_name=f"{self.params.organization_name} landing zone baseline",
            policy_definition_id=self.initiative.id,
            parameters={
                "allowedLocations": authorization.ParameterValuesValueArgs(
                    value=self.params.governance.allowed_locations
                )
            },
            enforcement_mode="Default",
            opts=pulumi.ResourceOptions(parent=self),
        )

    def _define_corp_assignment(self, management_groups):
        # Corp landing zones are private; deny public IPs on NICs there only
        corp_id = management_groups.group_ids["corp"]
        self.corp_assignment = authorization.PolicyAssignment(
            "alz-corp-deny-public-ip",
            policy_assignment_name=assignment_name("deny-nic-public-ip"),
            scope=management_group_resource_id(corp_id),
            display_name="Deny public IPs on network interfaces",
            policy_definition_id=self.definitions[DENY_PUBLIC_IP_ON_NIC["name"]].id,
            enforcement_mode="Default",
            opts=pulumi.ResourceOptions(parent=self, depends_on=[management_groups.groups["corp"]]),
        )
