import pulumi
import pulumi_azure_native as azure_native
import pytest

import config
import policy
from management_groups import ManagementGroups


def test_assignment_name_limit():
    assert policy.assignment_name("contoso-baseline") == "contoso-baseline"
    with pytest.raises(ValueError, match="exceeds 24 characters"):
        policy.assignment_name("a-very-long-organization-baseline")


def test_definitions_are_static_deny_or_audit():
    effects = {d["name"]: d["rule"]["then"]["effect"] for d in policy.POLICY_DEFINITIONS}
    assert effects == {
        "alz-allowed-locations": "deny",
        "alz-require-rg-tag": "deny",
        "alz-deny-nic-public-ip": "deny",
        "alz-audit-unmanaged-disks": "audit",
    }


def test_allowed_locations_rule_uses_parameter():
    conditions = policy.ALLOWED_LOCATIONS["rule"]["if"]["allOf"]
    assert {"field": "location", "notIn": "[parameters('listOfAllowedLocations')]"} in conditions


def build_policies(params):
    subscriptions = dict(params.subscriptions.platform(), **params.subscriptions.landing_zones)
    providers = {
        key: azure_native.Provider(f"provider-{key}", subscription_id=subscription_id)
        for key, subscription_id in subscriptions.items()
    }
    groups = ManagementGroups("mg", params, root_group_id="tenant-root", providers=providers)
    return policy.GovernancePolicies("governance", params, groups)


@pulumi.runtime.test
def test_initiative_bundles_one_reference_per_tag(params):
    policies = build_policies(params)

    references = policies.initiative_references()
    # allowed locations + one per required tag + unmanaged disks; the NIC
    # public IP deny is assigned at Corp on its own
    assert len(references) == 1 + 3 + 1
    assert "denyNicPublicIp" not in {r.policy_definition_reference_id for r in references}
    deny_nic = policies.definitions[policy.DENY_PUBLIC_IP_ON_NIC["name"]]
    assert all(r.policy_definition_id is not deny_nic.id for r in references)
    assert set(policies.definitions) == {d["name"] for d in policy.POLICY_DEFINITIONS}

    def check(initiative_id):
        assert initiative_id == "/mock/alz-baseline"

    return policies.initiative.id.apply(check)


@pulumi.runtime.test
def test_required_tags_come_from_parameters(parameters_data):
    parameters_data["governance"] = {"required_tags": ["CostCenter"]}
    policies = build_policies(config.from_dict(parameters_data))

    assert len(policies.initiative_references()) == 3


@pulumi.runtime.test
def test_assignments_target_root_and_corp(params, mocks):
    policies = build_policies(params)

    def check(_):
        assignments = {
            name: inputs for typ, name, inputs in mocks.created
            if typ == "azure-native:authorization:PolicyAssignment"
        }
        assert "contoso-baseline" in str(assignments["alz-baseline-assignment"])
        assert "managementGroups/contoso-corp" in str(assignments["alz-corp-deny-public-ip"])

    return pulumi.Output.all(policies.assignment.id, policies.corp_assignment.id).apply(check)
