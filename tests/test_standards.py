import pytest

import naming
from tagging import standard_tags


class TestNaming:
    def test_resource_name_joins_parts(self):
        assert naming.resource_name("virtual_network", "contoso", "hub", "prod", "westeurope") == "vnet-contoso-hub-prod-we"

    def test_resource_name_drops_empty_parts(self):
        assert naming.resource_name("action_group", "Contoso", "platform") == "ag-contoso-platform"

    def test_unknown_location_falls_back_to_three_letters(self):
        assert naming.location_code("Atlantis") == "atl"

    def test_known_location_is_case_insensitive(self):
        assert naming.location_code("WestEurope") == "we"

    def test_unknown_resource_type(self):
        with pytest.raises(ValueError, match="No naming abbreviation"):
            naming.resource_name("spaceship", "contoso")

    def test_management_group_id(self):
        assert naming.management_group_id("contoso") == "contoso"
        assert naming.management_group_id("contoso", "platform") == "contoso-platform"

    def test_organization_prefix(self):
        assert naming.organization_prefix("Contoso Ltd.") == "contoso"
        assert naming.organization_prefix("Northwind Traders International") == "northwind"

    def test_organization_prefix_requires_alphanumerics(self):
        with pytest.raises(ValueError):
            naming.organization_prefix("!!!")


class TestTagging:
    def test_standard_keys(self, params):
        tags = standard_tags(params)
        assert tags["Organization"] == "Contoso"
        assert tags["CostCenter"] == "IT-4200"
        assert tags["Owner"] == "cloud-platform@contoso.com"
        assert tags["ManagedBy"] == "Pulumi"
        assert tags["LandingZone"] == "contoso"

    def test_customer_tags_are_merged(self, params):
        assert standard_tags(params)["Compliance"] == "ISO27001"

    def test_extra_tags_win(self, params):
        tags = standard_tags(params, {"Environment": "override", "Workload": "hub"})
        assert tags["Environment"] == "override"
        assert tags["Workload"] == "hub"

    def test_multiple_owners_joined(self, parameters_data):
        import config
        parameters_data["owners"] = ["a@contoso.com", "b@contoso.com"]
        tags = standard_tags(config.from_dict(parameters_data))
        assert tags["Owner"] == "a@contoso.com;b@contoso.com"
