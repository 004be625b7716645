# monitoring.py
import pulumi
from pulumi_azure_native import monitor, operationalinsights, resources

import naming
from tagging import standard_tags

WORKSPACE_ID_FORMAT = (
    "/subscriptions/{subscription}/resourceGroups/{resource_group}"
    "/providers/Microsoft.OperationalInsights/workspaces/{workspace}"
)


def management_resource_group_name(params, location: str) -> str:
    return naming.resource_name(
        "resource_group", params.organization_prefix, "management", params.environment, location
    )


def workspace_name(params, location: str) -> str:
    return naming.resource_name(
        "log_analytics", params.organization_prefix, "management", params.environment, location
    )


def existing_workspace_id(params, location: str) -> str:
    """Resource ID of the standard workspace, for phases that don't deploy it."""
    return WORKSPACE_ID_FORMAT.format(
        subscription=params.subscriptions.management,
        resource_group=management_resource_group_name(params, location),
        workspace=workspace_name(params, location),
    )


class Monitoring(pulumi.ComponentResource):
    """Central Log Analytics workspace and the alert action group."""

    def __init__(
        self,
        name: str,
        params,
        provider: pulumi.ProviderResource,
        location: str,
        opts: pulumi.ResourceOptions = None,
    ):
        super().__init__("landingzone:management:Monitoring", name, None, opts)

        child_opts = pulumi.ResourceOptions(parent=self, provider=provider)
        tags = standard_tags(params, {"Workload": "management"})

        rg_name = management_resource_group_name(params, location)
        self.resource_group = resources.ResourceGroup(
            rg_name,
            resource_group_name=rg_name,
            location=location,
            tags=tags,
            opts=child_opts,
        )

        ws_name = workspace_name(params, location)
        self.workspace = operationalinsights.Workspace(
            ws_name,
            workspace_name=ws_name,
            resource_group_name=self.resource_group.name,
            location=location,
            sku=operationalinsights.WorkspaceSkuArgs(name="PerGB2018"),
            retention_in_days=params.log_retention_days,
            tags=tags,
            opts=child_opts,
        )

        ag_name = naming.resource_name("action_group", params.organization_prefix, "platform", params.environment)
        self.action_group = monitor.ActionGroup(
            ag_name,
            action_group_name=ag_name,
            resource_group_name=self.resource_group.name,
            location="Global",
            # Azure caps the short name at 12 characters
            group_short_name=f"{params.organization_prefix}-alz"[:12],
            enabled=True,
            email_receivers=[
                monitor.MicrosoftCommonEmailReceiverArgs(
                    name=f"contact-{index}",
                    email_address=email,
                    use_common_alert_schema=True,
                )
                for index, email in enumerate(params.contact_emails)
            ],
            tags=tags,
            opts=child_opts,
        )

        self.workspace_id = self.workspace.id
        self.register_outputs({
            "workspaceId": self.workspace.id,
            "actionGroupId": self.action_group.id,
        })
