# backup.py
import pulumi
from pulumi_azure_native import monitor, recoveryservices

import naming
from tagging import standard_tags

BACKUP_TIME = "2024-01-01T02:00:00Z"


class Backup(pulumi.ComponentResource):
    """Recovery Services vault with a daily VM backup policy."""

    def __init__(
        self,
        name: str,
        params,
        provider: pulumi.ProviderResource,
        location: str,
        resource_group_name: pulumi.Input[str],
        workspace_id: pulumi.Input[str],
        opts: pulumi.ResourceOptions = None,
    ):
        super().__init__("landingzone:management:Backup", name, None, opts)

        child_opts = pulumi.ResourceOptions(parent=self, provider=provider)
        vault_name = naming.resource_name(
            "recovery_vault", params.organization_prefix, "management", params.environment, location
        )
        self.vault = recoveryservices.Vault(
            vault_name,
            vault_name=vault_name,
            resource_group_name=resource_group_name,
            location=location,
            sku=recoveryservices.SkuArgs(name="RS0", tier="Standard"),
            tags=standard_tags(params, {"Workload": "management"}),
            opts=child_opts,
        )

        policy_name = naming.resource_name("backup_policy", params.organization_prefix, "vm-daily")
        self.policy = recoveryservices.ProtectionPolicy(
            policy_name,
            policy_name=policy_name,
            vault_name=self.vault.name,
            resource_group_name=resource_group_name,
            properties=recoveryservices.AzureIaaSVMProtectionPolicyArgs(
                backup_management_type="AzureIaasVM",
                time_zone="UTC",
                schedule_policy=recoveryservices.SimpleSchedulePolicyArgs(
                    schedule_policy_type="SimpleSchedulePolicy",
                    schedule_run_frequency="Daily",
                    schedule_run_times=[BACKUP_TIME],
                ),
                retention_policy=recoveryservices.LongTermRetentionPolicyArgs(
                    retention_policy_type="LongTermRetentionPolicy",
                    daily_schedule=recoveryservices.DailyRetentionScheduleArgs(
                        retention_times=[BACKUP_TIME],
                        retention_duration=recoveryservices.RetentionDurationArgs(
                            count=params.backup_retention_days,
                            duration_type="Days",
                        ),
                    ),
                ),
            ),
            opts=child_opts,
        )

        self.diagnostics = monitor.DiagnosticSetting(
            f"diag-{vault_name}",
            name="send-to-workspace",
            resource_uri=self.vault.id,
            workspace_id=workspace_id,
            log_analytics_destination_type="Dedicated",
            logs=[monitor.DiagnosticsLogSettingsArgs(category_group="allLogs", enabled=True)],
            opts=child_opts,
        )

        self.register_outputs({"recoveryVaultId": self.vault.id})
