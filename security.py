# security.py
from typing import Dict

import pulumi
from pulumi_azure_native import security


class DefenderBaseline(pulumi.ComponentResource):
    """Defender for Cloud plans, security contact and workspace link per subscription."""

    def __init__(
        self,
        name: str,
        params,
        providers: Dict[str, pulumi.ProviderResource],
        workspace_id: pulumi.Input[str],
        opts: pulumi.ResourceOptions = None,
    ):
        super().__init__("landingzone:security:DefenderBaseline", name, None, opts)

        self.pricings = {}
        self.workspace_settings = {}
        subscriptions = params.subscriptions.platform()

        for key, subscription_id in subscriptions.items():
            child_opts = pulumi.ResourceOptions(parent=self, provider=providers[key])
            scope = f"/subscriptions/{subscription_id}"

            for plan in params.security.defender_plans:
                self.pricings[f"{key}/{plan}"] = security.Pricing(
                    f"defender-{key}-{plan.lower()}",
                    pricing_name=plan,
                    pricing_tier="Standard",
                    scope_id=scope,
                    opts=child_opts,
                )

            security.SecurityContact(
                f"security-contact-{key}",
                security_contact_name="default",
                emails=";".join(params.contact_emails),
                opts=child_opts,
            )

            self.workspace_settings[key] = security.WorkspaceSetting(
                f"defender-workspace-{key}",
                workspace_setting_name="default",
                scope=scope,
                workspace_id=workspace_id,
                opts=child_opts,
            )

        self.status = f"Enabled ({len(params.security.defender_plans)} plans on {len(subscriptions)} subscriptions)"
        self.register_outputs({"defenderStatus": self.status})
