# main.py
import pulumi

from config import load_parameters, parameter_file
from landing_zone import LandingZone


def main():
    stack_config = pulumi.Config()
    customer = stack_config.get("customer") or pulumi.get_stack()

    try:
        params = load_parameters(parameter_file(customer))
    except Exception as e:
        pulumi.log.error(f"Failed to load parameters for customer '{customer}': {e}")
        raise

    # Without an explicit management group the hierarchy hangs off the tenant root group
    root_group_id = stack_config.get("managementGroupId") or stack_config.require("tenantId")

    try:
        landing_zone = LandingZone(
            params,
            root_group_id=root_group_id,
            phase=stack_config.get("phase") or "full",
            mode=stack_config.get("mode") or "greenfield",
            location=stack_config.get("location"),
        ).build()
    except Exception as e:
        pulumi.log.error(f"Failed during landing zone build: {e}")
        raise

    for name, value in landing_zone.outputs().items():
        pulumi.export(name, value)


if __name__ == "__main__":
    main()
