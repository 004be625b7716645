# deploy.py
"""
Deploy the Azure Landing Zone for one customer.

Usage:
    python deploy.py -c contoso -l westeurope [-p full] [-w] [-m greenfield] [-g <mg-id>] [-y]

Checks prerequisites, validates the parameter file, then runs the Pulumi
program through the Automation API. Outputs of a successful deployment are
written to outputs/<customer>-<deployment-name>.json.
"""

import json
import shutil
import subprocess
import sys
import time
from datetime import datetime, timedelta

from pulumi import automation as auto

import azcli
import config
import validate
from landing_zone import MODES, PHASES
from logger import setup_logger

BANNER = """
╔════════════════════════════════════════════════════════════════╗
║         Azure Landing Zone Deployment Script                   ║
║         Pulumi Implementation - Audit Ready                    ║
╚════════════════════════════════════════════════════════════════╝
"""

NEXT_STEPS = [
    "Review deployment outputs above",
    "Configure Entra ID conditional access policies",
    "Connect ExpressRoute circuit (if applicable)",
    "Onboard workload spokes in the parameter file",
    "Run Azure Landing Zone Review assessment",
    "Document configuration for audit evidence",
]

logger = setup_logger()


class DeploymentError(Exception):
    """Raised when a deployment step fails; the CLI exits with code 1."""


def parse_args(argv=None):
    parser = validate.ArgumentParser(description="Deploy the Azure Landing Zone")
    parser.add_argument("-c", "--customer", required=True, help="Customer parameter file name")
    parser.add_argument("-l", "--location", required=True, help="Primary Azure region")
    parser.add_argument("-p", "--phase", default="full", choices=list(PHASES), help="Deployment phase")
    parser.add_argument("-w", "--what-if", action="store_true", help="Preview changes without deploying")
    parser.add_argument("-m", "--mode", default="greenfield", choices=MODES, help="Deployment mode")
    parser.add_argument("-g", "--management-group", dest="management_group_id", help="Management group ID for deployment")
    parser.add_argument("-y", "--yes", action="store_true", help="Skip the confirmation prompt")
    parser.add_argument("--debug", action="store_true", help="Verbose output")
    return parser.parse_args(argv)


def deployment_name(now=None):
    return f"alz-deployment-{(now or datetime.now()).strftime('%Y%m%d-%H%M%S')}"


def check_prerequisites():
    """Return the active az account, or raise DeploymentError."""
    logger.info("Checking prerequisites...")

    if not azcli.is_installed(azcli.get_az_exe()):
        raise DeploymentError("Azure CLI is not installed")
    logger.info(f"Azure CLI version: {azcli.cli_version()}")

    if shutil.which("pulumi") is None:
        raise DeploymentError("Pulumi CLI is not installed")
    result = subprocess.run(["pulumi", "version"], capture_output=True, text=True)
    if result.returncode != 0:
        raise DeploymentError(f"Pulumi CLI is not working: {(result.stderr or result.stdout).strip()}")
    logger.info(f"Pulumi CLI version: {result.stdout.strip()}")

    account = azcli.account_show()
    if not account:
        raise DeploymentError("Not logged in to Azure. Please run 'az login'")
    logger.info(f"Logged in as: {account.get('user', {}).get('name')}")
    logger.info(f"Subscription: {account.get('name')} ({account.get('id')})")
    return account


def check_parameters(customer, location):
    path = config.parameter_file(customer)
    if not path.is_file():
        raise DeploymentError(f"Parameter file not found: {path}")
    logger.info(f"Parameter file found: {path}")

    logger.info("Validating parameter file...")
    findings = validate.check_program() + validate.validate_file(path)
    for finding in findings:
        logger.error(f"  {finding}")
    if findings:
        raise DeploymentError("Parameter validation failed")
    logger.info("Parameter validation passed")

    params = config.load_parameters(path)
    if location != params.primary_location:
        logger.warning(
            f"Location '{location}' differs from primary_location '{params.primary_location}' "
            f"in the parameter file; resources will be placed in '{location}'"
        )
    return params


def stack_config(args, tenant_id):
    values = {
        "landing-zone:customer": args.customer,
        "landing-zone:location": args.location,
        "landing-zone:phase": args.phase,
        "landing-zone:mode": args.mode,
        "landing-zone:tenantId": tenant_id,
    }
    if args.management_group_id:
        values["landing-zone:managementGroupId"] = args.management_group_id
    return {key: auto.ConfigValue(value=value) for key, value in values.items()}


def select_stack(args, tenant_id):
    stack = auto.create_or_select_stack(stack_name=args.customer, work_dir=str(config.ROOT_DIR))
    stack.set_all_config(stack_config(args, tenant_id))
    return stack


def confirm():
    logger.warning("This will deploy Azure Landing Zone resources.")
    logger.warning("This may incur costs in your Azure subscription.")
    answer = input("Do you want to continue? (yes/no): ")
    return answer.strip() == "yes"


def save_outputs(customer, name, outputs):
    config.OUTPUTS_DIR.mkdir(parents=True, exist_ok=True)
    output_file = config.OUTPUTS_DIR / f"{customer}-{name}.json"
    with open(output_file, "w") as file:
        json.dump(outputs, file, indent=2)
    return output_file


def run(args) -> int:
    print(BANNER)
    logger.info(f"Customer: {args.customer}")
    logger.info(f"Phase: {args.phase}")
    logger.info(f"Location: {args.location}")
    logger.info(f"Mode: {args.mode}")
    logger.info(f"WhatIf: {args.what_if}")

    account = check_prerequisites()
    check_parameters(args.customer, args.location)

    if args.management_group_id:
        logger.info(f"Deploying to Management Group: {args.management_group_id}")
    else:
        logger.info("Deploying at Tenant scope")
        logger.warning("Ensure you have tenant-level permissions")

    name = deployment_name()
    stack = select_stack(args, account.get("tenantId"))

    if args.what_if:
        logger.warning("Running in WhatIf mode - no resources will be deployed")
        result = stack.preview(on_output=print, message=name)
        logger.info(f"Planned changes: {json.dumps(result.change_summary)}")
        return 0

    if not args.yes and not confirm():
        logger.info("Deployment cancelled by user")
        return 0

    logger.info("Starting deployment...")
    logger.info(f"Deployment name: {name}")
    start = time.monotonic()
    result = stack.up(on_output=print, message=name)
    duration = timedelta(seconds=int(time.monotonic() - start))

    logger.info("Deployment completed successfully!")
    logger.info(f"Duration: {duration}")

    logger.info("Retrieving deployment outputs...")
    outputs = {key: output.value for key, output in result.outputs.items()}
    print(json.dumps(outputs, indent=2))
    output_file = save_outputs(args.customer, name, outputs)
    logger.info(f"Outputs saved to: {output_file}")

    logger.info("Next Steps:")
    for index, step in enumerate(NEXT_STEPS, start=1):
        logger.warning(f"{index}. {step}")
    logger.info("Deployment script completed")
    return 0


def main(argv=None) -> int:
    try:
        args = parse_args(argv)
    except validate.UsageError as e:
        logger.error(str(e))
        return 1
    setup_logger(debug_mode=args.debug)
    try:
        return run(args)
    except DeploymentError as e:
        logger.error(str(e))
    except (config.ParameterError, azcli.AzureCliError) as e:
        logger.error(str(e))
    except auto.CommandError as e:
        logger.error(f"Deployment failed. Check the Azure Portal and the Pulumi logs for details: {e}")
    return 1


if __name__ == "__main__":
    sys.exit(main())
