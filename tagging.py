# tagging.py
from typing import Dict, Optional


def standard_tags(params, extra: Optional[Dict[str, str]] = None) -> Dict[str, str]:
    """Build the tag set every landing zone resource carries.

    Customer tags from the parameter file override the standard keys, and
    ``extra`` overrides both.
    """
    tags = {
        "Organization": params.organization_name,
        "Environment": params.environment,
        "CostCenter": params.cost_center,
        "Owner": ";".join(params.owners),
        "ManagedBy": "Pulumi",
        "LandingZone": params.organization_prefix,
    }
    tags.update({k: str(v) for k, v in params.tags.items()})
    if extra:
        tags.update(extra)
    return tags
