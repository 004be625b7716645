# custom_resources.py
"""
Builds the ``additional_resources`` a customer lists in the parameter file.

Each entry names a ``pulumi_azure_native`` type as ``<module>.<Class>``,
e.g. ``network.NetworkSecurityGroup``. String arguments of the form
``ref:<name>.<attribute>`` point at an earlier entry or at a landing zone
core resource (``hub_vnet``, ``hub_resource_group``, ``workspace``, ...).
"""

import inspect
import re
from typing import Any, Dict, Optional

import pulumi
import pulumi_azure_native as azure_native

import naming


def to_snake_case(name: str) -> str:
    return re.sub(r'(?<!^)(?=[A-Z])', '_', name).lower()


class CustomResourceBuilder:
    def __init__(
        self,
        params,
        location: str,
        tags: Dict[str, str],
        core_resources: Optional[Dict[str, Any]] = None,
        providers: Optional[Dict[str, pulumi.ProviderResource]] = None,
    ):
        self.params = params
        self.location = location
        self.tags = tags
        self.providers = providers or {}
        # Core resources are referenceable but never exported again
        self.core_resources = dict(core_resources or {})
        self.resources = {}

    def generate_resource_name(self, base_name: str) -> str:
        return "-".join([
            self.params.organization_prefix,
            self.params.environment,
            naming.location_code(self.location),
            base_name,
        ]).lower()

    def lookup(self, name: str):
        if name in self.resources:
            return self.resources[name]
        if name in self.core_resources:
            return self.core_resources[name]
        raise ValueError(f"Referenced resource '{name}' not found.")

    def resolve_reference(self, value: str):
        ref_text = value[4:]
        if "." in ref_text:
            ref_res, ref_attr = ref_text.split(".", 1)
        else:
            ref_res, ref_attr = (ref_text, "id")

        resource_obj = self.lookup(ref_res)
        attr_val = getattr(resource_obj, ref_attr, None)
        if attr_val is None:
            raise ValueError(f"Attribute '{ref_attr}' not found on resource '{ref_res}'")
        return attr_val

    def resolve_args(self, value):
        if isinstance(value, dict):
            return {key: self.resolve_args(item) for key, item in value.items()}
        if isinstance(value, list):
            return [self.resolve_args(item) for item in value]
        if isinstance(value, str) and value.startswith("ref:"):
            return self.resolve_reference(value)
        return value

    def _lookup_existing(self, name, module, class_name, resolved_args, opts):
        get_func_name = f"get_{to_snake_case(class_name)}"
        get_func = getattr(module, get_func_name, None)
        if get_func is None:
            pulumi.log.warn(
                f"Function '{get_func_name}' not found for '{name}'. Creating a new resource instead."
            )
            return None

        valid_params = set(inspect.signature(get_func).parameters) - {"opts"}
        get_params = {k: v for k, v in resolved_args.items() if k in valid_params}
        # Generated get_* functions default every argument to None; the *_name ones identify the resource
        missing = {p for p in valid_params if p.endswith("_name") and p not in get_params}
        if missing:
            pulumi.log.warn(f"Missing required params {missing} for existing resource '{name}'. Skipping lookup.")
            return None

        pulumi.log.info(f"Looking up existing resource '{name}' via '{get_func_name}'")
        return get_func(**get_params, opts=pulumi.InvokeOptions(provider=opts.provider))

    def build_one(self, resource_cfg: Dict[str, Any]):
        name = resource_cfg["name"]
        resource_type = resource_cfg["type"]
        args = dict(resource_cfg.get("args") or {})
        is_existing = args.pop("existing", resource_cfg.get("existing", False))

        module_name, class_name = resource_type.rsplit(".", 1)
        module = getattr(azure_native, module_name, None)
        if module is None:
            pulumi.log.warn(f"Azure module '{module_name}' not found. Skipping '{name}'.")
            return None
        resource_class = getattr(module, class_name, None)
        if resource_class is None:
            pulumi.log.warn(f"Resource class '{class_name}' not found in module '{module_name}'. Skipping '{name}'.")
            return None

        resolved_args = self.resolve_args(args)
        provider = self.providers.get(resource_cfg.get("subscription", "connectivity"))
        opts = pulumi.ResourceOptions(provider=provider)

        if is_existing:
            existing = self._lookup_existing(name, module, class_name, resolved_args, opts)
            if existing is not None:
                self.resources[name] = existing
                return existing

        # Generated classes hide their real arguments behind overloaded __init__
        init = getattr(resource_class, "_internal_init", resource_class.__init__)
        init_params = inspect.signature(init).parameters
        if "tags" in init_params:
            resolved_args["tags"] = {**self.tags, **(resolved_args.get("tags") or {})}
        else:
            resolved_args.pop("tags", None)
        if "location" in init_params:
            resolved_args.setdefault("location", self.location)
        else:
            resolved_args.pop("location", None)

        pulumi_name = self.generate_resource_name(name)
        resource_instance = resource_class(pulumi_name, **resolved_args, opts=opts)
        self.resources[name] = resource_instance
        pulumi.log.info(f"Created resource: {pulumi_name} ({resource_type})")
        return resource_instance

    def build(self):
        for resource_cfg in self.params.additional_resources:
            self.build_one(resource_cfg)
        return self.resources
