"""Policy operations and the policy-to-alert cross-reference report."""

from .operations import (
    list_policies,
    find_policy,
    fetch_policy_xml,
    export_policies,
    import_policy,
    list_alert_definitions,
    list_resources,
    list_custom_groups,
    find_custom_group,
    assign_policy_to_group,
)
from .crossref import build_report, enabled_alert_ids, correlate, write_report_csv

__all__ = [
    "list_policies",
    "find_policy",
    "fetch_policy_xml",
    "export_policies",
    "import_policy",
    "list_alert_definitions",
    "list_resources",
    "list_custom_groups",
    "find_custom_group",
    "assign_policy_to_group",
    "build_report",
    "enabled_alert_ids",
    "correlate",
    "write_report_csv",
]
