"""Policy to alert cross-reference report.

The API can list alert definitions and export policies, but it cannot say
which policies enable which alerts. This module derives that mapping by
reading every policy's exported XML::

    <PolicyContent>
      <Policies>
        <Policy key="..." name="Production">
          <PackageSettings>
            <Alerts>
              <Alert id="AlertDefinition-1" enabled="true"/>
              <Alert id="AlertDefinition-2" enabled="false"/>
            </Alerts>
          </PackageSettings>
        </Policy>
      </Policies>
    </PolicyContent>

Policy names are matched as attribute values, never spliced into a query
string, so names containing quote characters are found like any other.
"""

from __future__ import annotations

import csv
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Set, Union

from bs4 import BeautifulSoup

from ..client.models import AlertAssociation, AlertDefinition, PolicySummary
from ..client.pagination import DEFAULT_PAGE_SIZE
from ..common.console import debug, log
from .operations import fetch_policy_xml, list_alert_definitions, list_policies

POLICY_TAG = "Policy"
PACKAGE_TAG = "PackageSettings"
ALERTS_TAG = "Alerts"
ALERT_TAG = "Alert"

CSV_FIELDS = ["alert_id", "alert_name", "policy_count", "policies"]


def enabled_alert_ids(xml_text: str, policy_name: str) -> Optional[Set[str]]:
    """Ids of the alerts that ``policy_name`` enables locally.

    Returns:
        A set of alert ids, or None when the policy element is missing or
        defines no alert overrides (no alert section, or an empty one).
    """
    soup = BeautifulSoup(xml_text, "xml")
    policy = soup.find(POLICY_TAG, attrs={"name": policy_name})
    if policy is None:
        debug("crossref", f"no <Policy> element named {policy_name!r} in export")
        return None

    package = policy.find(PACKAGE_TAG)
    alerts = package.find(ALERTS_TAG) if package is not None else None
    if alerts is None:
        return None

    entries = alerts.find_all(ALERT_TAG)
    if not entries:
        return None

    return {
        entry.get("id")
        for entry in entries
        if entry.get("id") and (entry.get("enabled") or "").strip().lower() == "true"
    }


def apply_policy(associations: Sequence[AlertAssociation], policy_name: str, enabled: Set[str]) -> int:
    """Append ``policy_name`` to every association whose alert it enables.

    Returns:
        Number of associations updated.
    """
    updated = 0
    for assoc in associations:
        if assoc.alert_id in enabled and policy_name not in assoc.policies:
            assoc.policies.append(policy_name)
            updated += 1
    return updated


def correlate(
    alerts: Sequence[AlertDefinition],
    policy_exports: Sequence[tuple],
) -> List[AlertAssociation]:
    """Build associations from alerts and ``(policy_name, xml_text)`` pairs.

    Policies are applied in the order given; alerts keep their listing order.
    """
    associations = [AlertAssociation(alert_id=a.id, alert_name=a.name) for a in alerts]
    for policy_name, xml_text in policy_exports:
        enabled = enabled_alert_ids(xml_text, policy_name)
        if not enabled:
            debug("crossref", f"{policy_name}: no local alert overrides")
            continue
        count = apply_policy(associations, policy_name, enabled)
        debug("crossref", f"{policy_name}: enables {count} known alerts")
    return associations


def report_policies(policies: Sequence[PolicySummary]) -> List[PolicySummary]:
    """Policies that take part in the report, in listing order."""
    return [p for p in policies if not p.is_reserved]


def build_report(client, page_size: int = DEFAULT_PAGE_SIZE) -> List[AlertAssociation]:
    """Map every alert definition on the node to the policies enabling it.

    Args:
        client: SuiteApiClient for the node.
        page_size: Page size for the alert definition listing.

    Returns:
        One AlertAssociation per alert definition, in alert listing order.

    Raises:
        SuiteApiError: any listing, export or decode failure aborts the report.
    """
    alerts = list_alert_definitions(client, page_size)
    policies = report_policies(list_policies(client))
    log("crossref", f"{client.node}: {len(alerts)} alert definitions, {len(policies)} policies")

    exports = []
    for policy in policies:
        debug("crossref", f"exporting {policy.name} ({policy.id})")
        exports.append((policy.name, fetch_policy_xml(client, policy)))

    associations = correlate(alerts, exports)
    linked = sum(1 for a in associations if a.policies)
    log("crossref", f"{client.node}: {linked} alerts are enabled by at least one policy")
    return associations


def report_rows(associations: Sequence[AlertAssociation]) -> List[Dict[str, str]]:
    return [
        {
            "alert_id": a.alert_id,
            "alert_name": a.alert_name,
            "policy_count": str(len(a.policies)),
            "policies": ";".join(a.policies),
        }
        for a in associations
    ]


def write_report_csv(associations: Sequence[AlertAssociation], path: Union[str, Path]) -> None:
    with open(path, "w", newline="", encoding="utf-8") as f:
        w = csv.DictWriter(f, fieldnames=CSV_FIELDS)
        w.writeheader()
        for row in report_rows(associations):
            w.writerow(row)
