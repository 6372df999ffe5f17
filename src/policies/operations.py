"""Policy, alert, inventory and custom-group operations against one node."""

from __future__ import annotations

from pathlib import Path
from typing import Iterable, List, Optional, Sequence, Union

from ..client.errors import ApiRequestError, ObjectLookupError, ValidationError
from ..client.models import (
    AlertDefinition,
    CustomGroup,
    ImportResult,
    PolicySummary,
    ResourceSummary,
)
from ..client.pagination import DEFAULT_PAGE_SIZE, fetch_all
from ..codec.archive import (
    EXPORT_ENTRY,
    IMPORT_ENTRY,
    compress,
    decompress,
    write_utf8_no_bom,
)
from ..codec.multipart import build_import_body, encode_body
from ..common.console import debug, log

POLICIES_PATH = "/internal/policies"
EXPORT_PATH = "/internal/policies/export"
IMPORT_PATH = "/internal/policies/import"
ALERT_DEFINITIONS_PATH = "/api/alertdefinitions"
RESOURCES_PATH = "/api/resources"
GROUPS_PATH = "/api/resources/groups"


# --- Policies -----------------------------------------------------------------

def list_policies(client) -> List[PolicySummary]:
    """List every policy on the node, in server order."""
    payload = client.get_json("list_policies", POLICIES_PATH, internal=True)
    return [PolicySummary.from_dict(p) for p in payload.get("policy-summaries") or []]


def find_policy(policies: Sequence[PolicySummary], name: str, node: Optional[str] = None) -> PolicySummary:
    """Return the single policy called ``name``.

    Raises:
        ObjectLookupError: zero or several policies carry that name.
    """
    matches = [p for p in policies if p.name == name]
    if len(matches) != 1:
        raise ObjectLookupError("find_policy", "policy", name, len(matches), node=node)
    return matches[0]


def fetch_policy_xml(client, policy: PolicySummary) -> str:
    """Export one policy and return the XML inside the archive."""
    archive = client.get_bytes(
        "export_policy",
        EXPORT_PATH,
        internal=True,
        params={"id": policy.id},
    )
    return decompress(archive, EXPORT_ENTRY, node=client.node)


def export_filename(node: str, policy_name: str) -> str:
    return f"{node}-{policy_name}.xml"


def export_policies(
    client,
    directory: Union[str, Path],
    names: Optional[Iterable[str]] = None,
) -> List[Path]:
    """Export policies to ``directory`` as ``{node}-{policyName}.xml``.

    Args:
        client: SuiteApiClient for the node.
        directory: Existing directory to write into.
        names: Policy names to export; every policy when omitted.

    Returns:
        Paths of the written files, in export order.

    Raises:
        ValidationError: ``directory`` does not exist.
        ObjectLookupError: a requested name does not match exactly one policy.
    """
    target_dir = Path(directory)
    if not target_dir.is_dir():
        raise ValidationError("export_policies", f"directory does not exist: {target_dir}", node=client.node)

    policies = list_policies(client)
    if names is not None:
        policies = [find_policy(policies, name, node=client.node) for name in names]

    written = []
    for policy in policies:
        xml_text = fetch_policy_xml(client, policy)
        path = write_utf8_no_bom(xml_text, target_dir / export_filename(client.node, policy.name))
        debug("export", f"{policy.name} -> {path}")
        written.append(path)

    log("export", f"Exported {len(written)} policies from {client.node} to {target_dir}")
    return written


def import_policy(client, xml_path: Union[str, Path], force: bool = False) -> ImportResult:
    """Import a policy XML file.

    The file is wrapped in a ``policyImport.xml`` archive and sent as a
    multipart body. The endpoint answers 202 either way, so the result
    counters decide success.

    Raises:
        ValidationError: ``xml_path`` is not a file.
        ApiSemanticError: nothing was created, updated or skipped.
    """
    source = Path(xml_path)
    if not source.is_file():
        raise ValidationError("import_policy", f"policy file does not exist: {source}", node=client.node)

    archive = compress(source.read_bytes(), IMPORT_ENTRY)
    body, content_type = build_import_body(archive, force)
    resp = client.post_raw("import_policy", IMPORT_PATH, encode_body(body), content_type, internal=True)

    try:
        payload = resp.json()
    except ValueError as e:
        raise ApiRequestError(
            "import_policy",
            resp.status_code,
            "import response is not valid JSON",
            node=client.node,
            cause=e,
        )

    if payload is None:
        payload = {}
    if not isinstance(payload, dict):
        raise ApiRequestError(
            "import_policy",
            resp.status_code,
            "import response is not a JSON object",
            node=client.node,
        )

    result = ImportResult.from_dict(payload).ensure_applied(client.node)
    log(
        "import",
        f"{source.name} -> {client.node}: created={len(result.created)} "
        f"updated={len(result.updated)} skipped={len(result.skipped)}",
    )
    return result


# --- Alerts and inventory -----------------------------------------------------

def list_alert_definitions(client, page_size: int = DEFAULT_PAGE_SIZE) -> List[AlertDefinition]:
    items = fetch_all(client, ALERT_DEFINITIONS_PATH, "alertDefinitions", page_size)
    return [AlertDefinition.from_dict(a) for a in items]


def list_resources(
    client,
    adapter_kind: Optional[str] = None,
    resource_kind: Optional[str] = None,
    page_size: int = DEFAULT_PAGE_SIZE,
) -> List[ResourceSummary]:
    """List inventory resources, optionally filtered by adapter and resource kind."""
    params = {}
    if adapter_kind:
        params["adapterKind"] = adapter_kind
    if resource_kind:
        params["resourceKind"] = resource_kind
    items = fetch_all(client, RESOURCES_PATH, "resourceList", page_size, params=params)
    return [ResourceSummary.from_dict(r) for r in items]


# --- Custom groups ------------------------------------------------------------

def list_custom_groups(client, page_size: int = DEFAULT_PAGE_SIZE) -> List[CustomGroup]:
    items = fetch_all(client, GROUPS_PATH, "groups", page_size, params={"includePolicy": "true"})
    return [CustomGroup.from_dict(g) for g in items]


def find_custom_group(groups: Sequence[CustomGroup], name: str, node: Optional[str] = None) -> CustomGroup:
    """Return the single custom group called ``name``.

    Raises:
        ObjectLookupError: zero or several groups carry that name.
    """
    matches = [g for g in groups if g.name == name]
    if len(matches) != 1:
        raise ObjectLookupError("find_custom_group", "custom group", name, len(matches), node=node)
    return matches[0]


def assign_policy_to_group(
    client,
    group_name: str,
    policy_name: str,
    page_size: int = DEFAULT_PAGE_SIZE,
) -> CustomGroup:
    """Apply ``policy_name`` to the custom group ``group_name``.

    Returns:
        The group as it was sent back to the server.
    """
    policy = find_policy(list_policies(client), policy_name, node=client.node)
    group = find_custom_group(list_custom_groups(client, page_size), group_name, node=client.node)

    if group.policy_id == policy.id:
        log("groups", f"{group.name} on {client.node} already uses {policy.name}")
        return group

    record = group.with_policy(policy.id)
    client.put_json("assign_policy", GROUPS_PATH, record, params={"includePolicy": "true"})
    log("groups", f"Applied {policy.name} to {group.name} on {client.node}")
    return CustomGroup.from_dict(record)
