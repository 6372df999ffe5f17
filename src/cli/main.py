#!/usr/bin/env python3
"""
Suite API toolkit - command-line entry point.

Every command runs against one or more nodes, strictly one after another.
The first failure aborts the whole batch.
"""

from __future__ import annotations

import argparse
import getpass
import json
import os
import sys
from pathlib import Path
from typing import Callable, List, Optional

from .config import Config
from ..client.errors import SuiteApiError, ValidationError
from ..client.models import ClusterNode, Credential
from ..client.session import acquire
from ..client.transport import SuiteApiClient
from ..cluster.bootstrap import (
    CasaClient,
    get_certificate_thumbprint,
    wait_for_api_available,
    wait_for_cluster_initialized,
)
from ..common.console import log, set_verbose
from ..policies.crossref import build_report, write_report_csv
from ..policies.operations import (
    assign_policy_to_group,
    export_policies,
    import_policy,
    list_resources,
)

PASSWORD_ENV = "SUITEAPI_PASSWORD"
ADMIN_PASSWORD_ENV = "SUITEAPI_ADMIN_PASSWORD"


def read_password(env_var: str, prompt: str) -> str:
    """Password from the environment, or an interactive prompt."""
    password = os.environ.get(env_var)
    if password:
        return password
    return getpass.getpass(prompt)


def apply_overrides(config: Config, args) -> Config:
    """Override config values with command-line flags."""
    if args.nodes:
        config.nodes = [n.strip() for n in args.nodes.split(",") if n.strip()]
    if args.username:
        config.auth.username = args.username
    if args.auth_source:
        config.auth.auth_source = args.auth_source
    if args.insecure is not None:
        config.tls.trust_all = args.insecure
    if args.ca_bundle:
        config.tls.ca_bundle = args.ca_bundle
    if args.timeout:
        config.http.timeout = args.timeout
    return config


def run_for_nodes(config: Config, credential: Credential, action: Callable[[SuiteApiClient], None]) -> None:
    """Acquire a session per node and run ``action`` against it, in order."""
    if not config.nodes:
        raise ValidationError("cli", "no target nodes given (use --nodes or the config file)")
    for node in config.nodes:
        log("batch", f"Processing {node}")
        session = acquire(
            node,
            credential,
            auth_source=config.auth.auth_source,
            trust_all=config.tls.trust_all,
            ca_bundle=config.tls.ca_bundle,
            timeout=config.http.timeout,
        )
        with SuiteApiClient(session, timeout=config.http.timeout) as client:
            action(client)


def user_credential(config: Config) -> Credential:
    if not config.auth.username:
        raise ValidationError("cli", "no username given (use --username or the config file)")
    return Credential(config.auth.username, read_password(PASSWORD_ENV, f"Password for {config.auth.username}: "))


# --- Commands -----------------------------------------------------------------

def cmd_export_policies(config: Config, args) -> None:
    directory = Path(args.output_dir or config.export_dir or ".")
    names = args.policy or None
    run_for_nodes(config, user_credential(config), lambda client: export_policies(client, directory, names))


def cmd_import_policy(config: Config, args) -> None:
    path = Path(args.file)
    if not path.is_file():
        raise ValidationError("import_policy", f"policy file does not exist: {path}")
    run_for_nodes(config, user_credential(config), lambda client: import_policy(client, path, force=args.force))


def cmd_alert_report(config: Config, args) -> None:
    directory = Path(args.output_dir)
    if not args.json and not directory.is_dir():
        raise ValidationError("alert_report", f"directory does not exist: {directory}")

    def report(client: SuiteApiClient) -> None:
        associations = build_report(client, config.pagination.alert_page_size)
        if args.json:
            print(json.dumps([a.to_dict() for a in associations], indent=2))
            return
        path = directory / f"{client.node}-alert-report.csv"
        write_report_csv(associations, path)
        log("crossref", f"Wrote {path}")

    run_for_nodes(config, user_credential(config), report)


def cmd_assign_policy(config: Config, args) -> None:
    run_for_nodes(
        config,
        user_credential(config),
        lambda client: assign_policy_to_group(client, args.group, args.policy, config.pagination.page_size),
    )


def cmd_list_resources(config: Config, args) -> None:
    def show(client: SuiteApiClient) -> None:
        resources = list_resources(client, args.adapter_kind, args.resource_kind, config.pagination.page_size)
        for r in resources:
            print(f"{client.node}\t{r.id}\t{r.adapter_kind or ''}\t{r.resource_kind or ''}\t{r.name}")
        log("resources", f"{client.node}: {len(resources)} resources")

    run_for_nodes(config, user_credential(config), show)


def cmd_bootstrap(config: Config, args) -> None:
    """Wait for the master's API, create the cluster, wait for INITIALIZED."""
    admin = Credential(args.admin_user, read_password(ADMIN_PASSWORD_ENV, f"Password for {args.admin_user}: "))
    casa = CasaClient(
        args.master,
        admin,
        trust_all=config.tls.trust_all,
        ca_bundle=config.tls.ca_bundle,
        timeout=config.http.timeout,
    )
    boot = config.bootstrap
    try:
        wait_for_api_available(casa, boot.timeout, boot.interval, boot.ready_status)
        master = ClusterNode(args.master, get_certificate_thumbprint(args.master))
        replica = None
        if args.replica:
            replica = ClusterNode(args.replica, get_certificate_thumbprint(args.replica))
        casa.create_cluster(master, replica)
        elapsed = wait_for_cluster_initialized(casa, boot.timeout, boot.interval)
        log("cluster", f"{args.master} initialized in {elapsed:.0f}s")
    finally:
        casa.close()


COMMANDS = {
    "export-policies": cmd_export_policies,
    "import-policy": cmd_import_policy,
    "alert-report": cmd_alert_report,
    "assign-policy": cmd_assign_policy,
    "list-resources": cmd_list_resources,
    "bootstrap": cmd_bootstrap,
}


def parse_args(argv: Optional[List[str]] = None):
    parser = argparse.ArgumentParser(
        description="Policy, alert and cluster tooling for the Suite API",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )

    # Connection options
    parser.add_argument("--config", type=str, help="Path to config YAML file")
    parser.add_argument("--nodes", type=str, help="Comma-separated target nodes")
    parser.add_argument("--username", type=str, help="User name, optionally user@domain")
    parser.add_argument("--auth-source", type=str, help="Auth source (default: derived from username)")
    parser.add_argument("--timeout", type=int, help="Per-request timeout in seconds")
    parser.add_argument("-v", "--verbose", action="store_true", help="Print debug output")

    # TLS options
    parser.add_argument(
        "--insecure",
        dest="insecure",
        action="store_true",
        default=None,
        help="Skip TLS verification",
    )
    parser.add_argument(
        "--secure",
        dest="insecure",
        action="store_false",
        default=None,
        help="Require TLS verification",
    )
    parser.add_argument("--ca-bundle", type=str, help="Path to a custom CA bundle")

    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("export-policies", help="Export policies as {node}-{policy}.xml")
    p.add_argument("--output-dir", type=str, help="Directory to write into")
    p.add_argument("--policy", action="append", help="Policy name to export (repeatable; default all)")

    p = sub.add_parser("import-policy", help="Import a policy XML file")
    p.add_argument("--file", required=True, help="Policy XML file")
    p.add_argument("--force", action="store_true", help="Overwrite existing policies")

    p = sub.add_parser("alert-report", help="Report which policies enable each alert")
    p.add_argument("--output-dir", default=".", help="Directory for {node}-alert-report.csv")
    p.add_argument("--json", action="store_true", help="Print JSON instead of writing CSV")

    p = sub.add_parser("assign-policy", help="Apply a policy to a custom group")
    p.add_argument("--group", required=True, help="Custom group name")
    p.add_argument("--policy", required=True, help="Policy name")

    p = sub.add_parser("list-resources", help="List inventory resources")
    p.add_argument("--adapter-kind", help="Adapter kind filter")
    p.add_argument("--resource-kind", help="Resource kind filter")

    p = sub.add_parser("bootstrap", help="Create a cluster and wait until it is initialized")
    p.add_argument("--master", required=True, help="Master node address")
    p.add_argument("--replica", help="Replica node address")
    p.add_argument("--admin-user", default="admin", help="Appliance admin user")

    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    """Entry point for the suiteapi command."""
    args = parse_args(argv)
    set_verbose(args.verbose)
    config = apply_overrides(Config.load(args.config), args)

    try:
        COMMANDS[args.command](config, args)
    except SuiteApiError as e:
        sys.stderr.write(f"Error: {e}\n")
        if e.cause is not None:
            sys.stderr.write(f"Details: {e.cause}\n")
        return 1
    except KeyboardInterrupt:
        sys.stderr.write("\nInterrupted\n")
        return 130
    return 0


if __name__ == "__main__":
    sys.exit(main())
