"""Test doubles and payload builders shared by the unit tests."""

from unittest.mock import MagicMock

from src.codec.archive import EXPORT_ENTRY, compress


class FakeClient:
    """Stand-in for SuiteApiClient that serves canned responses by path.

    ``pages`` maps a path to a list of JSON pages (indexed by the ``page``
    query parameter, or the single payload for unpaged endpoints).
    ``exports`` maps a policy id to the archive bytes returned by export.
    """

    def __init__(self, node="vrops-01.lab.local", pages=None, exports=None):
        self.node = node
        self.pages = pages or {}
        self.exports = exports or {}
        self.calls = []
        self.puts = []
        self.posts = []
        self.post_response = None

    def get_json(self, operation, path, *, internal=False, params=None):
        params = dict(params or {})
        self.calls.append((path, params, internal))
        served = self.pages[path]
        if isinstance(served, list):
            return served[params.get("page", 0)]
        return served

    def get_bytes(self, operation, path, *, internal=False, params=None):
        self.calls.append((path, dict(params or {}), internal))
        return self.exports[params["id"]]

    def put_json(self, operation, path, body, *, internal=False, params=None):
        self.puts.append((path, body, params))
        return MagicMock(status_code=200)

    def post_raw(self, operation, path, body, content_type, *, internal=False):
        self.posts.append((path, body, content_type, internal))
        return self.post_response


def paged(items_key, items, page_size):
    """Split ``items`` into API pages with a pageInfo envelope."""
    total = len(items)
    pages = []
    page = 0
    while True:
        chunk = items[page * page_size:(page + 1) * page_size]
        pages.append({
            "pageInfo": {"totalCount": total, "page": page, "pageSize": page_size},
            items_key: chunk,
        })
        page += 1
        if page * page_size > total:
            break
    return pages


def policy_xml(name, alerts=None):
    """Render a minimal policy export; ``alerts`` maps alert id -> enabled."""
    body = ""
    if alerts is not None:
        rows = "".join(
            f'<Alert id="{alert_id}" enabled="{"true" if enabled else "false"}"/>'
            for alert_id, enabled in alerts.items()
        )
        body = f"<PackageSettings><Alerts>{rows}</Alerts></PackageSettings>"
    escaped = name.replace("&", "&amp;").replace('"', "&quot;").replace("'", "&apos;")
    return (
        '<?xml version="1.0" encoding="UTF-8"?>'
        "<PolicyContent><Policies>"
        f'<Policy key="k-{len(name)}" name="{escaped}">{body}</Policy>'
        "</Policies></PolicyContent>"
    )


def export_archive(xml_text):
    return compress(xml_text.encode("utf-8"), EXPORT_ENTRY)


