"""Google Workspace integration — export peulot to Docs, import Docs as examples.

Uses raw httpx calls to Google REST APIs with OAuth2 refresh_token auth.

Exported documents are shared with "anyone with link" access and the URL
is returned to the caller.

API Reference:
  - Docs: https://developers.google.com/workspace/docs/api/reference/rest
  - Drive: https://developers.google.com/drive/api/reference/rest/v3
"""

import asyncio
import logging
import re
import time

import httpx

from peulot.core.errors import ExternalServiceError, ValidationError
from peulot.core.types import DriveFile, Peula

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

TOKEN_URL = "https://oauth2.googleapis.com/token"
DOCS_API = "https://docs.googleapis.com/v1/documents"
DRIVE_FILES_API = "https://www.googleapis.com/drive/v3/files"
DRIVE_PERMISSIONS_URL = DRIVE_FILES_API + "/{file_id}/permissions"
DOC_MIME_TYPE = "application/vnd.google-apps.document"

DOCUMENT_URL_RE = re.compile(r"/document/d/([a-zA-Z0-9_-]+)")

TABLE_HEADER = ("Component", "#", "Description & Best Practices", "Time Structure", "Materials")
MATERIALS_ROW_INDEX = 5  # "Materials & Logistics"


def document_url(document_id: str) -> str:
    return f"https://docs.google.com/document/d/{document_id}/edit"


def extract_document_id(url: str) -> str:
    """Pull the document id out of a Docs URL. Raises ValidationError otherwise."""
    match = DOCUMENT_URL_RE.search(url or "")
    if not match:
        raise ValidationError(
            "Invalid Google Docs URL. Expected a link like "
            "https://docs.google.com/document/d/<id>/edit",
            details={"url": url},
        )
    return match.group(1)


# ---------------------------------------------------------------------------
# OAuth2 token management: cache in memory, refresh automatically
# ---------------------------------------------------------------------------

class GoogleCredentialProvider:
    """Hands out a valid access token, refreshing it from a refresh token.

    Access tokens last ~3600 seconds; we refresh 60 seconds early to avoid
    edge-case expiry mid-request. Concurrent callers share one refresh.
    """

    def __init__(self, client_id: str, client_secret: str, refresh_token: str):
        self.client_id = client_id
        self.client_secret = client_secret
        self.refresh_token = refresh_token
        self._token = ""
        self._expiry = 0.0
        self._lock = asyncio.Lock()

    def _valid(self) -> bool:
        return bool(self._token) and time.time() < self._expiry - 60

    async def get_token(self) -> str:
        if self._valid():
            return self._token

        async with self._lock:
            if self._valid():
                return self._token

            if not all([self.client_id, self.client_secret, self.refresh_token]):
                raise ExternalServiceError(
                    "Google Workspace credentials not configured. "
                    "Set GOOGLE_CLIENT_ID, GOOGLE_CLIENT_SECRET, GOOGLE_REFRESH_TOKEN in .env."
                )

            try:
                async with httpx.AsyncClient(timeout=10.0) as client:
                    resp = await client.post(TOKEN_URL, data={
                        "client_id": self.client_id,
                        "client_secret": self.client_secret,
                        "refresh_token": self.refresh_token,
                        "grant_type": "refresh_token",
                    })
                    resp.raise_for_status()
                    data = resp.json()
            except httpx.HTTPStatusError as e:
                logger.error("Google token refresh failed (%d): %s",
                             e.response.status_code, e.response.text[:200])
                raise ExternalServiceError("Google authorization failed. Reconnect Google Docs.") from e
            except httpx.HTTPError as e:
                logger.error("Google token refresh transport error: %s", e)
                raise ExternalServiceError("Could not reach Google to authorize.") from e

            expires_in = data.get("expires_in", 3600)
            self._token = data["access_token"]
            self._expiry = time.time() + expires_in
            logger.info("Refreshed Google access token (expires in %ds)", expires_in)
            return self._token


def _auth_headers(token: str) -> dict[str, str]:
    return {
        "Authorization": f"Bearer {token}",
        "Content-Type": "application/json",
    }


# ---------------------------------------------------------------------------
# Document structure helpers (pure)
# ---------------------------------------------------------------------------

def _paragraph_text(paragraph: dict) -> str:
    return "".join(
        el.get("textRun", {}).get("content", "") for el in paragraph.get("elements", [])
    )


def _collect_text(elements: list[dict], out: list[str]) -> None:
    for el in elements:
        if "paragraph" in el:
            out.append(_paragraph_text(el["paragraph"]))
        elif "table" in el:
            for row in el["table"].get("tableRows", []):
                for cell in row.get("tableCells", []):
                    _collect_text(cell.get("content", []), out)
        elif "tableOfContents" in el:
            _collect_text(el["tableOfContents"].get("content", []), out)


def extract_document_text(document: dict) -> str:
    """Plain text of every paragraph and table cell, in document order."""
    parts: list[str] = []
    _collect_text(document.get("body", {}).get("content", []), parts)
    text = "".join(parts)
    # Collapse the blank runs that empty paragraphs and cells leave behind
    return re.sub(r"\n{3,}", "\n\n", text).strip()


def build_header_text(peula: Peula) -> str:
    lines = [
        peula.title,
        "",
        f"Age Group: {peula.age_group} | Duration: {peula.duration} min | Group Size: {peula.group_size}",
        "",
        "Educational Goals:",
        peula.goals,
        "",
    ]
    if peula.available_materials:
        lines += ["Available Materials:", ", ".join(peula.available_materials), ""]
    if peula.special_considerations:
        lines += ["Special Considerations:", peula.special_considerations, ""]
    lines += ["Peula Components", ""]
    return "\n".join(lines)


def build_table_rows(peula: Peula) -> list[list[str]]:
    """Header row plus one row per component."""
    materials = "\n".join(peula.available_materials)
    rows = [list(TABLE_HEADER)]
    for i, comp in enumerate(peula.content.components):
        rows.append([
            comp.component,
            str(i + 1),
            f"{comp.description}\n\nTzofim Best Practices:\n{comp.best_practices}",
            comp.time_structure,
            materials if i == MATERIALS_ROW_INDEX else "",
        ])
    return rows


def find_last_table(document: dict) -> dict | None:
    tables = [el["table"] for el in document.get("body", {}).get("content", []) if "table" in el]
    return tables[-1] if tables else None


def build_table_fill_requests(document: dict, rows: list[list[str]]) -> list[dict]:
    """insertText requests that fill the document's last table with ``rows``.

    Each request targets the start of a cell's first paragraph as it is
    *before* any insertion. Requests are ordered from the highest index to
    the lowest, so inserting into one cell never shifts a cell still to
    be filled.
    """
    table = find_last_table(document)
    if table is None:
        raise ExternalServiceError("Exported document is missing its component table")
    table_rows = table.get("tableRows", [])
    if len(table_rows) < len(rows):
        raise ExternalServiceError("Exported document table has too few rows")

    targets: list[tuple[int, str]] = []
    for row_values, table_row in zip(rows, table_rows):
        cells = table_row.get("tableCells", [])
        if len(cells) < len(row_values):
            raise ExternalServiceError("Exported document table has too few columns")
        for value, cell in zip(row_values, cells):
            if not value:
                continue
            targets.append((cell["content"][0]["startIndex"], value))

    targets.sort(key=lambda t: t[0], reverse=True)
    return [{"insertText": {"location": {"index": index}, "text": value}} for index, value in targets]


# ---------------------------------------------------------------------------
# Docs / Drive client
# ---------------------------------------------------------------------------

class GoogleDocsClient:
    """Export, import, and list Google Docs on behalf of the configured account."""

    def __init__(
        self,
        credentials: GoogleCredentialProvider,
        template_name: str = "copy of peula format",
        require_template: bool = False,
    ):
        self.credentials = credentials
        self.template_name = template_name
        self.require_template = require_template

    async def _request(self, method: str, url: str, **kwargs) -> dict:
        token = await self.credentials.get_token()
        try:
            async with httpx.AsyncClient(timeout=30.0) as client:
                resp = await client.request(method, url, headers=_auth_headers(token), **kwargs)
                resp.raise_for_status()
                return resp.json() if resp.content else {}
        except httpx.HTTPStatusError as e:
            status = e.response.status_code
            logger.error("Google API %s %s failed (%d): %s", method, url, status, e.response.text[:200])
            if status in (401, 403):
                raise ExternalServiceError("Google rejected the request. Check Google Docs access.") from e
            if status == 404:
                raise ExternalServiceError("Google document not found or not shared with this account.") from e
            raise ExternalServiceError("Google API request failed.") from e
        except httpx.HTTPError as e:
            logger.error("Google API %s %s transport error: %s", method, url, e)
            raise ExternalServiceError("Could not reach Google.") from e

    async def _batch_update(self, document_id: str, requests: list[dict]) -> None:
        if requests:
            await self._request("POST", f"{DOCS_API}/{document_id}:batchUpdate", json={"requests": requests})

    async def _share_file(self, file_id: str) -> None:
        """Share a file as 'anyone with link can view'."""
        await self._request(
            "POST", DRIVE_PERMISSIONS_URL.format(file_id=file_id),
            json={"type": "anyone", "role": "reader"},
        )
        logger.info("Shared file %s with 'anyone with link'", file_id)

    async def find_template(self) -> str | None:
        """Id of the first Drive doc whose name contains the template name."""
        escaped = self.template_name.replace("'", "\\'")
        data = await self._request("GET", DRIVE_FILES_API, params={
            "q": f"name contains '{escaped}' and mimeType = '{DOC_MIME_TYPE}' and trashed = false",
            "fields": "files(id, name)",
            "pageSize": 10,
        })
        files = data.get("files") or []
        if files:
            logger.info("Found template: %s (%s)", files[0].get("name"), files[0]["id"])
            return files[0]["id"]
        return None

    async def _start_document(self, title: str) -> str:
        """Copy and clear the template when there is one, otherwise create a blank doc."""
        template_id = await self.find_template()
        if template_id is None:
            if self.require_template:
                raise ExternalServiceError("Peula template document not found in Google Drive")
            doc = await self._request("POST", DOCS_API, json={"title": title})
            return doc["documentId"]

        copy = await self._request("POST", f"{DRIVE_FILES_API}/{template_id}/copy", json={"name": title})
        document_id = copy["id"]
        doc = await self._request("GET", f"{DOCS_API}/{document_id}")
        content = doc.get("body", {}).get("content", [])
        end_index = content[-1].get("endIndex", 2) if content else 2
        # The final newline of a body segment can never be deleted
        if end_index - 1 > 1:
            await self._batch_update(document_id, [{
                "deleteContentRange": {"range": {"startIndex": 1, "endIndex": end_index - 1}},
            }])
        return document_id

    async def export_peula(self, peula: Peula) -> str:
        """Write a peula to a new shared Google Doc and return its URL."""
        document_id = await self._start_document(peula.title)
        rows = build_table_rows(peula)

        header = build_header_text(peula)
        await self._batch_update(document_id, [
            {"insertText": {"location": {"index": 1}, "text": header}},
            {
                "updateTextStyle": {
                    "range": {"startIndex": 1, "endIndex": 1 + len(peula.title)},
                    "textStyle": {"bold": True, "fontSize": {"magnitude": 20, "unit": "PT"}},
                    "fields": "bold,fontSize",
                },
            },
            {
                "insertTable": {
                    "rows": len(rows),
                    "columns": len(TABLE_HEADER),
                    "endOfSegmentLocation": {"segmentId": ""},
                },
            },
        ])

        doc = await self._request("GET", f"{DOCS_API}/{document_id}")
        await self._batch_update(document_id, build_table_fill_requests(doc, rows))
        await self._share_file(document_id)

        url = document_url(document_id)
        logger.info("Exported peula '%s': %s", peula.title, url,
                    extra={"operation": "export_peula", "peula_id": peula.id, "document_id": document_id})
        return url

    async def import_document(self, document_id: str) -> tuple[str, str]:
        """Return (title, plain text) of a Google Doc."""
        doc = await self._request("GET", f"{DOCS_API}/{document_id}")
        title = (doc.get("title") or "").strip() or "Untitled document"
        text = extract_document_text(doc)
        if not text:
            raise ValidationError("The Google Doc is empty", details={"documentId": document_id})
        logger.info("Imported document '%s' (%d chars)", title, len(text),
                    extra={"operation": "import_document", "document_id": document_id})
        return title, text

    async def list_documents(self, limit: int = 50) -> list[DriveFile]:
        """Google Docs in Drive, most recently modified first."""
        data = await self._request("GET", DRIVE_FILES_API, params={
            "q": f"mimeType = '{DOC_MIME_TYPE}' and trashed = false",
            "fields": "files(id, name, modifiedTime)",
            "orderBy": "modifiedTime desc",
            "pageSize": limit,
        })
        return [
            DriveFile(id=f["id"], name=f.get("name", ""), modified_time=f.get("modifiedTime", ""))
            for f in data.get("files") or []
        ]
