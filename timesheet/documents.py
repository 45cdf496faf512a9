"""
Signed timesheet document generation.
The approval workflow only depends on the ``DocumentGenerator`` protocol;
``HttpDocumentGenerator`` talks to the rendering service over HTTP.
"""
from __future__ import annotations
from typing import Optional, Protocol

import httpx
from fastapi import Request

from core.config_loader import settings


class DocumentGenerationError(Exception):
    """Raised when a signed document could not be produced."""


class DocumentGenerator(Protocol):
    def generate_signed(self, timesheet_id: int, signature: str) -> str:
        ...


class HttpDocumentGenerator:
    """Posts the signature to the document service and returns the stored file URL"""

    def __init__(self, base_url: Optional[str] = None, timeout: Optional[float] = None):
        self.base_url = base_url if base_url is not None else settings.DOCUMENT_SERVICE_URL
        self.timeout = timeout if timeout is not None else settings.DOCUMENT_SERVICE_TIMEOUT

    def generate_signed(self, timesheet_id: int, signature: str) -> str:
        if not self.base_url:
            raise DocumentGenerationError("document service is not configured")

        url = f"{self.base_url.rstrip('/')}/timesheets/{timesheet_id}/signed"
        try:
            with httpx.Client(timeout=self.timeout) as client:
                response = client.post(url, json={"signature": signature})
                response.raise_for_status()
                payload = response.json()
        except httpx.HTTPStatusError as e:
            raise DocumentGenerationError(f"document service returned {e.response.status_code}") from e
        except httpx.HTTPError as e:
            raise DocumentGenerationError(f"document service unreachable: {e}") from e
        except ValueError as e:
            raise DocumentGenerationError("document service returned invalid JSON") from e

        pdf_url = payload.get("url") if isinstance(payload, dict) else None
        if not pdf_url:
            raise DocumentGenerationError("document service response has no url")
        return pdf_url


def get_document_generator(request: Request) -> DocumentGenerator:
    return getattr(request.app.state, "document_generator", None) or HttpDocumentGenerator()
