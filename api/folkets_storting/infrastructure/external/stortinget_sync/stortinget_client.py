"""
Cliente mínimo de la API abierta de Stortinget (data.stortinget.no/eksport).

Requisitos cubiertos:
- httpx async
- exactamente un GET por fuente y ronda (sin paginación ni reintentos)
- errores tipados: TransportError (red/status) y DecodeError (envelope)
"""

from __future__ import annotations

from typing import Any, Optional

import httpx
from loguru import logger

from folkets_storting.shared.exceptions.sync import DecodeError, TransportError

from .sync_config import SyncSource
from .types import RawRecord

DEFAULT_BASE_URL = "https://data.stortinget.no/eksport"


class StortingetClient:
    """
    Cliente HTTP de Stortinget. Expone `fetch(source)` que retorna los
    registros crudos del envelope de la fuente.

    Importante:
    - No hace cast de tipos: eso se decide en el normalizador.
    - Si se inyecta un `httpx.AsyncClient`, el caller es dueño de cerrarlo.
    """

    def __init__(
        self,
        *,
        base_url: str = DEFAULT_BASE_URL,
        timeout_s: float = 30.0,
        user_agent: str = "folkets-storting-sync/1.0",
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._timeout_s = timeout_s
        self._headers = {
            "Accept": "application/json",
            "User-Agent": user_agent,
        }
        self._client = client

    def url_for(self, source: SyncSource) -> str:
        return f"{self._base_url}/{source.endpoint.lstrip('/')}"

    async def fetch(self, source: SyncSource) -> list[RawRecord]:
        url = self.url_for(source)
        logger.debug(f"GET {url} (fuente '{source.name}')")

        if self._client is not None:
            response = await self._get(self._client, source, url)
        else:
            async with httpx.AsyncClient(timeout=self._timeout_s) as client:
                response = await self._get(client, source, url)

        return self._decode(source, response)

    async def _get(self, client: httpx.AsyncClient, source: SyncSource, url: str) -> httpx.Response:
        try:
            response = await client.get(url, headers=self._headers, timeout=self._timeout_s)
        except httpx.HTTPError as e:
            raise TransportError(
                source.name,
                f"No se pudo contactar {url}: {type(e).__name__}: {e}",
            ) from e

        if not (200 <= response.status_code < 300):
            raise TransportError(
                source.name,
                f"Stortinget respondió {response.status_code} para {url}: {response.text[:200]}",
                upstream_status=response.status_code,
            )
        return response

    def _decode(self, source: SyncSource, response: httpx.Response) -> list[RawRecord]:
        try:
            payload: Any = response.json()
        except ValueError as e:
            raise DecodeError(source.name, f"Respuesta no es JSON válido: {e}") from e

        if not isinstance(payload, dict):
            raise DecodeError(
                source.name,
                f"Se esperaba un objeto JSON, llegó {type(payload).__name__}",
            )
        if source.envelope_key not in payload:
            raise DecodeError(
                source.name,
                f"La respuesta no contiene el envelope '{source.envelope_key}'",
            )

        records = payload[source.envelope_key]
        if records is None:
            # null se trata como lista vacía.
            return []
        if not isinstance(records, list):
            raise DecodeError(
                source.name,
                f"'{source.envelope_key}' debería ser una lista, llegó {type(records).__name__}",
            )
        return records
