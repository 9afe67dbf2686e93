"""
Cliente HTTP mínimo de la API REST de Open Dental.

Cubre:
- requests con sesión reutilizable
- header Authorization "<scheme> <developer key>/<customer key>"
- paginación por Offset
- rate-limit/backoff (429, 5xx, errores de red)
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional

import requests
from loguru import logger

from pms_sync.shared.exceptions.sync import PmsApiException


@dataclass(frozen=True)
class OpenDentalCredentials:
    developer_key: str
    customer_key: str
    auth_scheme: str = "ODFHIR"

    @property
    def is_complete(self) -> bool:
        return bool(self.developer_key and self.customer_key)

    def authorization(self) -> str:
        return f"{self.auth_scheme} {self.developer_key}/{self.customer_key}"


class OpenDentalClient:
    """
    Cliente HTTP síncrono de Open Dental.

    Importante:
    - No interpreta el contenido: devuelve JSON crudo, el mapeo vive en mappers.
    - Nunca devuelve datos de relleno: cualquier fallo termina en PmsApiException.
    """

    def __init__(
        self,
        credentials: OpenDentalCredentials,
        *,
        session: Optional[requests.Session] = None,
        base_url: str = "https://api.opendental.com/api/v1",
        timeout_s: int = 30,
        max_retries: int = 4,
        page_size: int = 100,
        min_backoff_s: float = 0.8,
        max_backoff_s: float = 20.0,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._creds = credentials
        self._base_url = base_url.rstrip("/")
        self._timeout_s = timeout_s
        self._max_retries = max_retries
        self._page_size = page_size
        self._min_backoff_s = min_backoff_s
        self._max_backoff_s = max_backoff_s
        self._sleep = sleep
        self._session = session or requests.Session()

    def get_list(self, endpoint: str, params: Optional[Dict[str, Any]] = None) -> List[Dict[str, Any]]:
        """
        GET paginado. Pide páginas con Offset hasta recibir una página corta.
        """
        items: List[Dict[str, Any]] = []
        offset = 0

        while True:
            query = dict(params or {})
            if offset:
                query["Offset"] = offset
            page = self._request_json("GET", endpoint, params=query)
            if not isinstance(page, list):
                raise PmsApiException(
                    f"Respuesta inesperada de Open Dental (se esperaba lista): {type(page).__name__}",
                    endpoint=endpoint,
                )
            items.extend(page)
            if len(page) < self._page_size:
                break
            offset += len(page)

        logger.debug(f"[open-dental] GET {endpoint} -> {len(items)} registros")
        return items

    def get_json(self, endpoint: str, params: Optional[Dict[str, Any]] = None) -> Any:
        """GET sin paginación."""
        return self._request_json("GET", endpoint, params=params)

    def post_json(self, endpoint: str, body: Dict[str, Any]) -> Any:
        return self._request_json("POST", endpoint, json=body)

    def _backoff(self, attempt: int, retry_after: Optional[str]) -> float:
        if retry_after:
            try:
                return float(retry_after)
            except ValueError:
                return self._min_backoff_s
        # Exponencial simple + jitter proporcional
        base = min(self._max_backoff_s, self._min_backoff_s * (2 ** attempt))
        return base + (0.15 * base)

    def _request_json(
        self,
        method: str,
        endpoint: str,
        *,
        params: Optional[Dict[str, Any]] = None,
        json: Optional[Dict[str, Any]] = None,
    ) -> Any:
        """
        Request HTTP con backoff.

        Estrategia:
        - 429: respeta Retry-After si existe, si no exponencial.
        - 5xx y errores de red: exponencial.
        - 4xx (no 429): error inmediato (credenciales o request mal formada).
        """
        url = f"{self._base_url}{endpoint}"
        headers = {
            "Authorization": self._creds.authorization(),
            "Content-Type": "application/json",
        }

        for attempt in range(self._max_retries + 1):
            try:
                resp = self._session.request(
                    method=method,
                    url=url,
                    params=params or None,
                    json=json,
                    headers=headers,
                    timeout=self._timeout_s,
                )
            except requests.RequestException as e:
                if attempt >= self._max_retries:
                    raise PmsApiException(
                        f"Open Dental inalcanzable tras {attempt} reintentos: {e}", endpoint=endpoint
                    ) from e
                sleep_s = self._backoff(attempt, None)
                logger.warning(f"[open-dental] Error de red en {endpoint}, reintento en {sleep_s:.1f}s: {e}")
                self._sleep(sleep_s)
                continue

            if 200 <= resp.status_code < 300:
                if not resp.content:
                    return None
                return resp.json()

            # Errores recuperables
            if resp.status_code == 429 or 500 <= resp.status_code < 600:
                if attempt >= self._max_retries:
                    raise PmsApiException(
                        f"Open Dental error {resp.status_code} tras {attempt} reintentos: {resp.text}",
                        endpoint=endpoint,
                        http_status=resp.status_code,
                    )
                sleep_s = self._backoff(attempt, resp.headers.get("Retry-After"))
                logger.warning(
                    f"[open-dental] {resp.status_code} en {endpoint}, reintento en {sleep_s:.1f}s"
                )
                self._sleep(sleep_s)
                continue

            # Errores no recuperables
            raise PmsApiException(
                f"Open Dental request falló {resp.status_code}: {resp.text}",
                endpoint=endpoint,
                http_status=resp.status_code,
            )

        raise PmsApiException("Open Dental: reintentos agotados", endpoint=endpoint)
