from __future__ import annotations
import json
import sys
from typing import Dict, List, Optional, Any
import requests
from .errors import ApiError, ApiErrorDetails, AuthenticationError, map_http_error

class OmadaV2Client:
    """
    Low-level client for the Omada controller web API (v2).
    - Raw dicts in/out
    - Raises typed ApiError subclasses on HTTP errors and non-zero errorCode
    - One site is selected at a time; site-scoped calls use it
    """

    def __init__(
        self,
        url: str,
        username: str,
        password: str,
        *,
        verify: bool = True,
        timeout: float = 10.0,
        debug: bool = False,
        page_size: int = 1000,
    ) -> None:
        if not url.startswith("http"):
            url = "https://" + url
        self.url = url.rstrip("/")
        self.username = username
        self.password = password
        self.timeout = timeout
        self.debug = debug
        self.page_size = page_size

        self.session = requests.Session()
        self.session.verify = verify
        self.session.headers.update({"Accept": "application/json"})

        self.controller_id: Optional[str] = None
        self.site: Optional[str] = None
        self._token: Optional[str] = None

    # ---------------- HTTP ----------------

    def _request(
        self,
        method: str,
        path: str,
        *,
        params: Optional[Dict[str, Any]] = None,
        json_body: Optional[Dict[str, Any]] = None,
    ) -> Any:
        url = f"{self.url}/{path.lstrip('/')}"
        headers: Dict[str, str] = {}
        if self._token:
            headers["Csrf-Token"] = self._token
        if json_body is not None:
            headers["Content-Type"] = "application/json"

        if self.debug:
            print(f"[DEBUG] HTTP {method.upper()} {url}", file=sys.stderr)
            if params:
                print(f"[DEBUG]   params = {params}", file=sys.stderr)
            if json_body is not None:
                shown = {k: ("***" if k == "password" else v) for k, v in json_body.items()}
                print(f"[DEBUG]   json   = {json.dumps(shown, ensure_ascii=False)}", file=sys.stderr)

        try:
            resp = self.session.request(
                method=method.upper(),
                url=url,
                params=params,
                json=json_body,
                headers=headers,
                timeout=self.timeout,
            )
        except requests.RequestException as exc:
            raise ApiError(
                f"{method.upper()} {url} failed: {exc}",
                details=ApiErrorDetails(url=url, method=method.upper()),
            ) from exc

        if self.debug:
            body_preview = (resp.text or "")[:500].replace("\n", "\\n")
            print(f"[DEBUG]   status = {resp.status_code}, body = {body_preview!r}", file=sys.stderr)

        if resp.status_code >= 400:
            try:
                detail: Any = resp.json()
            except ValueError:
                detail = resp.text.strip() or None
            exc_cls = map_http_error(status=resp.status_code)
            raise exc_cls(
                f"{method.upper()} {url} failed with {resp.status_code}: {detail}",
                details=ApiErrorDetails(status=resp.status_code, detail=detail, url=url, method=method.upper()),
            )

        try:
            payload = resp.json()
        except ValueError as exc:
            raise ApiError(
                f"{method.upper()} {url} returned a non-JSON body",
                details=ApiErrorDetails(status=resp.status_code, detail=resp.text[:200], url=url, method=method.upper()),
            ) from exc

        if not isinstance(payload, dict):
            raise ApiError(f"{method.upper()} {url} returned unexpected payload: {payload!r}")

        error_code = payload.get("errorCode", 0)
        if error_code:
            message = payload.get("msg")
            exc_cls = map_http_error(status=resp.status_code, error_code=error_code)
            raise exc_cls(
                f"{method.upper()} {url} failed with errorCode {error_code}: {message}",
                details=ApiErrorDetails(
                    status=resp.status_code,
                    error_code=error_code,
                    message=message,
                    url=url,
                    method=method.upper(),
                ),
            )
        return payload.get("result")

    def _get(self, path: str, params: Optional[Dict[str, Any]] = None) -> Any:
        return self._request("GET", path, params=params)

    def _post(self, path: str, *, params=None, json_body=None) -> Any:
        return self._request("POST", path, params=params, json_body=json_body)

    def _api_path(self, path: str) -> str:
        if not self.controller_id:
            raise ApiError("controller id unknown (call login() first)")
        return f"{self.controller_id}/api/v2/{path.lstrip('/')}"

    def _site_path(self, path: str) -> str:
        if not self.site:
            raise ApiError("no site selected (call set_site() first)")
        return self._api_path(f"sites/{self.site}/{path.lstrip('/')}")

    # ---------------- Auth ----------------

    def get_controller_id(self) -> str:
        result = self._get("api/info") or {}
        cid = result.get("omadacId")
        if not cid:
            raise ApiError("controller info response missing omadacId")
        return str(cid)

    def login(self) -> None:
        if not self.controller_id:
            self.controller_id = self.get_controller_id()
        self._token = None
        result = self._post(
            self._api_path("login"),
            json_body={"username": self.username, "password": self.password},
        ) or {}
        token = result.get("token")
        if not token:
            raise AuthenticationError("Login response missing token")
        self._token = str(token)

    def logout(self) -> None:
        self._token = None
        self.session.cookies.clear()

    # ---------------- Helpers ----------------

    @staticmethod
    def _extract_collection(payload) -> List[Dict[str, Any]]:
        if isinstance(payload, dict) and "data" in payload:
            return payload.get("data", []) or []
        if isinstance(payload, list):
            return payload
        return []

    def _get_paged(self, path: str) -> List[Dict[str, Any]]:
        items: List[Dict[str, Any]] = []
        page = 1
        while True:
            result = self._get(path, params={"currentPage": page, "currentPageSize": self.page_size})
            batch = self._extract_collection(result)
            items.extend(batch)
            total = result.get("totalRows") if isinstance(result, dict) else None
            if not batch or total is None or len(items) >= int(total):
                return items
            page += 1

    # ---------------- Sites ----------------

    def get_sites(self) -> List[Dict[str, Any]]:
        result = self._get(self._api_path("users/current")) or {}
        privilege = result.get("privilege") or {}
        return list(privilege.get("sites") or [])

    def set_site(self, site_id: str) -> None:
        self.site = site_id

    # ---------------- Inventory ----------------

    def get_networks(self) -> List[Dict[str, Any]]:
        return self._get_paged(self._site_path("setting/lan/networks"))

    def get_clients(self) -> List[Dict[str, Any]]:
        return self._get_paged(self._site_path("clients"))

    def get_devices(self) -> List[Dict[str, Any]]:
        return self._extract_collection(self._get(self._site_path("devices")))

    def get_dhcp_reservations(self) -> List[Dict[str, Any]]:
        return self._get_paged(self._site_path("setting/service/dhcp"))
