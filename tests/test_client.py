"""
Tests for OmadaV2Client: login flow, envelope handling, error mapping and
paging. HTTP is faked by patching requests.Session.request.
"""

from unittest.mock import MagicMock, patch

import pytest
import requests

from OmadaDns.client import OmadaV2Client
from OmadaDns.errors import ApiError, AuthenticationError, NotFoundError


def _resp(payload=None, status=200, text="{}"):
    resp = MagicMock()
    resp.status_code = status
    resp.text = text
    if isinstance(payload, Exception):
        resp.json.side_effect = payload
    else:
        resp.json.return_value = payload
    return resp


def _ok(result):
    return _resp({"errorCode": 0, "msg": "Success.", "result": result})


def _logged_in_client(**kwargs):
    client = OmadaV2Client("https://omada.example:8043/", "dns", "secret", **kwargs)
    client.controller_id = "cid123"
    client._token = "tok"
    client.set_site("site-default")
    return client


class TestLogin:
    def test_login_flow(self):
        client = OmadaV2Client("omada.example:8043", "dns", "secret")
        with patch.object(requests.Session, "request") as mock_req:
            mock_req.side_effect = [_ok({"omadacId": "cid123"}), _ok({"token": "tok"})]
            client.login()

        assert client.url == "https://omada.example:8043"
        assert client.controller_id == "cid123"
        info_call, login_call = mock_req.call_args_list
        assert info_call.kwargs["url"] == "https://omada.example:8043/api/info"
        assert login_call.kwargs["url"] == "https://omada.example:8043/cid123/api/v2/login"
        assert login_call.kwargs["json"] == {"username": "dns", "password": "secret"}
        assert "Csrf-Token" not in login_call.kwargs["headers"]

    def test_token_sent_on_later_calls(self):
        client = _logged_in_client()
        with patch.object(requests.Session, "request") as mock_req:
            mock_req.return_value = _ok({"privilege": {"sites": [{"key": "site-default", "name": "Default"}]}})
            sites = client.get_sites()

        assert sites == [{"key": "site-default", "name": "Default"}]
        kwargs = mock_req.call_args.kwargs
        assert kwargs["headers"]["Csrf-Token"] == "tok"
        assert kwargs["url"] == "https://omada.example:8043/cid123/api/v2/users/current"
        assert kwargs["timeout"] == 10.0

    def test_login_rejected(self):
        client = OmadaV2Client("https://omada.example", "dns", "wrong")
        client.controller_id = "cid123"
        with patch.object(requests.Session, "request") as mock_req:
            mock_req.return_value = _resp({"errorCode": -30109, "msg": "Invalid username or password."})
            with pytest.raises(AuthenticationError) as exc_info:
                client.login()
        assert exc_info.value.details.error_code == -30109

    def test_login_without_token(self):
        client = OmadaV2Client("https://omada.example", "dns", "secret")
        client.controller_id = "cid123"
        with patch.object(requests.Session, "request") as mock_req:
            mock_req.return_value = _ok({})
            with pytest.raises(AuthenticationError):
                client.login()

    def test_logout_forgets_token(self):
        client = _logged_in_client()
        client.logout()
        assert client._token is None


class TestErrors:
    def test_transport_error_wrapped(self):
        client = _logged_in_client()
        with patch.object(requests.Session, "request", side_effect=requests.ConnectionError("refused")):
            with pytest.raises(ApiError) as exc_info:
                client.get_devices()
        assert isinstance(exc_info.value.__cause__, requests.ConnectionError)
        assert exc_info.value.details.method == "GET"

    def test_http_404(self):
        client = _logged_in_client()
        with patch.object(requests.Session, "request", return_value=_resp({"msg": "nope"}, status=404)):
            with pytest.raises(NotFoundError):
                client.get_networks()

    def test_http_401(self):
        client = _logged_in_client()
        with patch.object(requests.Session, "request", return_value=_resp(ValueError("no json"), status=401, text="denied")):
            with pytest.raises(AuthenticationError) as exc_info:
                client.get_clients()
        assert exc_info.value.details.detail == "denied"

    def test_session_expired_error_code(self):
        client = _logged_in_client()
        with patch.object(requests.Session, "request", return_value=_resp({"errorCode": -1200, "msg": "expired"})):
            with pytest.raises(AuthenticationError):
                client.get_clients()

    def test_other_error_code(self):
        client = _logged_in_client()
        with patch.object(requests.Session, "request", return_value=_resp({"errorCode": -1001, "msg": "bad"})):
            with pytest.raises(ApiError) as exc_info:
                client.get_devices()
        assert not isinstance(exc_info.value, AuthenticationError)

    def test_non_json_body(self):
        client = _logged_in_client()
        with patch.object(requests.Session, "request", return_value=_resp(ValueError("html"), text="<html>")):
            with pytest.raises(ApiError):
                client.get_devices()

    def test_site_required(self):
        client = _logged_in_client()
        client.site = None
        with pytest.raises(ApiError):
            client.get_devices()


class TestInventory:
    def test_paged_clients(self):
        client = _logged_in_client(page_size=2)
        pages = [
            _ok({"totalRows": 3, "currentPage": 1, "data": [{"mac": "a"}, {"mac": "b"}]}),
            _ok({"totalRows": 3, "currentPage": 2, "data": [{"mac": "c"}]}),
        ]
        with patch.object(requests.Session, "request", side_effect=pages) as mock_req:
            clients = client.get_clients()

        assert [c["mac"] for c in clients] == ["a", "b", "c"]
        assert mock_req.call_count == 2
        second = mock_req.call_args_list[1].kwargs
        assert second["url"].endswith("/cid123/api/v2/sites/site-default/clients")
        assert second["params"] == {"currentPage": 2, "currentPageSize": 2}

    def test_paging_stops_on_empty_page(self):
        client = _logged_in_client(page_size=2)
        pages = [
            _ok({"totalRows": 10, "data": [{"mac": "a"}]}),
            _ok({"totalRows": 10, "data": []}),
        ]
        with patch.object(requests.Session, "request", side_effect=pages):
            assert len(client.get_dhcp_reservations()) == 1

    def test_devices_list_result(self):
        client = _logged_in_client()
        with patch.object(requests.Session, "request", return_value=_ok([{"name": "ER605"}])) as mock_req:
            assert client.get_devices() == [{"name": "ER605"}]
        assert mock_req.call_args.kwargs["url"].endswith("/sites/site-default/devices")

    def test_networks_path(self):
        client = _logged_in_client()
        with patch.object(requests.Session, "request", return_value=_ok({"totalRows": 0, "data": []})) as mock_req:
            assert client.get_networks() == []
        assert mock_req.call_args.kwargs["url"].endswith("/sites/site-default/setting/lan/networks")
