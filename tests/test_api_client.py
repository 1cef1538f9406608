"""Tests for the HTTP API client, with the requests session mocked."""
from unittest.mock import MagicMock

import pytest
import requests
from urllib3.exceptions import MaxRetryError, NewConnectionError

from plotsync.api_client import ApiClient, SubmitResult
from plotsync.queue.models import ImageType, PendingAction, PendingImageUpload


def _response(status_code, json_data=None, text="", headers=None):
    response = MagicMock()
    response.status_code = status_code
    response.text = text
    response.headers = headers or {}
    if json_data is None:
        response.json.side_effect = ValueError("no json")
    else:
        response.json.return_value = json_data
    return response


@pytest.fixture
def client(mocker):
    mocker.patch("plotsync.api_client.time.sleep")
    api = ApiClient(base_url="https://api.example.org/v1/", token="secret", timeout=5, connect_retries=2)
    api.session = MagicMock(headers=api.session.headers)
    return api


ACTION = PendingAction(body={"plotCode": "P01", "dbh": 21.4}, description="Update DBH")
IMAGE = PendingImageUpload("P01", ImageType.HEALTH, "data:image/jpeg;base64,Zm9v")


def test_auth_header_set():
    api = ApiClient(base_url="https://api.example.org", token="secret")
    assert api.session.headers["Authorization"] == "Bearer secret"


def test_submit_action_posts_body(client):
    client.session.post.return_value = _response(201, {"ok": True})

    result = client.submit_action(ACTION)

    assert result == SubmitResult(success=True, status_code=201, response={"ok": True})
    client.session.post.assert_called_once_with(
        "https://api.example.org/v1/actions", json={"plotCode": "P01", "dbh": 21.4}, timeout=5
    )


def test_upload_image_posts_record_unchanged(client):
    client.session.post.return_value = _response(200)

    result = client.upload_image(IMAGE)

    assert result.success
    assert result.response is None
    url = client.session.post.call_args.args[0]
    body = client.session.post.call_args.kwargs["json"]
    assert url == "https://api.example.org/v1/images"
    assert body == {"plotCode": "P01", "type": "health", "base64Data": "data:image/jpeg;base64,Zm9v"}


def test_submit_dispatches_on_payload_type(client):
    client.session.post.return_value = _response(200, {})
    client.submit(IMAGE)
    client.submit(ACTION)
    urls = [c.args[0] for c in client.session.post.call_args_list]
    assert urls == ["https://api.example.org/v1/images", "https://api.example.org/v1/actions"]


def test_submit_rejects_unknown_payload(client):
    with pytest.raises(TypeError):
        client.submit({"raw": "dict"})


@pytest.mark.parametrize("status", [400, 401, 404, 500, 503])
def test_error_status_is_failure(client, status):
    client.session.post.return_value = _response(status, text="nope")
    result = client.submit_action(ACTION)
    assert not result.success
    assert result.status_code == status
    assert result.error == f"HTTP {status}: nope"
    assert client.session.post.call_count == 1


def test_rate_limit_is_failure_with_retry_after(client):
    client.session.post.return_value = _response(429, headers={"Retry-After": "30"})
    result = client.submit_action(ACTION)
    assert not result.success
    assert "Retry-After: 30" in result.error


def test_read_timeout_is_failure_without_retry(client):
    client.session.post.side_effect = requests.exceptions.ReadTimeout("slow")
    result = client.submit_action(ACTION)
    assert not result.success
    assert result.error.startswith("Timeout")
    assert client.session.post.call_count == 1


def test_connection_reset_is_failure_without_retry(client):
    client.session.post.side_effect = requests.exceptions.ConnectionError("reset")
    result = client.submit_action(ACTION)
    assert not result.success
    assert client.session.post.call_count == 1


def test_connect_timeout_is_retried(client):
    client.session.post.side_effect = [
        requests.exceptions.ConnectTimeout("no route"),
        _response(200, {"id": 9}),
    ]
    result = client.submit_action(ACTION)
    assert result.success
    assert client.session.post.call_count == 2


def test_connect_timeout_gives_up(client):
    client.session.post.side_effect = requests.exceptions.ConnectTimeout("no route")
    result = client.submit_action(ACTION)
    assert not result.success
    assert result.error.startswith("Connection error")
    assert client.session.post.call_count == 3


def _refused():
    reason = NewConnectionError(None, "Failed to establish a new connection: [Errno 111] Connection refused")
    return requests.exceptions.ConnectionError(MaxRetryError(None, "/v1/actions", reason=reason))


def test_refused_connection_is_retried(client):
    client.session.post.side_effect = [_refused(), _response(200, {"id": 9})]
    result = client.submit_action(ACTION)
    assert result.success
    assert client.session.post.call_count == 2


def test_refused_connection_gives_up(client):
    client.session.post.side_effect = _refused()
    result = client.submit_action(ACTION)
    assert not result.success
    assert result.error.startswith("Connection error")
    assert client.session.post.call_count == 3


def test_is_reachable(client):
    client.session.get.return_value = _response(200)
    assert client.is_reachable()
    client.session.get.assert_called_once_with("https://api.example.org/v1/health", timeout=5)


def test_is_reachable_false_on_server_error(client):
    client.session.get.return_value = _response(502)
    assert not client.is_reachable()


def test_is_reachable_false_when_offline(client):
    client.session.get.side_effect = requests.exceptions.ConnectionError("offline")
    assert not client.is_reachable()
