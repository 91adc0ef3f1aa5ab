"""End-to-end tests performing requests through a mock transport."""

import json
import logging

import httpx
import pytest

import httpchain as hc
from httpchain import TYPE_JSON, Cli, Ctx, Err, Res, TransportError
from httpchain import client as client_module
from httpchain.client import get_default_client, new_client


def echo(request: httpx.Request) -> httpx.Response:
    return httpx.Response(
        200,
        json={
            "method": request.method,
            "path": request.url.path,
            "query": request.url.query.decode(),
            "body": request.content.decode(),
        },
    )


def test_post_json_end_to_end(make_client, seen):
    """
    Scenario: POST a JSON body
    Given a request built with post, path and json
    When it is performed
    Then the server sees the method, path, content type and exact body
    """
    client = make_client(echo)
    res = client.req().post().path("/submit").json({"inputVal": "x"}).res()

    assert isinstance(res, Res)
    assert res.is_ok()
    assert res.is_json()
    assert res.json() == {
        "method": "POST",
        "path": "/submit",
        "query": "",
        "body": '{"inputVal":"x"}',
    }

    sent = seen[0]
    assert sent.headers["content-type"] == TYPE_JSON
    assert sent.headers["content-length"] == "16"


def test_get_with_query_and_headers(make_client, seen):
    client = make_client(echo)
    req = hc.get().path("/items", 7).query({"page": "2"}).head_set("x-request-id", "abc")
    res = client.do(req)

    assert res.json()["query"] == "page=2"
    assert seen[0].url.path == "/items/7"
    assert seen[0].headers["x-request-id"] == "abc"
    assert res.request is req


def test_unset_method_is_sent_as_get(make_client, seen):
    client = make_client(echo)
    client.req().path("/").res().done()
    assert seen[0].method == "GET"


def test_response_headers_are_canonicalized(make_client):
    def handler(request):
        return httpx.Response(204, headers=[("x-tag", "1"), ("x-tag", "2")])

    res = make_client(handler).req().res().done()
    assert res.status_code == 204
    assert res.header.values("X-Tag") == ["1", "2"]


def test_non_ok_response_becomes_err(make_client):
    def handler(request):
        return httpx.Response(404, text="not found")

    res = make_client(handler).req().path("/missing").res()
    with pytest.raises(Err) as exc_info:
        res.ok()

    assert exc_info.value.status == 404
    assert "not found" in str(exc_info.value)
    assert res.body.response.is_closed


def test_transport_failure_is_wrapped(make_client, caplog):
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    client = make_client(handler)
    with caplog.at_level(logging.WARNING, logger="httpchain"):
        res, err = client.do_catch(client.req().path("/"))

    assert res is None
    assert isinstance(err, TransportError)
    assert "connection refused" in str(err)
    assert isinstance(err.__cause__, httpx.ConnectError)
    assert any(
        isinstance(record.msg, dict) and record.msg.get("event") == "request.failed"
        for record in caplog.records
    )


def test_cancelled_context_is_not_sent(make_client, seen):
    ctx = Ctx()
    ctx.cancel()
    client = make_client(echo)

    with pytest.raises(TransportError, match="context cancelled"):
        client.req().ctx(ctx).res()
    assert seen == []


def test_expired_context_is_not_sent(make_client, seen):
    ctx = Ctx().with_timeout(-1)
    res, err = make_client(echo).req().ctx(ctx).res_catch()

    assert res is None
    assert "context deadline exceeded" in str(err)
    assert seen == []


def test_cli_res_uses_given_client(make_client, seen):
    client = make_client(echo)
    res = hc.post().path("/x").text("abc").cli_res(client)
    assert res.json()["body"] == "abc"
    assert len(seen) == 1


def test_res_without_client_uses_default(make_client, monkeypatch, seen):
    monkeypatch.setattr(client_module, "_DEFAULT_CLIENT", make_client(echo))
    res = hc.path("/default").res()
    assert res.json()["path"] == "/default"
    assert seen[0].url.host == "test"


def test_default_client_is_shared_and_recreated(monkeypatch):
    monkeypatch.setattr(client_module, "_DEFAULT_CLIENT", None)
    first = get_default_client()
    assert get_default_client() is first

    first.close()
    second = get_default_client()
    assert second is not first
    second.close()


def test_new_client_uses_settings(mocker):
    mocker.patch.object(client_module.settings, "user_agent", "agent/1.0")
    mocker.patch.object(client_module.settings, "timeout", 3.0)

    client = new_client()
    assert isinstance(client, Cli)
    assert client.headers["user-agent"] == "agent/1.0"
    assert client.timeout.read == 3.0
    assert client.follow_redirects is True
    client.close()

    client = new_client(timeout=1.0, follow_redirects=False)
    assert client.timeout.read == 1.0
    assert client.follow_redirects is False
    client.close()


def test_body_survives_redirect(make_client, seen):
    def handler(request):
        if request.url.path == "/old":
            return httpx.Response(307, headers={"Location": "/new"})
        return echo(request)

    client = make_client(handler)
    client.follow_redirects = True
    res = client.req().post().path("/old").json({"one": 1}).res()

    assert json.loads(res.json()["body"]) == {"one": 1}
    assert [request.url.path for request in seen] == ["/old", "/new"]
