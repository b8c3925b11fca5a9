"""Tests for client construction and the request builder."""

import json

import httpx
import pytest

from slurmrestapi import client, errors

ENDPOINT = "http://slurmrestd.test:6820"

# ---------------------------------------------------------------------------
# Construction
# ---------------------------------------------------------------------------


@pytest.mark.parametrize(
    ("endpoint", "expected_prefix"),
    [
        ("http://localhost:6820", "http://localhost:6820/slurm/v0.0.38/"),
        ("http://localhost:6820/", "http://localhost:6820/slurm/v0.0.38/"),
        ("https://gw.example.org/api", "https://gw.example.org/api/slurm/v0.0.38/"),
        ("https://gw.example.org/api/", "https://gw.example.org/api/slurm/v0.0.38/"),
    ],
)
def test_request_urls_start_with_namespace_prefix(endpoint, expected_prefix):
    """Every request URL sits under {endpoint}/slurm/v0.0.38/."""
    slurm = client.SlurmClient("user", "token", endpoint)

    for path in ("ping", "nodes", "node/n001", "diag"):
        request = slurm.build_request("GET", path)
        assert str(request.url).startswith(expected_prefix)
        assert str(request.url) == expected_prefix + path


def test_slurmdb_client_uses_slurmdb_namespace():
    """SlurmDBClient builds URLs under slurmdb/v0.0.38/."""
    db = client.SlurmDBClient("user", "token", ENDPOINT)

    request = db.build_request("GET", "accounts")

    assert str(request.url) == f"{ENDPOINT}/slurmdb/v0.0.38/accounts"


def test_core_client_accepts_explicit_namespace():
    """The core client takes the namespace as a parameter."""
    core = client.SlurmRestApiClient(
        "user", "token", ENDPOINT, namespace=client.SLURMDB_NAMESPACE
    )

    assert str(core.base_url) == f"{ENDPOINT}/slurmdb/v0.0.38/"


def test_custom_api_version_is_used_in_prefix():
    slurm = client.SlurmClient("user", "token", ENDPOINT, api_version="v0.0.39")

    assert str(slurm.build_request("GET", "ping").url) == (
        f"{ENDPOINT}/slurm/v0.0.39/ping"
    )


@pytest.mark.parametrize(
    "endpoint",
    ["", "not a url", "localhost:6820", "ftp://host/", "http://", "/slurm"],
)
def test_invalid_endpoint_raises_configuration_error(endpoint):
    """Malformed or non-http endpoints are rejected at construction."""
    with pytest.raises(errors.ConfigurationError):
        client.SlurmClient("user", "token", endpoint)


def test_non_positive_timeout_raises_configuration_error():
    with pytest.raises(errors.ConfigurationError, match="timeout"):
        client.SlurmClient("user", "token", ENDPOINT, timeout=0)


# ---------------------------------------------------------------------------
# Headers
# ---------------------------------------------------------------------------


def test_request_carries_auth_and_content_type_headers():
    """User name and token go in lowercase x-slurm-* headers."""
    slurm = client.SlurmClient("alice", "s3cr3t", ENDPOINT)

    request = slurm.build_request("GET", "nodes")

    assert request.headers["x-slurm-user-name"] == "alice"
    assert request.headers["x-slurm-user-token"] == "s3cr3t"
    assert request.headers["content-type"] == "application/json"
    raw_names = [name for name, _ in request.headers.raw]
    assert b"x-slurm-user-name" in raw_names
    assert b"x-slurm-user-token" in raw_names


@pytest.mark.parametrize(
    ("user", "token"),
    [
        ("alice\n", "token"),
        ("alice", "tok\r\nen"),
        ("élodie", "token"),
        ("alice", "token\x00"),
    ],
)
def test_invalid_header_value_raises_request_build_error(user, token):
    """Header values with control or non-ASCII characters are rejected."""
    slurm = client.SlurmClient(user, token, ENDPOINT)

    with pytest.raises(errors.RequestBuildError):
        slurm.build_request("GET", "ping")


# ---------------------------------------------------------------------------
# Query and body
# ---------------------------------------------------------------------------


def test_query_parameters_are_appended():
    slurm = client.SlurmClient("user", "token", ENDPOINT)

    request = slurm.build_request("GET", "nodes", params={"update_time": 1700000000})

    assert request.url.path == "/slurm/v0.0.38/nodes"
    assert request.url.params["update_time"] == "1700000000"


def test_no_query_string_without_parameters():
    slurm = client.SlurmClient("user", "token", ENDPOINT)

    request = slurm.build_request("GET", "nodes")

    assert request.url.query == b""


@pytest.mark.parametrize("method", ["GET", "DELETE", "get", "delete"])
def test_get_and_delete_never_carry_a_body(method):
    """A body supplied for GET or DELETE is dropped."""
    slurm = client.SlurmClient("user", "token", ENDPOINT)

    request = slurm.build_request(method, "job/42", body={"signal": "KILL"})

    assert request.content == b""


@pytest.mark.parametrize("method", ["POST", "PUT", "PATCH"])
def test_other_methods_carry_json_body(method):
    slurm = client.SlurmClient("user", "token", ENDPOINT)

    request = slurm.build_request(method, "job/submit", body={"job": {"name": "x"}})

    assert json.loads(request.content) == {"job": {"name": "x"}}
    assert request.headers["content-type"] == "application/json"


@pytest.mark.parametrize("method", ["POST", "PUT", "PATCH"])
def test_other_methods_send_null_when_body_omitted(method):
    """Methods other than GET and DELETE always carry a JSON body."""
    slurm = client.SlurmClient("user", "token", ENDPOINT)

    request = slurm.build_request(method, "job/submit")

    assert request.content == b"null"


def test_unserializable_body_raises_request_build_error():
    slurm = client.SlurmClient("user", "token", ENDPOINT)

    with pytest.raises(errors.RequestBuildError, match="JSON serializable"):
        slurm.build_request("POST", "job/submit", body={"when": object()})


@pytest.mark.parametrize("name", [".", ".."])
def test_dot_identifiers_stay_under_resource_path(name):
    """Dot-only names are not resolved away as relative path segments."""
    slurm = client.SlurmClient("user", "token", ENDPOINT)

    request = slurm.build_request("GET", f"node/{client.path_segment(name)}")

    assert request.url.raw_path.startswith(b"/slurm/v0.0.38/node/%2E")


def test_pydantic_body_is_encoded_with_wire_aliases():
    """Models are sent in their JSON document form."""
    from slurmrestapi import types

    slurm = client.SlurmClient("user", "token", ENDPOINT)
    license_ = types.License(name="matlab", total=10)

    request = slurm.build_request("POST", "licenses", body=license_)

    sent = json.loads(request.content)
    assert sent["LicenseName"] == "matlab"
    assert sent["Total"] == 10


def test_request_building_is_idempotent():
    """Building the same request twice yields identical URL and headers."""
    slurm = client.SlurmClient("user", "token", ENDPOINT)

    first = slurm.build_request("GET", "nodes", params=[("update_time", "5")])
    second = slurm.build_request("GET", "nodes", params=[("update_time", "5")])

    assert str(first.url) == str(second.url)
    assert first.headers.raw == second.headers.raw
    assert first.content == second.content


# ---------------------------------------------------------------------------
# Path segments
# ---------------------------------------------------------------------------


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        ("teach-gpu-n0", "teach-gpu-n0"),
        ("a/b", "a%2Fb"),
        ("with space", "with%20space"),
        (42, "42"),
        (".", "%2E"),
        ("..", "%2E%2E"),
        ("...", "..."),
        ("node.local", "node.local"),
    ],
)
def test_path_segment_encoding(value, expected):
    assert client.path_segment(value) == expected


# ---------------------------------------------------------------------------
# Lifecycle
# ---------------------------------------------------------------------------


@pytest.mark.anyio
async def test_async_context_manager_closes_http_client():
    transport = httpx.MockTransport(lambda request: httpx.Response(200, json={}))

    async with client.SlurmClient("user", "token", ENDPOINT, transport=transport) as s:
        assert not s._client.is_closed

    assert s._client.is_closed


@pytest.mark.anyio
async def test_aclose_is_safe_to_call_twice():
    slurm = client.SlurmClient("user", "token", ENDPOINT)

    await slurm.aclose()
    await slurm.aclose()
