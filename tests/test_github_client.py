"""Tests for the GitHub hosting client."""

import json

import httpx
import pytest

from podtrunk.config import Settings
from podtrunk.errors.exceptions import HostingAPIError
from podtrunk.integrations.github import GitHubClient, GitHubConfig, sanitize_branch_name

BASE = "https://api.github.com/repos/CocoaPods/Specs"


def _client(handler, **config) -> GitHubClient:
    cfg = GitHubConfig(repo="CocoaPods/Specs", **config)
    return GitHubClient(cfg, transport=httpx.MockTransport(handler))


class Recorder:
    """MockTransport handler that records requests and returns canned JSON."""

    def __init__(self, status_code: int = 200, body: dict | None = None):
        self.status_code = status_code
        self.body = body or {}
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return httpx.Response(self.status_code, json=self.body)

    @property
    def last_json(self) -> dict:
        return json.loads(self.requests[-1].content)


def test_url_for():
    client = GitHubClient(GitHubConfig(repo="CocoaPods/Specs"))
    assert client.url_for("git/refs/heads/master") == f"{BASE}/git/refs/heads/master"


def test_config_from_settings():
    s = Settings(
        github_repo="example/Index",
        github_base_branch="main",
        github_token="tok",
        hosting_timeout_seconds=3,
    )
    cfg = GitHubConfig.from_settings(s)
    assert cfg.repo == "example/Index"
    assert cfg.base_branch == "main"
    assert cfg.token == "tok"
    assert cfg.timeout == 3


async def test_fetch_branch_head():
    handler = Recorder(body={"object": {"sha": "632671a3f28771a3631119354731dba03963a276"}})
    sha = await _client(handler).fetch_branch_head("master")
    assert sha == "632671a3f28771a3631119354731dba03963a276"
    assert str(handler.requests[0].url) == f"{BASE}/git/refs/heads/master"
    assert handler.requests[0].method == "GET"


async def test_fetch_tree():
    handler = Recorder(body={"sha": "632671a", "tree": {"sha": "f93e3a1a1525fb5b91020da86e44810c87a2d7bc"}})
    sha = await _client(handler).fetch_tree("632671a")
    assert sha == "f93e3a1a1525fb5b91020da86e44810c87a2d7bc"
    assert str(handler.requests[0].url) == f"{BASE}/git/commits/632671a"


async def test_create_tree_sends_single_blob():
    handler = Recorder(status_code=201, body={"sha": "tree123"})
    sha = await _client(handler).create_tree("base456", "A/1.0/A.podspec.json", "{}")
    assert sha == "tree123"
    assert handler.last_json == {
        "base_tree": "base456",
        "tree": [{"path": "A/1.0/A.podspec.json", "mode": "100644", "type": "blob", "content": "{}"}],
    }


async def test_create_commit_has_single_parent():
    handler = Recorder(status_code=201, body={"sha": "commit789"})
    sha = await _client(handler).create_commit("tree123", "parent000", "[Add] A 1.0")
    assert sha == "commit789"
    assert handler.last_json == {"message": "[Add] A 1.0", "tree": "tree123", "parents": ["parent000"]}


async def test_create_branch_returns_ref():
    handler = Recorder(status_code=201, body={"ref": "refs/heads/A-1.0-job-1"})
    ref = await _client(handler).create_branch("A-1.0-job-1", "commit789")
    assert ref == "refs/heads/A-1.0-job-1"
    assert handler.last_json == {"ref": "refs/heads/A-1.0-job-1", "sha": "commit789"}


async def test_create_pull_request_targets_base_branch():
    handler = Recorder(status_code=201, body={"number": 17})
    number = await _client(handler, base_branch="main").create_pull_request(
        "[Add] A 1.0", "https://trunk.example.org/pods/A/versions/1.0", "refs/heads/A-1.0-job-1"
    )
    assert number == 17
    assert handler.last_json["base"] == "main"
    assert handler.last_json["head"] == "refs/heads/A-1.0-job-1"


async def test_merge_pull_request():
    handler = Recorder(body={"sha": "merge111", "merged": True})
    sha = await _client(handler).merge_pull_request(17)
    assert sha == "merge111"
    assert handler.requests[0].method == "PUT"
    assert str(handler.requests[0].url) == f"{BASE}/pulls/17/merge"


async def test_bearer_token_header():
    handler = Recorder(body={"object": {"sha": "abc"}})
    await _client(handler, token="secret").fetch_branch_head("master")
    assert handler.requests[0].headers["Authorization"] == "Bearer secret"


async def test_basic_auth_with_username():
    handler = Recorder(body={"object": {"sha": "abc"}})
    await _client(handler, username="bot", token="secret").fetch_branch_head("master")
    assert handler.requests[0].headers["Authorization"].startswith("Basic ")


async def test_error_status_raises():
    handler = Recorder(status_code=401, body={"message": "Bad credentials"})
    with pytest.raises(HostingAPIError) as exc_info:
        await _client(handler).fetch_branch_head("master")
    assert exc_info.value.http_status == 401


async def test_transport_error_raises():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(HostingAPIError):
        await _client(handler).fetch_tree("abc")


async def test_missing_field_raises():
    handler = Recorder(body={"unexpected": True})
    with pytest.raises(HostingAPIError):
        await _client(handler).merge_pull_request(3)


@pytest.mark.parametrize(
    "raw,expected",
    [
        ("AFNetworking-1.2.0-job-job_ab12", "AFNetworking-1.2.0-job-job_ab12"),
        ("My Pod-1.0-job-1", "My-Pod-1.0-job-1"),
        ("Pod..Name-1.0", "Pod.Name-1.0"),
        ("Pod~^:?*[-1.0", "Pod--1.0"),
        (".hidden-1.0.lock", "hidden-1.0"),
        ("Pod@{1}-1.0", "Pod-1}-1.0"),
    ],
)
def test_sanitize_branch_name(raw, expected):
    assert sanitize_branch_name(raw) == expected


def test_sanitize_branch_name_rejects_empty():
    with pytest.raises(ValueError):
        sanitize_branch_name("..")
