"""
Shared fixtures: an in-memory Bitbucket Server served through httpx.MockTransport.
"""

import json
import re
from dataclasses import dataclass, field
from typing import Any
from urllib.parse import unquote

import httpx
import pytest

from bitbucket_server_provider.resources.repository import RepositoryResource
from bitbucket_server_provider.services.bitbucket_client import BitbucketClient

BASE_URL = "https://bitbucket.example.com"

_REPO_PATH = re.compile(r"^/rest/api/1\.0/projects/([^/]+)/repos/([^/]+)$")


def _errors(status: int, message: str) -> httpx.Response:
    return httpx.Response(status, json={"errors": [{"message": message}]})


@dataclass
class FakeBitbucket:
    """Just enough of the repository endpoints to drive the resource."""

    repos: dict[tuple[str, str], dict[str, Any]] = field(default_factory=dict)
    requests: list[httpx.Request] = field(default_factory=list)

    def add_repo(
        self,
        project_key: str,
        slug: str,
        name: str | None = None,
        description: str = "",
        public: bool = True,
        forkable: bool = False,
        clone: list[dict[str, str]] | None = None,
    ) -> dict[str, Any]:
        if clone is None:
            clone = [
                {"href": f"{BASE_URL}/scm/{project_key.lower()}/{slug}.git", "name": "https"},
                {"href": f"ssh://git@bitbucket.example.com:7999/{project_key.lower()}/{slug}.git", "name": "ssh"},
            ]
        repo = {
            "id": len(self.repos) + 1,
            "scmId": "git",
            "state": "AVAILABLE",
            "forkable": forkable,
            "name": name or slug,
            "slug": slug,
            "origin": {
                "project": {"key": project_key, "description": description},
                "public": public,
                "links": {"clone": clone},
            },
        }
        self.repos[(project_key, slug)] = repo
        return repo

    @property
    def calls(self) -> list[tuple[str, str]]:
        return [(r.method, r.url.path) for r in self.requests]

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        match = _REPO_PATH.match(request.url.raw_path.decode("ascii").split("?", 1)[0])
        if match is None:
            return _errors(404, f"No route for {request.url.path}")

        key = (unquote(match.group(1)), unquote(match.group(2)))
        if request.method == "GET":
            if key not in self.repos:
                return _errors(404, f"Repository {key[1]} does not exist")
            return httpx.Response(200, json=self.repos[key])

        if request.method == "POST":
            if key in self.repos:
                return _errors(409, "This repository URL is already taken")
            body = json.loads(request.content)
            origin = body.get("origin", {})
            repo = self.add_repo(
                key[0],
                key[1],
                name=body.get("name"),
                description=origin.get("project", {}).get("description", ""),
                public=origin.get("public", False),
                forkable=body.get("forkable", False),
            )
            return httpx.Response(201, json=repo)

        if request.method == "PUT":
            if key not in self.repos:
                return _errors(404, f"Repository {key[1]} does not exist")
            body = json.loads(request.content)
            repo = self.repos[key]
            repo["forkable"] = body.get("forkable", False)
            repo["origin"]["public"] = body["origin"].get("public", False)
            repo["origin"]["project"]["description"] = body["origin"]["project"].get("description", "")
            return httpx.Response(200, json=repo)

        if request.method == "DELETE":
            if self.repos.pop(key, None) is None:
                return _errors(404, f"Repository {key[1]} does not exist")
            return httpx.Response(202)

        return _errors(405, f"Method {request.method} not allowed")


@pytest.fixture
def fake_bitbucket() -> FakeBitbucket:
    return FakeBitbucket()


@pytest.fixture
def client(fake_bitbucket: FakeBitbucket):
    with BitbucketClient(
        base_url=BASE_URL,
        token="secret-token",
        transport=httpx.MockTransport(fake_bitbucket.handler),
    ) as client:
        yield client


@pytest.fixture
def resource(client: BitbucketClient) -> RepositoryResource:
    return RepositoryResource(client)
