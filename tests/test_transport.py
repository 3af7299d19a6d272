"""Unit tests for socialdac.boundary.transport — ChildConnection dispatch."""

import asyncio
import json

import pytest

from socialdac.boundary.transport import ChildConnection, RPCRequest, RPCResponse
from socialdac.engine.registry import MethodRegistry, RegisteredMethod
from socialdac.relations.models import DACResponse


def _registry(calls):
    async def follow(user_id):
        calls.append(user_id)
        return DACResponse.ok()

    async def init():
        return None

    async def unfollow(user_id):
        raise RuntimeError("exploded")

    reg = MethodRegistry()
    reg.register(RegisteredMethod("init", init))
    reg.register(RegisteredMethod("follow", follow, (("userId", str),)))
    reg.register(RegisteredMethod("unfollow", unfollow, (("userId", str),)))
    return reg


class _Writer:
    def __init__(self):
        self.lines = []

    def write(self, data: bytes) -> None:
        self.lines.extend(l for l in data.decode("utf-8").splitlines() if l)

    async def drain(self) -> None:
        return None


class TestModels:
    def test_request_defaults(self):
        req = RPCRequest(method="init")
        assert req.args == []
        assert req.id is None

    def test_response_shapes(self):
        assert RPCResponse(id=1, result=None).to_dict() == {"id": 1, "result": None}
        assert RPCResponse(id=1, error="e").to_dict() == {"id": 1, "error": "e"}


class TestHandle:
    def setup_method(self):
        self.calls = []
        self.conn = ChildConnection(_registry(self.calls))

    @pytest.mark.asyncio
    async def test_success_marshals_model(self):
        response = await self.conn.handle({"id": 7, "method": "follow", "args": ["alice"]})
        assert response == {"id": 7, "result": {"success": True}}
        assert self.calls == ["alice"]

    @pytest.mark.asyncio
    async def test_void_method(self):
        assert await self.conn.handle({"id": 1, "method": "init"}) == {"id": 1, "result": None}

    @pytest.mark.asyncio
    async def test_unknown_method(self):
        response = await self.conn.handle({"id": 2, "method": "listFollowers"})
        assert json.loads(response["error"])["error_type"] == "SocialDACDispatchError"

    @pytest.mark.asyncio
    async def test_wrong_arity(self):
        response = await self.conn.handle({"id": 3, "method": "follow", "args": []})
        assert json.loads(response["error"])["error_type"] == "SocialDACValidationError"
        assert self.calls == []

    @pytest.mark.asyncio
    async def test_wrong_arg_type(self):
        response = await self.conn.handle({"id": 4, "method": "follow", "args": [42]})
        assert "must be str" in json.loads(response["error"])["message"]

    @pytest.mark.asyncio
    async def test_handler_exception_serialized(self):
        response = await self.conn.handle({"id": 5, "method": "unfollow", "args": ["a"]})
        assert json.loads(response["error"]) == {"error_type": "RuntimeError", "message": "exploded"}

    @pytest.mark.asyncio
    async def test_malformed_message(self):
        response = await self.conn.handle({"id": 6, "args": []})
        assert response["id"] == 6
        assert json.loads(response["error"])["error_type"] == "SocialDACValidationError"

    @pytest.mark.asyncio
    async def test_non_dict_message(self):
        response = await self.conn.handle(["follow", "alice"])
        assert response["id"] is None
        assert "error" in response


class TestOrigins:
    def test_wildcard_allows_all(self):
        conn = ChildConnection(MethodRegistry())
        assert conn.origin_allowed(None)
        assert conn.origin_allowed("https://anything")

    def test_explicit_list(self):
        conn = ChildConnection(MethodRegistry(), allowed_origins=["https://app1.hns.siasky.net/"])
        assert conn.origin_allowed("https://app1.hns.siasky.net")
        assert not conn.origin_allowed("https://evil.example")
        assert not conn.origin_allowed(None)

    @pytest.mark.asyncio
    async def test_rejected_origin_not_dispatched(self):
        calls = []
        conn = ChildConnection(_registry(calls), allowed_origins=["https://app1.hns.siasky.net"])
        response = await conn.handle({
            "id": 1, "method": "follow", "args": ["alice"], "origin": "https://evil.example",
        })
        assert json.loads(response["error"])["error_type"] == "SocialDACSecurityError"
        assert calls == []


class TestServe:
    @pytest.mark.asyncio
    async def test_json_lines_loop(self):
        calls = []
        conn = ChildConnection(_registry(calls))
        reader = asyncio.StreamReader()
        reader.feed_data(b'{"id": 1, "method": "follow", "args": ["alice"]}\n')
        reader.feed_data(b"\n")
        reader.feed_data(b"not json\n")
        reader.feed_data(b'{"id": 2, "method": "init"}\n')
        reader.feed_eof()
        writer = _Writer()

        await conn.serve(reader, writer)

        responses = [json.loads(line) for line in writer.lines]
        assert len(responses) == 3
        by_id = {r["id"]: r for r in responses}
        assert by_id[1] == {"id": 1, "result": {"success": True}}
        assert by_id[2] == {"id": 2, "result": None}
        assert "error" in by_id[None]
        assert calls == ["alice"]
