"""Unit tests for socialdac.boundary.adapter — SocialDAC state machine and RPC surface."""

import json
from unittest.mock import AsyncMock

import pytest

from socialdac.boundary.adapter import DACState, SocialDAC, create_dac
from socialdac.engine.config import SocialDACConfig
from socialdac.engine.errors import SocialDACInitError
from socialdac.engine.identity import LocalIdentityProvider
from socialdac.store.backends import MemoryBackend

SKAPP = "app1.hns"
FOLLOWING_PATH = f"social-dac.hns/{SKAPP}/following.json"
REGISTRY_PATH = "social-dac.hns/skapps.json"


class TestInit:
    @pytest.mark.asyncio
    async def test_starts_uninitialized(self, dac):
        assert dac.state is DACState.UNINITIALIZED
        assert not dac.is_ready
        assert dac.context is None
        assert dac.skapp is None

    @pytest.mark.asyncio
    async def test_init_reaches_ready(self, dac):
        await dac.init()
        assert dac.state is DACState.READY
        assert dac.skapp == SKAPP
        assert dac.context.paths.following_map_path == FOLLOWING_PATH
        assert dac.context.paths.skapps_dict_path == REGISTRY_PATH
        assert await dac.context.user_id() == "d4f1a2b3c4"

    @pytest.mark.asyncio
    async def test_second_init_keeps_session(self, dac, identity_provider):
        await dac.init()
        context = dac.context
        identity_provider.load_session = AsyncMock(side_effect=RuntimeError("boom"))
        await dac.init()
        assert dac.context is context
        assert dac.skapp == SKAPP
        identity_provider.load_session.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_second_init_over_connection(self, dac):
        assert await dac.connection.handle({"id": 1, "method": "init"}) == {"id": 1, "result": None}
        context = dac.context
        assert await dac.connection.handle({"id": 2, "method": "init"}) == {"id": 2, "result": None}
        assert dac.context is context

    @pytest.mark.asyncio
    async def test_init_writes_nothing(self, dac, backend):
        await dac.init()
        assert backend.writes == []

    @pytest.mark.asyncio
    async def test_bad_referrer(self, config, identity_provider):
        dac = SocialDAC(config, identity_provider, referrer=None)
        with pytest.raises(SocialDACInitError):
            await dac.init()
        assert dac.state is DACState.UNINITIALIZED

    @pytest.mark.asyncio
    async def test_portal_root_referrer(self, config, identity_provider):
        dac = SocialDAC(config, identity_provider, referrer="https://siasky.net/")
        with pytest.raises(SocialDACInitError):
            await dac.init()

    @pytest.mark.asyncio
    async def test_session_failure_wrapped(self, config):
        dac = SocialDAC(config, LocalIdentityProvider(None), referrer="https://app1.hns.siasky.net/")
        with pytest.raises(SocialDACInitError) as exc:
            await dac.init()
        assert exc.value.context["cause"] == "SocialDACConfigError"
        assert isinstance(exc.value.__cause__, Exception)
        assert not dac.is_ready

    @pytest.mark.asyncio
    async def test_unexpected_failure_wrapped(self, config):
        provider = LocalIdentityProvider("u1")
        provider.load_session = AsyncMock(side_effect=RuntimeError("boom"))
        dac = SocialDAC(config, provider, referrer="https://app1.hns.siasky.net/")
        with pytest.raises(SocialDACInitError) as exc:
            await dac.init()
        assert "boom" in exc.value.message

    @pytest.mark.asyncio
    async def test_custom_portal(self, identity_provider):
        config = SocialDACConfig(dac={"portal_domain": "skynetpro.net"})
        dac = SocialDAC(config, identity_provider, referrer="https://blog.skynetpro.net/")
        await dac.init()
        assert dac.skapp == "blog"


class TestBeforeInit:
    @pytest.mark.asyncio
    async def test_follow_fails_without_writing(self, dac, backend):
        response = await dac.follow("alice")
        assert response.success is False
        assert json.loads(response.error)["error_type"] == "SocialDACPreconditionError"
        assert backend.writes == []

    @pytest.mark.asyncio
    async def test_unfollow_fails(self, dac):
        response = await dac.unfollow("alice")
        assert json.loads(response.error)["method"] == "unfollow"

    @pytest.mark.asyncio
    async def test_login_is_noop(self, dac, backend):
        await dac.on_user_login()
        await dac.wait_background()
        assert backend.writes == []


class TestReady:
    @pytest.mark.asyncio
    async def test_follow_and_unfollow(self, dac, backend, clock):
        await dac.init()
        assert (await dac.follow("alice")).success
        assert backend.peek(FOLLOWING_PATH)["relations"] == {"alice": {"ts": clock.calls[0]}}
        assert (await dac.unfollow("alice")).success
        assert backend.peek(FOLLOWING_PATH)["relations"] == {}

    @pytest.mark.asyncio
    async def test_login_registers_in_background(self, dac, backend):
        await dac.init()
        await dac.on_user_login()
        await dac.wait_background()
        assert backend.peek(REGISTRY_PATH) == {SKAPP: True}

    @pytest.mark.asyncio
    async def test_login_failure_not_raised(self, dac, backend):
        await dac.init()
        backend.get_json = AsyncMock(side_effect=ConnectionError("down"))
        await dac.on_user_login()
        await dac.wait_background()
        assert dac.is_ready

    @pytest.mark.asyncio
    async def test_close(self, dac):
        await dac.init()
        await dac.close()


class TestRPCSurface:
    @pytest.mark.asyncio
    async def test_full_sequence_over_connection(self, dac, backend):
        handle = dac.connection.handle
        assert await handle({"id": 1, "method": "init"}) == {"id": 1, "result": None}
        assert await handle({"id": 2, "method": "onUserLogin"}) == {"id": 2, "result": None}
        await dac.wait_background()

        follow = await handle({"id": 3, "method": "follow", "args": ["alice"]})
        assert follow == {"id": 3, "result": {"success": True}}

        miss = await handle({"id": 4, "method": "unfollow", "args": ["bob"]})
        assert miss["result"]["success"] is False
        assert "bob" in miss["result"]["error"]
        assert backend.peek(REGISTRY_PATH) == {SKAPP: True}

    @pytest.mark.asyncio
    async def test_init_failure_over_connection(self, config, identity_provider):
        dac = SocialDAC(config, identity_provider, referrer="")
        response = await dac.connection.handle({"id": 1, "method": "init"})
        assert json.loads(response["error"])["error_type"] == "SocialDACInitError"

    @pytest.mark.asyncio
    async def test_only_capability_methods(self, dac):
        assert dac.connection.registry.names() == {"init", "onUserLogin", "follow", "unfollow"}
        response = await dac.connection.handle({"id": 1, "method": "close"})
        assert "error" in response


class TestCreateDac:
    @pytest.mark.asyncio
    async def test_wires_local_identity(self):
        config = SocialDACConfig(identity={"user_id": "u9"})
        dac = create_dac(config, "https://app2.siasky.net/")
        await dac.init()
        assert dac.skapp == "app2"
        assert isinstance(dac.context.store.backend, MemoryBackend)
        assert await dac.context.user_id() == "u9"
        await dac.close()

    def test_allowed_origins_from_config(self):
        config = SocialDACConfig(transport={"allowed_origins": ["https://app2.siasky.net"]})
        dac = create_dac(config, "https://app2.siasky.net/")
        assert not dac.connection.origin_allowed("https://other.siasky.net")
