#!/usr/bin/env python3
"""
Testes unitários para o envio ao serviço de coleta.
"""

import httpx
import pytest

from kcrdb.transport import IdentityHeaders, Transport

BASE_URL = "https://kcrdb.test"


class TestIdentityHeaders:
    """Testes para os headers de identificação."""

    def test_user_agent_format(self, identity):
        assert identity.user_agent == "kcrdb/1.2.3 poi/10.9.2"

    def test_header_set(self, identity):
        assert identity.as_dict() == {
            "content-type": "application/json",
            "user-agent": "kcrdb/1.2.3 poi/10.9.2",
            "origin": "poi",
            "x-origin": "kcrdb",
            "x-version": "1.2.3"
        }

    def test_is_immutable(self, identity):
        with pytest.raises(AttributeError):
            identity.agent_name = "outro"


class TestTransport:
    """Testes para a classe Transport."""

    def test_url_join(self, transport):
        assert str(transport.url_for("quests")) == "https://kcrdb.test/quests"
        assert str(transport.url_for("quest-items")) == "https://kcrdb.test/quest-items"

    @pytest.mark.asyncio
    async def test_posts_json_with_identity_headers(self, transport, recorder):
        """Testa se o POST leva o JSON e os headers de identificação."""
        await transport.submit("quests", {"list": [{"api_no": 1}]})

        assert len(recorder.requests) == 1
        request = recorder.requests[0]
        assert request.method == "POST"
        assert str(request.url) == "https://kcrdb.test/quests"
        assert request.headers["content-type"] == "application/json"
        assert request.headers["user-agent"] == "kcrdb/1.2.3 poi/10.9.2"
        assert request.headers["origin"] == "poi"
        assert request.headers["x-origin"] == "kcrdb"
        assert request.headers["x-version"] == "1.2.3"
        assert recorder.bodies == [{"list": [{"api_no": 1}]}]
        assert transport.get_stats()["sent"] == 1

    @pytest.mark.asyncio
    @pytest.mark.parametrize("error", [
        httpx.ConnectError("connection refused"),
        httpx.ConnectTimeout("timed out"),
        httpx.ReadTimeout("timed out"),
        OSError("dns failure"),
    ])
    async def test_network_errors_are_swallowed(self, transport_factory, handler_factory, error):
        """Testa se falhas de rede não chegam ao chamador."""
        transport = transport_factory(handler_factory(error=error))

        result = await transport.submit("quests", {"list": []})

        assert result is None
        stats = transport.get_stats()
        assert stats["failed"] == 1
        assert stats["sent"] == 0
        assert stats["last_error"]

    @pytest.mark.asyncio
    async def test_error_status_is_not_validated(self, transport_factory, handler_factory):
        """Testa se respostas de erro não são inspecionadas nem relançadas."""
        handler = handler_factory(status_code=500)
        transport = transport_factory(handler)

        await transport.submit("quest-items", {"api_quest_id": 1, "data": {}})

        assert len(handler.requests) == 1
        assert transport.get_stats()["failed"] == 0

    @pytest.mark.asyncio
    async def test_unserializable_payload_is_swallowed(self, transport, recorder):
        await transport.submit("quests", {"list": [object()]})

        assert recorder.requests == []
        assert transport.get_stats()["failed"] == 1

    @pytest.mark.asyncio
    async def test_context_manager_closes_owned_client(self, identity):
        async with Transport(BASE_URL, identity) as transport:
            assert not transport.client.is_closed

        assert transport.client.is_closed

    @pytest.mark.asyncio
    async def test_injected_client_is_left_open(self, identity, recorder):
        client = httpx.AsyncClient(transport=httpx.MockTransport(recorder))
        transport = Transport(BASE_URL, identity, client=client)

        await transport.aclose()

        assert not client.is_closed
        await client.aclose()


def test_identity_headers_fields():
    identity = IdentityHeaders("a", "1", "poi", "unknown")

    assert identity.as_dict()["user-agent"] == "a/1 poi/unknown"
