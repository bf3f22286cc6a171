"""
Fixtures compartilhadas: cliente HTTP falso que grava as requests
"""
import json

import httpx
import pytest

from kcrdb.cache import DedupCache
from kcrdb.transport import IdentityHeaders, Transport

BASE_URL = "https://kcrdb.test"


class RecordingHandler:
    """Handler para httpx.MockTransport que guarda cada request recebida"""

    def __init__(self, status_code: int = 200, error: Exception = None):
        self.status_code = status_code
        self.error = error
        self.requests = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.error is not None:
            raise self.error
        return httpx.Response(self.status_code, json={"ok": True})

    @property
    def bodies(self):
        return [json.loads(request.content) for request in self.requests]

    @property
    def paths(self):
        return [request.url.path for request in self.requests]


@pytest.fixture
def identity():
    return IdentityHeaders(
        agent_name="kcrdb",
        agent_version="1.2.3",
        host_name="poi",
        host_version="10.9.2"
    )


@pytest.fixture
def recorder():
    return RecordingHandler()


@pytest.fixture
def transport(identity, recorder):
    client = httpx.AsyncClient(transport=httpx.MockTransport(recorder))
    return Transport(BASE_URL, identity, client=client)


@pytest.fixture
def cache():
    return DedupCache()


def make_quest(api_no, **extra):
    """Descritor de quest no formato da resposta api_get_member/questlist"""
    quest = {
        "api_no": api_no,
        "api_category": 2,
        "api_type": 1,
        "api_label_type": 1,
        "api_state": 1,
        "api_title": f"Quest {api_no}",
        "api_detail": "Detalhe da quest",
        "api_voice_id": 0,
        "api_get_material": [100, 100, 100, 100],
        "api_bonus_flag": 1,
        "api_progress_flag": 0,
        "api_invalid_flag": 0
    }
    quest.update(extra)
    return quest


@pytest.fixture
def quest_factory():
    return make_quest


@pytest.fixture
def transport_factory(identity):
    """Cria um Transport ligado a um handler arbitrário do MockTransport"""

    def factory(handler):
        client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        return Transport(BASE_URL, identity, client=client)

    return factory


@pytest.fixture
def handler_factory():
    return RecordingHandler
