"""
Extratores por tipo de evento
Cada extrator projeta o payload bruto do jogo no registro enviado ao KCRDB
"""
import math
import re
from typing import Any, Dict, List, Mapping, Optional, Union

import structlog

from .cache import DedupCache
from .hasher import QUEST_HASH_FIELDS, hash_fields, project_fields
from .metrics import MetricsRecorder
from .transport import Transport

logger = structlog.get_logger(__name__)

QUESTS_RESOURCE = 'quests'
QUEST_ITEMS_RESOURCE = 'quest-items'

SELECT_NO_KEY = 'api_select_no'
SELECT_NO_PATTERN = re.compile(r'^' + SELECT_NO_KEY + r'(\d+)$')

Number = Union[int, float]


def to_number(value: Any) -> Optional[Number]:
    """Converte um parâmetro do POST para número.

    Parâmetros de formulário chegam como string. Strings vazias valem 0, como
    no cliente do jogo; valores não numéricos viram ``None`` (``null`` no JSON).
    """
    if value is None:
        return None
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return value if math.isfinite(value) else None
    if not isinstance(value, str):
        return None

    text = value.strip()
    if not text:
        return 0
    if '_' in text:
        return None
    try:
        return int(text)
    except ValueError:
        pass
    try:
        number = float(text)
    except ValueError:
        return None
    if not math.isfinite(number):
        return None
    return int(number) if number.is_integer() else number


class BaseExtractor:
    """Extrator de um tipo de evento do host"""

    path: str = ''

    def __init__(self, transport: Transport):
        self.transport = transport

    @property
    def name(self) -> str:
        return type(self).__name__

    async def extract(self, body: Any, post_body: Any) -> None:
        raise NotImplementedError


class QuestListExtractor(BaseExtractor):
    """Envia apenas os descritores de quest ainda não vistos"""

    path = 'api_get_member/questlist'

    def __init__(
        self,
        transport: Transport,
        cache: DedupCache,
        metrics: Optional[MetricsRecorder] = None
    ):
        super().__init__(transport)
        self.cache = cache
        self.metrics = metrics or MetricsRecorder(enabled=False)

    @staticmethod
    def quest_hash(descriptor: Mapping[str, Any]) -> str:
        return hash_fields(project_fields(descriptor, QUEST_HASH_FIELDS))

    async def extract(self, body: Any, post_body: Any) -> None:
        if not isinstance(body, Mapping):
            return

        quest_list = body.get('api_list')
        if not isinstance(quest_list, list):
            return

        new_items = []
        duplicates = 0
        for descriptor in quest_list:
            if not isinstance(descriptor, Mapping):
                logger.debug("Entrada de quest ignorada", entry_type=type(descriptor).__name__)
                continue

            quest_hash = self.quest_hash(descriptor)
            if self.cache.contains(quest_hash):
                duplicates += 1
                continue

            new_items.append((quest_hash, descriptor))

        self.metrics.duplicates_skipped(duplicates)

        if not new_items:
            logger.debug("Nenhuma quest nova", duplicates=duplicates)
            return

        payload = {'list': [descriptor for _, descriptor in new_items]}
        await self.transport.submit(QUESTS_RESOURCE, payload)

        # Marca mesmo se o envio falhou: a quest não é reenviada
        for quest_hash, _ in new_items:
            self.cache.insert(quest_hash)

        logger.debug("Quests enviadas", count=len(new_items), duplicates=duplicates)


class ClearItemGetExtractor(BaseExtractor):
    """Envia toda recompensa de conclusão de quest, sem deduplicação"""

    path = 'api_req_quest/clearitemget'

    @staticmethod
    def select_numbers(post_body: Mapping[str, Any]) -> Optional[List[Optional[Number]]]:
        """Extrai `api_select_noN` ordenado pelo sufixo numérico.

        Retorna ``None`` quando não há nenhuma chave de seleção.
        """
        indexed = []
        for key, value in post_body.items():
            match = SELECT_NO_PATTERN.match(key)
            if match:
                indexed.append((int(match.group(1)), value))

        if not indexed:
            return None

        indexed.sort(key=lambda item: item[0])
        return [to_number(value) for _, value in indexed]

    def build_payload(self, body: Any, post_body: Any) -> Dict[str, Any]:
        params = post_body if isinstance(post_body, Mapping) else {}

        payload: Dict[str, Any] = {
            'api_quest_id': to_number(params.get('api_quest_id')),
            'data': body
        }

        select_numbers = self.select_numbers(params)
        if select_numbers is not None:
            payload[SELECT_NO_KEY] = select_numbers

        return payload

    async def extract(self, body: Any, post_body: Any) -> None:
        payload = self.build_payload(body, post_body)
        await self.transport.submit(QUEST_ITEMS_RESOURCE, payload)
