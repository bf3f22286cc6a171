"""
Cache de deduplicação em memória
Guarda os hashes de quests já enviadas durante a vida do processo
"""
from collections import OrderedDict
from typing import Any, Dict, Optional

import structlog

logger = structlog.get_logger(__name__)


class DedupCache:
    """Conjunto de hashes já vistos, pertencente a uma instância do agente.

    Sem ``max_entries`` o conjunto só cresce: nada é removido até o processo
    terminar. A quantidade de quests distintas de uma conta é pequena, então
    esse crescimento é aceito. Com ``max_entries`` o hash mais antigo é
    descartado quando o limite é atingido, e uma quest descartada pode voltar
    a ser enviada.
    """

    def __init__(self, max_entries: Optional[int] = None):
        if max_entries is not None and max_entries < 1:
            raise ValueError('max_entries deve ser maior ou igual a 1')

        self.max_entries = max_entries
        self._entries: "OrderedDict[str, None]" = OrderedDict()

        self.stats = {
            'inserted': 0,
            'hits': 0,
            'misses': 0,
            'evicted': 0
        }

    def contains(self, key: str) -> bool:
        """Verifica se o hash já foi registrado"""
        if key in self._entries:
            self.stats['hits'] += 1
            return True

        self.stats['misses'] += 1
        return False

    def insert(self, key: str) -> None:
        """Registra um hash; reinserir um hash existente não tem efeito"""
        if key in self._entries:
            return

        self._entries[key] = None
        self.stats['inserted'] += 1

        if self.max_entries is not None and len(self._entries) > self.max_entries:
            evicted, _ = self._entries.popitem(last=False)
            self.stats['evicted'] += 1
            logger.debug("Hash descartado por limite do cache", hash=evicted[:12])

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def get_stats(self) -> Dict[str, Any]:
        """Retorna estatísticas do cache"""
        stats: Dict[str, Any] = dict(self.stats)
        stats['total_entries'] = len(self._entries)
        stats['max_entries'] = self.max_entries
        return stats
