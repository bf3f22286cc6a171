"""
KCRDB Reporter

Agente embarcado no cliente poi que observa respostas da API do jogo,
deduplica descritores de quests por hash e envia as observações novas
para o serviço de coleta KCRDB.
"""

__title__ = "kcrdb"
__version__ = "1.0.0"
__description__ = "Quest data reporter for the KCRDB collection service"

from .config import ConfigManager, ReporterSettings
from .hasher import QUEST_HASH_FIELDS, hash_fields, hash_string, project_fields
from .cache import DedupCache
from .transport import IdentityHeaders, Transport
from .extractors import ClearItemGetExtractor, QuestListExtractor
from .dispatcher import Dispatcher
from .main import ReporterAgent, configure_logging, create_agent

__all__ = [
    'ConfigManager',
    'ReporterSettings',
    'QUEST_HASH_FIELDS',
    'hash_fields',
    'hash_string',
    'project_fields',
    'DedupCache',
    'IdentityHeaders',
    'Transport',
    'ClearItemGetExtractor',
    'QuestListExtractor',
    'Dispatcher',
    'ReporterAgent',
    'configure_logging',
    'create_agent'
]
