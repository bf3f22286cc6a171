"""
Agente KCRDB
Compõe configuração, cache, transporte, extratores e dispatcher e expõe o
ponto de entrada chamado pelo host a cada resposta interceptada
"""
import asyncio
import logging
import sys
from importlib import metadata
from typing import Any, Dict, Optional, Tuple

import httpx
import structlog

from . import __title__, __version__
from .cache import DedupCache
from .config import ConfigManager
from .dispatcher import Dispatcher
from .extractors import ClearItemGetExtractor, QuestListExtractor
from .metrics import MetricsRecorder
from .transport import IdentityHeaders, Transport

logger = structlog.get_logger(__name__)


def configure_logging(log_level: str = "INFO", log_format: str = "json"):
    """Configura structlog sobre o logging da stdlib"""
    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=log_level)

    renderer = (
        structlog.processors.JSONRenderer()
        if log_format == "json"
        else structlog.dev.ConsoleRenderer()
    )

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            renderer
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )


def agent_identity() -> Tuple[str, str]:
    """Nome e versão do agente a partir dos metadados instalados"""
    try:
        return __title__, metadata.version(__title__)
    except metadata.PackageNotFoundError:
        return __title__, __version__


class ReporterAgent:
    """Agente principal, uma instância por processo do host.

    ``handle`` deve ser chamado dentro do event loop ou, se o host chamar de
    outra thread, com ``loop`` informado aqui. Sem nenhum dos dois os eventos
    são descartados e só aparecem no log de erro.
    """

    def __init__(
        self,
        config: Optional[ConfigManager] = None,
        client: Optional[httpx.AsyncClient] = None,
        loop: Optional[asyncio.AbstractEventLoop] = None
    ):
        self.config = config or ConfigManager()
        settings = self.config.settings

        self.metrics = MetricsRecorder(enabled=settings.enable_metrics)

        agent_name, agent_version = agent_identity()
        self.identity = IdentityHeaders(
            agent_name=agent_name,
            agent_version=agent_version,
            host_name=settings.host_name,
            host_version=settings.host_version
        )

        self.cache = DedupCache(max_entries=settings.dedup_max_entries)
        self.transport = Transport(
            settings.base_url,
            self.identity,
            timeout=settings.request_timeout,
            client=client,
            metrics=self.metrics
        )

        self.dispatcher = Dispatcher(
            [
                QuestListExtractor(self.transport, self.cache, self.metrics),
                ClearItemGetExtractor(self.transport)
            ],
            loop=loop,
            metrics=self.metrics
        )

        logger.info(
            "Agente KCRDB inicializado",
            user_agent=self.identity.user_agent,
            base_url=settings.base_url,
            paths=list(self.dispatcher.routes)
        )

    def handle(self, path: str, body: Any, post_body: Any) -> None:
        """Ponto de entrada do host; nunca lança exceção"""
        try:
            self.dispatcher.dispatch(path, body, post_body)
        except Exception as e:
            logger.error("Erro ao despachar evento", path=path, error=str(e))

    async def shutdown(self):
        """Aguarda envios pendentes e fecha o cliente HTTP"""
        logger.info("Finalizando agente KCRDB", pending=len(self.dispatcher.pending))
        await self.dispatcher.drain()
        await self.transport.aclose()
        logger.info("Agente KCRDB finalizado")

    def get_stats(self) -> Dict[str, Any]:
        """Estatísticas agregadas dos componentes"""
        return {
            'dispatcher': self.dispatcher.get_stats(),
            'cache': self.cache.get_stats(),
            'transport': self.transport.get_stats()
        }


def create_agent(
    config_path: Optional[str] = None,
    configure: bool = False,
    client: Optional[httpx.AsyncClient] = None,
    loop: Optional[asyncio.AbstractEventLoop] = None,
    **overrides: Any
) -> ReporterAgent:
    """Cria um agente a partir de arquivo YAML opcional e overrides"""
    config = ConfigManager(config_path, **overrides)
    if configure:
        configure_logging(config.settings.log_level, config.settings.log_format)
    return ReporterAgent(config=config, client=client, loop=loop)
