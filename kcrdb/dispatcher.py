"""
Roteamento de eventos do host para os extratores
Cada extrator roda como task destacada; o host nunca espera nem vê erros
"""
import asyncio
import concurrent.futures
from types import MappingProxyType
from typing import Any, Dict, Iterable, Mapping, Optional, Set, Tuple, Union

import structlog

from .extractors import BaseExtractor
from .metrics import MetricsRecorder

logger = structlog.get_logger(__name__)


class Dispatcher:
    """Mapeia o path do evento para os extratores registrados.

    Dentro de um event loop os extratores viram tasks desse loop. Chamadas de
    outra thread usam o ``loop`` informado. Sem loop corrente e sem ``loop``
    o evento é descartado e apenas registrado em log de erro.
    """

    def __init__(
        self,
        extractors: Iterable[BaseExtractor],
        loop: Optional[asyncio.AbstractEventLoop] = None,
        metrics: Optional[MetricsRecorder] = None
    ):
        routes: Dict[str, Tuple[BaseExtractor, ...]] = {}
        for extractor in extractors:
            routes[extractor.path] = routes.get(extractor.path, ()) + (extractor,)

        self.routes: Mapping[str, Tuple[BaseExtractor, ...]] = MappingProxyType(routes)
        self.loop = loop
        self.metrics = metrics or MetricsRecorder(enabled=False)
        self._tasks: Set[asyncio.Task] = set()
        self._futures: Set[concurrent.futures.Future] = set()

        self.stats = {
            'dispatched': 0,
            'ignored': 0,
            'spawned': 0,
            'failed': 0
        }

    def handlers_for(self, path: Any) -> Tuple[BaseExtractor, ...]:
        try:
            return self.routes.get(path, ())
        except TypeError:
            return ()

    def dispatch(self, path: str, body: Any, post_body: Any) -> None:
        """Dispara os extratores do path sem aguardar a conclusão"""
        self.stats['dispatched'] += 1
        extractors = self.handlers_for(path)

        if not extractors:
            self.stats['ignored'] += 1
            self.metrics.event_ignored()
            logger.debug("Path sem extratores, ignorando", path=path)
            return

        self.metrics.event_received(path)

        for extractor in extractors:
            try:
                self._spawn(extractor, body, post_body)
            except Exception as e:
                self.stats['failed'] += 1
                self.metrics.extractor_failed(extractor.name)
                logger.error(
                    "Erro ao agendar extrator",
                    path=path,
                    extractor=extractor.name,
                    error=str(e)
                )

    def _spawn(self, extractor: BaseExtractor, body: Any, post_body: Any) -> None:
        coro = self._run(extractor, body, post_body)

        try:
            running_loop = asyncio.get_running_loop()
        except RuntimeError:
            running_loop = None

        if running_loop is not None:
            task = running_loop.create_task(coro)
            self._tasks.add(task)
            task.add_done_callback(self._tasks.discard)
        elif self.loop is not None and not self.loop.is_closed():
            future = asyncio.run_coroutine_threadsafe(coro, self.loop)
            self._futures.add(future)
            future.add_done_callback(self._futures.discard)
        else:
            coro.close()
            raise RuntimeError('nenhum event loop disponível para executar o extrator')

        self.stats['spawned'] += 1

    async def _run(self, extractor: BaseExtractor, body: Any, post_body: Any) -> None:
        try:
            await extractor.extract(body, post_body)
        except Exception as e:
            self.stats['failed'] += 1
            self.metrics.extractor_failed(extractor.name)
            logger.error(
                "Erro no extrator",
                path=extractor.path,
                extractor=extractor.name,
                error=str(e),
                exc_info=True
            )

    @property
    def pending(self) -> Set[Union[asyncio.Task, concurrent.futures.Future]]:
        return set(self._tasks) | set(self._futures)

    async def drain(self) -> None:
        """Aguarda as tasks em andamento, inclusive as criadas durante a espera

        Inclui extratores agendados de outras threads no ``loop`` informado.
        """
        while self._tasks or self._futures:
            waiters = list(self._tasks)
            waiters.extend(asyncio.wrap_future(future) for future in list(self._futures))
            await asyncio.gather(*waiters, return_exceptions=True)

    def get_stats(self) -> Dict[str, Any]:
        """Retorna estatísticas do dispatcher"""
        stats: Dict[str, Any] = dict(self.stats)
        stats['pending'] = len(self._tasks) + len(self._futures)
        return stats
