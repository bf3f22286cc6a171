"""
Envio de registros para o serviço de coleta KCRDB
Falhas de rede são registradas em log e nunca propagadas ao chamador
"""
import json
from typing import Any, Dict, NamedTuple, Optional

import httpx
import structlog

from .metrics import MetricsRecorder

logger = structlog.get_logger(__name__)


class IdentityHeaders(NamedTuple):
    """Identificação fixa enviada em todas as requests"""

    agent_name: str
    agent_version: str
    host_name: str
    host_version: str

    @property
    def user_agent(self) -> str:
        return f"{self.agent_name}/{self.agent_version} {self.host_name}/{self.host_version}"

    def as_dict(self) -> Dict[str, str]:
        return {
            'content-type': 'application/json',
            'user-agent': self.user_agent,
            'origin': self.host_name,
            'x-origin': self.agent_name,
            'x-version': self.agent_version
        }


class Transport:
    """Cliente HTTP fire-and-forget para a API de coleta"""

    def __init__(
        self,
        base_url: str,
        identity: IdentityHeaders,
        timeout: Optional[float] = None,
        client: Optional[httpx.AsyncClient] = None,
        metrics: Optional[MetricsRecorder] = None
    ):
        self.base_url = httpx.URL(base_url)
        self.identity = identity
        self.headers = identity.as_dict()
        self.metrics = metrics or MetricsRecorder(enabled=False)

        self._owns_client = client is None
        self.client = client or httpx.AsyncClient(timeout=httpx.Timeout(timeout))

        self.stats = {
            'sent': 0,
            'failed': 0,
            'last_error': None
        }

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.aclose()

    async def aclose(self):
        """Fecha o cliente HTTP se ele foi criado aqui"""
        if self._owns_client:
            await self.client.aclose()

    def url_for(self, resource: str) -> httpx.URL:
        return self.base_url.join(resource)

    async def submit(self, resource: str, payload: Any) -> None:
        """Faz POST do payload em `resource`; qualquer erro é engolido"""
        try:
            content = json.dumps(payload, ensure_ascii=False).encode('utf-8')
            response = await self.client.post(
                self.url_for(resource),
                content=content,
                headers=self.headers
            )
        except Exception as e:
            self.stats['failed'] += 1
            self.stats['last_error'] = str(e)
            self.metrics.submission(resource, ok=False)
            logger.error(
                "Erro ao enviar dados",
                path=resource,
                error=str(e),
                error_type=type(e).__name__
            )
            return

        self.stats['sent'] += 1
        self.metrics.submission(resource, ok=True)
        logger.debug("Dados enviados", path=resource, status=response.status_code)

    def get_stats(self) -> Dict[str, Any]:
        """Retorna estatísticas de envio"""
        return self.stats.copy()
