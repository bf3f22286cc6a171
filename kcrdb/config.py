"""
Configurações do reporter
Todas têm valores padrão que reproduzem o comportamento do plugin sem arquivo
de configuração nem variáveis de ambiente
"""
import os
from typing import Any, Dict, Optional

import structlog
import yaml
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = structlog.get_logger(__name__)

DEFAULT_BASE_URL = "https://kcrdb.hitomaru.dev"
DEFAULT_HOST_NAME = "poi"


class ReporterSettings(BaseSettings):
    """Configurações principais do reporter"""

    model_config = SettingsConfigDict(env_prefix="KCRDB_", case_sensitive=False)

    # Serviço de coleta
    base_url: str = Field(default=DEFAULT_BASE_URL, description="Origem do serviço KCRDB")
    request_timeout: Optional[float] = Field(
        default=None,
        description="Timeout do POST em segundos (None = sem timeout)"
    )

    # Aplicação hospedeira
    host_name: str = Field(default=DEFAULT_HOST_NAME, description="Identificador do host")
    host_version: str = Field(default="unknown", description="Versão do host")

    # Logging
    log_level: str = Field(default="INFO", description="Nível de log")
    log_format: str = Field(default="json", description="Formato do log")

    # Deduplicação
    dedup_max_entries: Optional[int] = Field(
        default=None,
        description="Limite de hashes em memória (None = sem limite)"
    )

    # Monitoramento
    enable_metrics: bool = Field(default=True, description="Habilitar métricas Prometheus")

    @field_validator('log_level')
    @classmethod
    def validate_log_level(cls, v):
        valid_levels = ['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']
        if v.upper() not in valid_levels:
            raise ValueError(f'log_level deve ser um de: {valid_levels}')
        return v.upper()

    @field_validator('log_format')
    @classmethod
    def validate_log_format(cls, v):
        if v.lower() not in ('json', 'console'):
            raise ValueError("log_format deve ser 'json' ou 'console'")
        return v.lower()

    @field_validator('request_timeout')
    @classmethod
    def validate_request_timeout(cls, v):
        if v is not None and v <= 0:
            raise ValueError('request_timeout deve ser positivo')
        return v

    @field_validator('dedup_max_entries')
    @classmethod
    def validate_dedup_max_entries(cls, v):
        if v is not None and v < 1:
            raise ValueError('dedup_max_entries deve ser maior ou igual a 1')
        return v

    @field_validator('base_url')
    @classmethod
    def validate_base_url(cls, v):
        if not v.startswith(('http://', 'https://')):
            raise ValueError('base_url deve começar com http:// ou https://')
        return v


class ConfigManager:
    """Gerenciador de configurações com suporte a arquivos YAML"""

    def __init__(self, config_path: Optional[str] = None, **overrides: Any):
        file_values: Dict[str, Any] = {}
        if config_path and os.path.exists(config_path):
            file_values = self._load_config_file(config_path)

        file_values.update(overrides)
        self.settings = ReporterSettings(**file_values)

    def _load_config_file(self, config_path: str) -> Dict[str, Any]:
        """Carrega a seção `reporter` de um arquivo YAML"""
        try:
            with open(config_path, 'r', encoding='utf-8') as f:
                config_data = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as e:
            logger.warning(
                "Erro ao carregar arquivo de configuração, usando padrões",
                path=config_path,
                error=str(e)
            )
            return {}

        section = config_data.get('reporter') if isinstance(config_data, dict) else None
        if not isinstance(section, dict):
            return {}

        return {
            key: value for key, value in section.items()
            if key in ReporterSettings.model_fields
        }
