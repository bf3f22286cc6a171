"""
Hash estável de subconjuntos de campos
Usado para reconhecer descritores de quest já enviados
"""
import hashlib
import json
from typing import Any, Dict, Iterable, Mapping

# Campos que identificam uma quest, na ordem usada para serializar
QUEST_HASH_FIELDS = (
    'api_no',
    'api_category',
    'api_type',
    'api_label_type',
    'api_title',
    'api_detail',
    'api_voice_id',
    'api_lost_badges',
    'api_get_material',
    'api_select_rewards',
    'api_bonus_flag',
    'api_state',
)


def project_fields(record: Mapping[str, Any], allow_list: Iterable[str]) -> Dict[str, Any]:
    """Copia apenas os campos permitidos presentes no registro, na ordem da lista"""
    return {key: record[key] for key in allow_list if key in record}


def canonical_json(fields: Mapping[str, Any]) -> str:
    """Serialização compacta preservando a ordem de inserção das chaves"""
    return json.dumps(fields, separators=(',', ':'), ensure_ascii=False)


def hash_string(value: str, algorithm: str = 'sha256') -> str:
    return hashlib.new(algorithm, value.encode('utf-8')).hexdigest()


def hash_fields(fields: Mapping[str, Any], algorithm: str = 'sha256') -> str:
    """Gera o digest hexadecimal de um mapeamento já projetado.

    A ordem das chaves do mapeamento define a forma canônica, por isso o
    chamador deve construí-lo com ``project_fields``.
    """
    return hash_string(canonical_json(fields), algorithm)
