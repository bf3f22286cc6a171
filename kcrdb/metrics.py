"""
Métricas Prometheus do reporter
Registradas no registry padrão; quem expõe o endpoint é o host
"""
from prometheus_client import Counter

EVENTS_RECEIVED = Counter(
    'kcrdb_events_received_total',
    'Events delivered by the host',
    ['path']
)
EVENTS_IGNORED = Counter(
    'kcrdb_events_ignored_total',
    'Events with no registered extractor'
)
EXTRACTOR_FAILURES = Counter(
    'kcrdb_extractor_failures_total',
    'Extractor invocations that raised',
    ['extractor']
)
SUBMISSIONS = Counter(
    'kcrdb_submissions_total',
    'Submission attempts to the collection service',
    ['resource', 'outcome']
)
DUPLICATES_SKIPPED = Counter(
    'kcrdb_quest_duplicates_skipped_total',
    'Quest descriptors skipped because their hash was already seen'
)


class MetricsRecorder:
    """Atualiza as métricas quando habilitadas"""

    def __init__(self, enabled: bool = True):
        self.enabled = enabled

    def event_received(self, path: str):
        if self.enabled:
            EVENTS_RECEIVED.labels(path=path).inc()

    def event_ignored(self):
        if self.enabled:
            EVENTS_IGNORED.inc()

    def extractor_failed(self, extractor: str):
        if self.enabled:
            EXTRACTOR_FAILURES.labels(extractor=extractor).inc()

    def submission(self, resource: str, ok: bool):
        if self.enabled:
            SUBMISSIONS.labels(resource=resource, outcome='ok' if ok else 'error').inc()

    def duplicates_skipped(self, count: int):
        if self.enabled and count:
            DUPLICATES_SKIPPED.inc(count)
