"""Ієрархія помилок ttydash.

Усі помилки конфігурації фатальні і піднімаються ДО старту ingestion.
"""
from __future__ import annotations


class TtydashError(Exception):
    """Базова помилка ttydash."""


class ConfigError(TtydashError):
    """Невалідна конфігурація (units, indices, layout, інтервали)."""


class PatternStoreError(ConfigError):
    """Пошкоджений або невалідний файл іменованих патернів."""


class PoolPoisonedError(TtydashError):
    """SeriesPool отруєний: попередня write-секція впала посередині.

    Стан більше не вважається консистентним, продовжувати не можна.
    """


class IngestError(TtydashError):
    """Потік ingestion завершився непередбаченою помилкою (причина в __cause__)."""
