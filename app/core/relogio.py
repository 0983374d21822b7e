# app/core/relogio.py
from datetime import datetime, timezone
from typing import Callable, Optional

Relogio = Callable[[], datetime]


def agora_utc() -> datetime:
    return datetime.now(timezone.utc)


def como_utc(valor: Optional[datetime]) -> Optional[datetime]:
    """SQLite devolve datetimes sem fuso; tudo o que é gravado aqui está em UTC."""
    if valor is None:
        return None
    if valor.tzinfo is None:
        return valor.replace(tzinfo=timezone.utc)
    return valor.astimezone(timezone.utc)
