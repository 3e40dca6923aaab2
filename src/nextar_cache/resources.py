"""Resource definitions of the maintenance dashboard."""

import calendar
from collections import Counter
from datetime import date, datetime, timedelta
from typing import Any

from nextar_cache.resource import ResourceDefinition

CATEGORIAS_CIENTIFICAS = (
    "Biologia",
    "Meteorologia",
    "Glaciologia",
    "Astronomia",
    "Geologia",
    "Oceanografia",
    "Física Atmosférica",
    "Medicina",
    "Comunicações",
    "Logística",
)
TIPOS_MANUTENCAO = ("corretiva", "preventiva")
STATUS_CHAMADO = ("aberto", "em_progresso", "concluido")
PERFIS_USUARIO = ("pesquisador", "agente", "gestao")

# Days ahead within which a scheduled maintenance counts as upcoming
_UPCOMING_WINDOW_DAYS = 30


def _active_counts(items: list[dict[str, Any]], flag: str) -> dict[str, int]:
    active = sum(1 for item in items if item.get(flag))
    return {"total": len(items), "ativos": active, "inativos": len(items) - active}


def _parse_date(value: Any) -> date | None:
    if not value:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return datetime.fromisoformat(str(value).replace("Z", "+00:00")).date()
    except ValueError:
        return None


def summarize_setores(items: list[dict[str, Any]]) -> dict[str, Any]:
    stats: dict[str, Any] = _active_counts(items, "ativo")
    by_category = Counter(item.get("categoria") for item in items)
    for categoria in CATEGORIAS_CIENTIFICAS:
        stats[categoria] = by_category.get(categoria, 0)
    return stats


def summarize_equipamentos(
    items: list[dict[str, Any]], today: date | None = None
) -> dict[str, Any]:
    """Active counts plus overdue and upcoming (next 30 days) maintenance."""
    today = today or date.today()
    horizon = today + timedelta(days=_UPCOMING_WINDOW_DAYS)
    stats: dict[str, Any] = _active_counts(items, "ativo")
    stats["manutencaoVencida"] = 0
    stats["manutencaoProxima"] = 0
    for item in items:
        next_due = _parse_date(item.get("proximaManutencao"))
        if next_due is None:
            continue
        if next_due < today:
            stats["manutencaoVencida"] += 1
        elif next_due <= horizon:
            stats["manutencaoProxima"] += 1
    return stats


def summarize_chamados(items: list[dict[str, Any]]) -> dict[str, Any]:
    by_tipo = Counter(item.get("tipo") for item in items)
    by_status = Counter(item.get("status") for item in items)

    durations = [
        float(item["tempoExecucao"])
        for item in items
        if isinstance(item.get("tempoExecucao"), (int, float))
    ]
    average = round(sum(durations) / len(durations), 1) if durations else 0

    return {
        "total": len(items),
        "porTipo": {tipo: by_tipo.get(tipo, 0) for tipo in TIPOS_MANUTENCAO},
        "porStatus": {status: by_status.get(status, 0) for status in STATUS_CHAMADO},
        "tempoMedioExecucao": average,
    }


def summarize_users(items: list[dict[str, Any]]) -> dict[str, Any]:
    stats: dict[str, Any] = _active_counts(items, "active")
    by_perfil = Counter(item.get("perfil") for item in items)
    stats["porPerfil"] = {perfil: by_perfil.get(perfil, 0) for perfil in PERFIS_USUARIO}
    return stats


def last_three_months() -> dict[str, Any]:
    """Default history window: from three months ago until today."""
    today = date.today()
    month = today.month - 3
    year = today.year
    if month < 1:
        month += 12
        year -= 1
    # Clamp the day for short months (May 31 -> Feb 28)
    start = date(year, month, min(today.day, calendar.monthrange(year, month)[1]))
    return {"dataInicio": start.isoformat(), "dataFim": today.isoformat()}


SETORES = ResourceDefinition(
    name="setores",
    filter_fields=("categoria", "ativo"),
    ttl="5m",
    stats_ttl="5m",
    summarize=summarize_setores,
)

EQUIPAMENTOS = ResourceDefinition(
    name="equipamentos",
    filter_fields=("setorId", "ativo"),
    ttl="15m",
    stats_ttl="10m",
    summarize=summarize_equipamentos,
)

CHAMADOS = ResourceDefinition(
    name="chamados",
    filter_fields=("tipo", "status", "agenteId", "setorId", "prioridade"),
    ttl="5m",
    stats_ttl="10m",
    default_sort_by=None,
    summarize=summarize_chamados,
)

# History entries are tickets too: ticket mutations must invalidate them.
# The endpoint pages every request and sends global statistics instead.
HISTORICO = ResourceDefinition(
    name="historico",
    filter_fields=(
        "tipo",
        "status",
        "agenteId",
        "equipamentoId",
        "setorId",
        "dataInicio",
        "dataFim",
    ),
    ttl="5m",
    stats_ttl="10m",
    extra_tags=("chamados",),
    default_sort_by=None,
    default_filters=last_three_months,
    server_stats=True,
)

USERS = ResourceDefinition(
    name="users",
    filter_fields=("perfil", "active"),
    ttl="10m",
    stats_ttl="10m",
    summarize=summarize_users,
)

ALL_RESOURCES: dict[str, ResourceDefinition] = {
    d.name: d for d in (SETORES, EQUIPAMENTOS, CHAMADOS, HISTORICO, USERS)
}
