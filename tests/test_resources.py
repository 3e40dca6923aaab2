"""Tests for the dashboard resource definitions."""

from datetime import date

import pytest

from nextar_cache import ALL_RESOURCES, CHAMADOS, EQUIPAMENTOS, HISTORICO, SETORES, USERS
from nextar_cache.resources import (
    last_three_months,
    summarize_chamados,
    summarize_equipamentos,
    summarize_setores,
    summarize_users,
)


def test_registry() -> None:
    assert set(ALL_RESOURCES) == {"setores", "equipamentos", "chamados", "historico", "users"}


@pytest.mark.parametrize("definition", [SETORES, EQUIPAMENTOS, CHAMADOS, HISTORICO, USERS])
def test_every_resource_tags_itself(definition) -> None:
    assert definition.tags[0] == definition.name
    assert definition.stats_tags[-1] == "stats"


def test_history_is_tagged_as_tickets() -> None:
    assert "chamados" in HISTORICO.tags
    assert "historico" not in CHAMADOS.tags


def test_only_history_reads_server_statistics() -> None:
    assert HISTORICO.server_stats
    assert not any(d.server_stats for d in (SETORES, EQUIPAMENTOS, CHAMADOS, USERS))


def test_summarize_setores() -> None:
    stats = summarize_setores(
        [
            {"ativo": True, "categoria": "Biologia"},
            {"ativo": False, "categoria": "Biologia"},
            {"ativo": True, "categoria": "Geologia"},
        ]
    )
    assert stats["total"] == 3
    assert stats["ativos"] == 2
    assert stats["inativos"] == 1
    assert stats["Biologia"] == 2
    assert stats["Geologia"] == 1
    assert stats["Medicina"] == 0


def test_summarize_equipamentos() -> None:
    today = date(2024, 6, 15)
    stats = summarize_equipamentos(
        [
            {"ativo": True, "proximaManutencao": "2024-06-01"},
            {"ativo": True, "proximaManutencao": "2024-07-01T00:00:00Z"},
            {"ativo": False, "proximaManutencao": "2025-01-01"},
            {"ativo": True},
            {"ativo": True, "proximaManutencao": "not a date"},
        ],
        today=today,
    )
    assert stats["total"] == 5
    assert stats["inativos"] == 1
    assert stats["manutencaoVencida"] == 1
    assert stats["manutencaoProxima"] == 1


def test_summarize_chamados() -> None:
    stats = summarize_chamados(
        [
            {"tipo": "corretiva", "status": "concluido", "tempoExecucao": 2},
            {"tipo": "preventiva", "status": "concluido", "tempoExecucao": 3},
            {"tipo": "corretiva", "status": "aberto"},
        ]
    )
    assert stats["total"] == 3
    assert stats["porTipo"] == {"corretiva": 2, "preventiva": 1}
    assert stats["porStatus"] == {"aberto": 1, "em_progresso": 0, "concluido": 2}
    assert stats["tempoMedioExecucao"] == 2.5


def test_summarize_chamados_empty() -> None:
    assert summarize_chamados([])["tempoMedioExecucao"] == 0


def test_summarize_users() -> None:
    stats = summarize_users(
        [
            {"perfil": "agente", "active": True},
            {"perfil": "gestao", "active": False},
        ]
    )
    assert stats["ativos"] == 1
    assert stats["porPerfil"] == {"pesquisador": 0, "agente": 1, "gestao": 1}


def test_last_three_months() -> None:
    window = last_three_months()
    start = date.fromisoformat(window["dataInicio"])
    end = date.fromisoformat(window["dataFim"])
    assert end == date.today()
    assert 89 <= (end - start).days <= 92
