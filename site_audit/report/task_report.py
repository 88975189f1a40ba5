# site_audit/report/task_report.py

"""
Task report: обёртка над маршрутом, путями к файлам отчёта и статусами задач.

Создаётся один раз на маршрут, возможно одновременно из многих воркеров;
дальше объект принадлежит пулу воркеров, здесь он не изменяется.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict

from site_audit.routes import NormalisedRoute
from site_audit.runtime import RuntimeSettings
from site_audit.utils import hash_path_name, sanitise_url_for_file_path

__all__ = ["TaskReport", "create_task_report_from_route"]


@dataclass(slots=True)
class TaskReport:
    """Маршрут и расположение его артефактов на диске."""

    route: NormalisedRoute
    report_id: str
    artifact_path: Path
    html_payload: Path
    report_html: Path
    report_json: Path
    # статусы задач ведёт внешний пул воркеров
    tasks: Dict[str, str] = field(default_factory=dict)


def create_task_report_from_route(route: NormalisedRoute, runtime: RuntimeSettings) -> TaskReport:
    """
    Создаёт TaskReport для маршрута и директорию под его артефакты.

    :param route: нормализованный маршрут
    :param runtime: настройки запуска, содержат корень output_path
    :return: TaskReport с путями payload.html, lighthouse.html, lighthouse.json

    Повторный вызов для того же маршрута даёт те же пути и не падает на уже
    существующей директории; прочие OSError пробрасываются как есть.
    """
    report_id = hash_path_name(route.path)
    report_path = runtime.routes_path / sanitise_url_for_file_path(route.path)

    # add missing dirs
    report_path.mkdir(parents=True, exist_ok=True)

    return TaskReport(
        route=route,
        report_id=report_id,
        artifact_path=report_path,
        html_payload=report_path / "payload.html",
        report_html=report_path / "lighthouse.html",
        report_json=report_path / "lighthouse.json",
    )
