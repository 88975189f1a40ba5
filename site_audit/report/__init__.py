# File: site_audit/report/__init__.py
"""site_audit.report: адресация артефактов аудита по маршрутам."""

from .task_report import TaskReport, create_task_report_from_route

__all__ = ["TaskReport", "create_task_report_from_route"]
