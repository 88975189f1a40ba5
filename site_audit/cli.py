# === FILE: site_audit/cli.py ===
#!/usr/bin/env python3
"""
Точка входа SiteAudit через командную строку.

Команды:
  config    Разрешить конфигурацию и вывести ResolvedConfig в JSON
  report    Создать task report для указанных маршрутов и вывести пути артефактов

Общие опции:
  --config PATH       Путь к YAML/JSON-конфигу (default: site-audit.yaml, если есть)
  --site URL          Сайт для аудита (override site)
  --log-level LEVEL   Уровень логирования (DEBUG, INFO, ...)
  --log-file PATH     Файл для логов (stderr, если не указан)
  --log-format FORMAT Формат логирования

Дополнительно:
  --version, -v       Показать версию SiteAudit

Пример:
  site-audit --site example.com report / /blog "/About Us" --pretty
"""
import sys
import asyncio
import json
from pathlib import Path

import click

from site_audit import __version__
from site_audit.browser.provisioner import BrowserProvisionError
from site_audit.config import UserConfig, load_config
from site_audit.logger import configure as configure_logging
from site_audit.report.task_report import create_task_report_from_route
from site_audit.resolver import resolve_user_config
from site_audit.routes import normalise_route
from site_audit.runtime import create_runtime_settings

CONTEXT_SETTINGS = dict(help_option_names=["--help"])

def print_error(message: str):
    click.secho(message, fg='red', err=True)
    sys.exit(1)

def _resolve(user_config: UserConfig):
    try:
        return asyncio.run(resolve_user_config(user_config))
    except BrowserProvisionError as e:
        print_error(f'Не удалось получить браузер: {e}')

@click.group(context_settings=CONTEXT_SETTINGS)
@click.version_option(__version__, '--version', '-v', message='SiteAudit, version %(version)s')
@click.option(
    '--config', '-c', 'config_path',
    default=None,
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help='Путь к файлу конфигурации YAML или JSON.'
)
@click.option(
    '--site', '-s', 'site',
    default=None,
    help='Сайт для аудита (override site из конфига)'
)
@click.option(
    '--log-level', 'log_level',
    default='INFO', show_default=True,
    type=click.Choice(['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']),
    help='Уровень логирования'
)
@click.option(
    '--log-file', 'log_file',
    default=None,
    type=click.Path(writable=True, dir_okay=False, path_type=Path),
    help='Путь к файлу логов (stderr, если не указан)'
)
@click.option(
    '--log-format', 'log_format',
    default='%(asctime)s %(levelname)s %(message)s',
    show_default=True,
    help='Строка формата для логов'
)
@click.pass_context
def cli(ctx, config_path, site, log_level, log_file, log_format):
    """Группа команд SiteAudit CLI."""
    configure_logging(
        level=log_level,
        log_file=str(log_file) if log_file else None,
        log_format=log_format
    )
    try:
        user_config = load_config(config_path)
    except FileNotFoundError as e:
        if config_path is not None:
            print_error(f'Ошибка загрузки конфигурации: {e}')
        # без файла конфигурации работаем на значениях по умолчанию
        user_config = UserConfig()
    except Exception as e:
        print_error(f'Ошибка загрузки конфигурации: {e}')
    if site:
        user_config = UserConfig(**{**user_config.to_partial(), 'site': site})
    ctx.ensure_object(dict)
    ctx.obj['user_config'] = user_config

@cli.command('config', context_settings=CONTEXT_SETTINGS)
@click.pass_context
def show_config(ctx):
    """Показать разрешённую конфигурацию в JSON."""
    resolved = _resolve(ctx.obj['user_config'])
    click.echo(resolved.model_dump_json(indent=2))

@cli.command('report', context_settings=CONTEXT_SETTINGS)
@click.argument('paths', nargs=-1, required=True)
@click.option(
    '--pretty', is_flag=True,
    help='Преформатировать JSON-вывод (отступ 2)'
)
@click.pass_context
def report(ctx, paths, pretty):
    """Создать директории отчётов для маршрутов PATHS и вывести их пути."""
    resolved = _resolve(ctx.obj['user_config'])
    runtime = create_runtime_settings(resolved)
    results = []
    for path in paths:
        route = normalise_route(path, resolved.site)
        try:
            task = create_task_report_from_route(route, runtime)
        except OSError as e:
            print_error(f'Ошибка при создании директории отчёта {path}: {e}')
        results.append({
            'path': route.path,
            'url': route.url,
            'report_id': task.report_id,
            'html_payload': str(task.html_payload),
            'report_html': str(task.report_html),
            'report_json': str(task.report_json),
        })
    click.echo(json.dumps(results, ensure_ascii=False, indent=2 if pretty else None))

if __name__ == "__main__":
    cli()
