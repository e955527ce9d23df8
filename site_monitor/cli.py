# === FILE: site_monitor/cli.py ===
#!/usr/bin/env python3
"""
Точка входа для запуска монитора SiteMonitor через командную строку.

Команды:
  run       Обойти сайт, сохранить снимки и manifest.json, вывести сводку
  config    Показать текущую конфигурацию

Общие опции:
  --config PATH       Необязательный YAML/JSON-конфиг (переменные окружения важнее)
  --log-level LEVEL   Уровень логирования (DEBUG, INFO, ...)
  --log-file PATH     Файл для логов (stderr, если не указан)
  --log-format FORMAT Формат логирования

Команда run опции:
  --max-pages INT     Переопределить MAX_PAGES
  --html PATH         Дополнительно сохранить HTML-просмотр манифеста
  --template DIR      Папка с Jinja2-шаблоном manifest.html.j2
  --pretty            Преформатировать JSON-сводку (отступ 2)
  --run-timeout SEC   Общий лимит времени; по истечении сохраняется частичный манифест

Дополнительно:
  --version, -v       Показать версию SiteMonitor

Пример:
  TARGET_URL=https://example.com/ site-monitor run --pretty --max-pages 50
"""
import asyncio
import json
import sys
from pathlib import Path

import click

from site_monitor import __version__
from site_monitor.config import load_config
from site_monitor.engine import start_run
from site_monitor.errors import FatalConfigError
from site_monitor.logger import init_logging
from site_monitor.report.html_report import render_html

CONTEXT_SETTINGS = dict(help_option_names=["--help"])


def print_error(message: str):
    click.secho(message, fg='red', err=True)
    sys.exit(1)


@click.group(context_settings=CONTEXT_SETTINGS)
@click.version_option(__version__, '--version', '-v', message='SiteMonitor, version %(version)s')
@click.option(
    '--config', '-c', 'config_path',
    default=None,
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help='Путь к файлу конфигурации YAML/JSON.'
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
def cli(ctx, config_path, log_level, log_file, log_format):
    """Группа команд SiteMonitor CLI."""
    init_logging(
        level=log_level,
        log_file=str(log_file) if log_file else None,
        log_format=log_format
    )
    try:
        cfg = load_config(config_path)
    except (FatalConfigError, FileNotFoundError) as e:
        print_error(f'Ошибка конфигурации: {e}')
    ctx.ensure_object(dict)
    ctx.obj['config'] = cfg


@cli.command('run', context_settings=CONTEXT_SETTINGS)
@click.option(
    '--max-pages', '-l', 'max_pages',
    type=click.IntRange(min=1),
    default=None,
    help='Макс. число страниц (override MAX_PAGES)'
)
@click.option(
    '--html', 'html_output',
    default=None,
    type=click.Path(writable=True, dir_okay=False, path_type=Path),
    help='Сохранить HTML-просмотр манифеста в файл'
)
@click.option(
    '--template', '-t', 'template_dir',
    default=None,
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    help='Папка с Jinja2-шаблонами (по умолчанию встроенная)'
)
@click.option(
    '--pretty', is_flag=True,
    help='Преформатировать JSON-вывод (отступ 2)'
)
@click.option(
    '--run-timeout', 'run_timeout',
    type=float,
    default=None,
    help='Общий лимит времени запуска (секунд)'
)
@click.pass_context
def run(ctx, max_pages, html_output, template_dir, pretty, run_timeout):
    """Выполнить один проход мониторинга."""
    cfg = ctx.obj['config']
    if max_pages is not None:
        cfg = cfg.model_copy(update={'max_pages': max_pages})
    try:
        manifest = asyncio.run(start_run(cfg, run_timeout=run_timeout))
    except FatalConfigError as e:
        print_error(f'Ошибка конфигурации: {e}')
    except OSError as e:
        print_error(f'Ошибка записи результатов: {e}')

    if html_output:
        try:
            saved_html = render_html(manifest, template_dir, html_output)
            click.echo(f'HTML report: {saved_html}', err=True)
        except Exception as e:
            print_error(f'Ошибка при сохранении HTML: {e}')

    indent = 2 if pretty else None
    click.echo(json.dumps(manifest.summary(), ensure_ascii=False, indent=indent))


@cli.command('config', context_settings=CONTEXT_SETTINGS)
@click.pass_context
def show_config(ctx):
    """Показать текущую конфигурацию в JSON."""
    cfg = ctx.obj['config']
    click.echo(cfg.model_dump_json(indent=2))


def main():
    cli(obj={})


if __name__ == "__main__":
    main()
