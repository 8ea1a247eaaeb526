# === FILE: site_snapshot/cli.py ===
#!/usr/bin/env python3
"""
Точка входа SiteSnapshot: офлайн-зеркало сайта из командной строки.

Команды:
  mirror    Обойти сайт, сохранить страницы и ассеты, упаковать в zip
  preview   Раздать готовое зеркало по HTTP
  config    Показать итоговую конфигурацию

Общие опции:
  --log-level LEVEL   Уровень логирования (DEBUG, INFO, ...)
  --log-file PATH     Файл для логов (stdout, если не указан)
  --log-format FORMAT Формат логирования

Команда mirror опции:
  --config PATH       YAML/JSON-конфиг (опционально)
  --url URL           Стартовый URL (спросим, если не указан)
  --alias NAME        Имя зеркала (спросим, если не указано)
  --max-pages INT     Лимит страниц (override max_pages)
  --concurrency INT   Число страниц одновременно
  --timeout SEC       Таймаут загрузки страницы
  --output-root DIR   Каталог для зеркал (default: snapshot)
  --headful           Показать окно браузера
  --no-archive        Не создавать zip-архив

Дополнительно:
  --version, -v       Показать версию SiteSnapshot

Пример:
  site-snapshot mirror --url https://example.com/blog/ --alias blog --max-pages 20
  site-snapshot preview blog --port 8080
"""
import asyncio
import sys
from pathlib import Path

import click
from pydantic import ValidationError

from site_snapshot import __version__
from site_snapshot.config import build_config, read_config_data
from site_snapshot.engine import start_snapshot
from site_snapshot.errors import SnapshotError
from site_snapshot.logger import init_logging
from site_snapshot.preview import list_aliases, serve

CONTEXT_SETTINGS = dict(help_option_names=["--help", "-h"])


def print_error(message: str):
    click.secho(message, fg='red', err=True)
    sys.exit(1)


def _config_options(func):
    """Опции, общие для mirror и config."""
    options = [
        click.option('--config', '-c', 'config_path', default=None,
                     type=click.Path(exists=True, dir_okay=False, path_type=Path),
                     help='Путь к файлу конфигурации YAML/JSON.'),
        click.option('--url', '-u', 'seed_url', default=None, help='Стартовый URL.'),
        click.option('--alias', '-a', 'alias', default=None, help='Имя зеркала (каталог и архив).'),
        click.option('--max-pages', '-l', 'max_pages', type=click.IntRange(min=1), default=None,
                     help='Макс. число страниц (override max_pages)'),
        click.option('--concurrency', type=click.IntRange(min=1), default=None,
                     help='Число страниц, обрабатываемых одновременно'),
        click.option('--timeout', 'navigation_timeout', type=float, default=None,
                     help='Таймаут загрузки страницы (секунд)'),
        click.option('--output-root', 'output_root', default=None,
                     type=click.Path(file_okay=False, path_type=Path),
                     help='Каталог для зеркал'),
    ]
    for option in reversed(options):
        func = option(func)
    return func


def _resolve_config(config_path, prompt_missing=True, **overrides):
    try:
        data = read_config_data(config_path) if config_path else {}
    except Exception as e:
        print_error(f'Ошибка загрузки конфигурации: {e}')

    if prompt_missing:
        if overrides.get('seed_url') is None and not data.get('seed_url'):
            overrides['seed_url'] = click.prompt('URL сайта для зеркалирования')
        if overrides.get('alias') is None and not data.get('alias'):
            overrides['alias'] = click.prompt('Алиас (имя каталога зеркала)')

    try:
        return build_config(data, **overrides)
    except ValidationError as e:
        print_error(f'Ошибка конфигурации: {e}')


@click.group(context_settings=CONTEXT_SETTINGS)
@click.version_option(__version__, '--version', '-v', message='SiteSnapshot, version %(version)s')
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
    help='Путь к файлу логов (stdout, если не указан)'
)
@click.option(
    '--log-format', 'log_format',
    default='%(asctime)s %(levelname)s %(message)s',
    show_default=True,
    help='Строка формата для логов'
)
@click.pass_context
def cli(ctx, log_level, log_file, log_format):
    """Группа команд SiteSnapshot CLI."""
    init_logging(
        level=log_level,
        log_file=str(log_file) if log_file else None,
        log_format=log_format
    )
    ctx.ensure_object(dict)


@cli.command('mirror', context_settings=CONTEXT_SETTINGS)
@_config_options
@click.option('--headful', is_flag=True, help='Запустить браузер с окном')
@click.option('--no-archive', 'no_archive', is_flag=True, help='Не создавать zip-архив')
def mirror(config_path, seed_url, alias, max_pages, concurrency, navigation_timeout, output_root,
           headful, no_archive):
    """Создать офлайн-зеркало сайта."""
    cfg = _resolve_config(
        config_path,
        seed_url=seed_url,
        alias=alias,
        max_pages=max_pages,
        concurrency=concurrency,
        navigation_timeout=navigation_timeout,
        output_root=output_root,
        headless=False if headful else None,
        create_archive=False if no_archive else None,
    )
    click.echo(f'Mirroring {cfg.seed} into {cfg.output_dir}')
    try:
        result = asyncio.run(start_snapshot(cfg))
    except SnapshotError as e:
        print_error(f'Ошибка: {e}')
    except Exception as e:
        print_error(f'Ошибка при зеркалировании: {e}')

    click.echo(f'Captured {len(result.pages)} pages, {len(result.assets)} assets: {result.output_dir}')
    if result.archive_path:
        click.echo(f'Archive: {result.archive_path}')


@cli.command('preview', context_settings=CONTEXT_SETTINGS)
@click.argument('alias', required=False)
@click.option('--output-root', 'output_root', default='snapshot', show_default=True,
              type=click.Path(file_okay=False, path_type=Path), help='Каталог с зеркалами')
@click.option('--host', default='127.0.0.1', show_default=True)
@click.option('--port', default=8080, show_default=True, type=click.IntRange(1, 65535))
def preview(alias, output_root, host, port):
    """Раздать зеркало по HTTP для ручной проверки."""
    aliases = list_aliases(output_root)
    if not aliases:
        print_error(f"В '{output_root}' нет зеркал для просмотра.")
    if alias is None:
        alias = click.prompt('Выберите алиас', type=click.Choice(aliases))
    elif alias not in aliases:
        print_error(f"Зеркало '{alias}' не найдено в '{output_root}'.")

    target = output_root / alias
    click.echo(f'Serving {target} on http://{host}:{port}/')
    serve(target, host=host, port=port)


@cli.command('config', context_settings=CONTEXT_SETTINGS)
@_config_options
def show_config(config_path, seed_url, alias, max_pages, concurrency, navigation_timeout, output_root):
    """Показать итоговую конфигурацию в JSON."""
    cfg = _resolve_config(
        config_path,
        prompt_missing=False,
        seed_url=seed_url,
        alias=alias,
        max_pages=max_pages,
        concurrency=concurrency,
        navigation_timeout=navigation_timeout,
        output_root=output_root,
    )
    click.echo(cfg.model_dump_json(indent=2))


if __name__ == "__main__":
    cli()
