#!/usr/bin/env python3
"""
Точка входа linkz: периодически опрашивает документ и печатает новые ссылки.

Команды:
  watch     Опрашивать URL каждые INTERVAL секунд и печатать новые ссылки
  config    Показать итоговую конфигурацию

Общие опции:
  --config PATH       Путь к YAML/JSON-конфигу (необязательно)
  --log-level LEVEL   Уровень логирования (DEBUG, INFO, ...)
  --log-file PATH     Файл для логов (только stderr, если не указан)
  --log-format FORMAT Формат логирования

Команда watch опции:
  --timeout SEC        Таймаут одного запроса
  --user-agent UA      Заголовок User-Agent
  --retry-times N      Повторы при 429/5xx и сетевых ошибках
  --max-in-flight N    Сколько тиков может выполняться одновременно
  --insecure           Не проверять TLS-сертификат
  --max-ticks N        Остановиться после N тиков

Дополнительно:
  --version, -v       Показать версию linkz

Пример:
  linkz watch https://example.com 30
"""
import asyncio
import sys
from pathlib import Path

import click

from linkz import __version__
from linkz.config import ConfigurationError, build_config
from linkz.engine import start_watch
from linkz.logger import DEFAULT_FORMAT, init_logging, logger

CONTEXT_SETTINGS = dict(help_option_names=["--help", "-h"])


def print_error(message: str):
    click.secho(message, fg='red', err=True)
    sys.exit(1)


@click.group(context_settings=CONTEXT_SETTINGS)
@click.version_option(__version__, '--version', '-v', message='linkz, version %(version)s')
@click.option(
    '--config', '-c', 'config_path',
    default=None,
    type=click.Path(dir_okay=False, path_type=Path),
    help='Путь к файлу конфигурации YAML или JSON.'
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
    help='Путь к файлу логов (только stderr, если не указан)'
)
@click.option(
    '--log-format', 'log_format',
    default=DEFAULT_FORMAT,
    help='Строка формата для логов'
)
@click.pass_context
def cli(ctx, config_path, log_level, log_file, log_format):
    """linkz: сообщает о новых ссылках на странице."""
    init_logging(
        level=log_level,
        log_file=str(log_file) if log_file else None,
        log_format=log_format
    )
    ctx.ensure_object(dict)
    ctx.obj['config_path'] = config_path


@cli.command('watch', context_settings=CONTEXT_SETTINGS)
@click.argument('url', required=False)
@click.argument('interval', required=False, type=int)
@click.option('--timeout', 'timeout', type=float, default=None, help='Таймаут одного запроса (секунд)')
@click.option('--user-agent', 'user_agent', default=None, help='Заголовок User-Agent')
@click.option('--retry-times', 'retry_times', type=int, default=None, help='Повторы при 429/5xx')
@click.option('--max-in-flight', 'max_in_flight', type=int, default=None,
              help='Сколько тиков может выполняться одновременно')
@click.option('--insecure', is_flag=True, help='Не проверять TLS-сертификат цели')
@click.option('--max-ticks', 'max_ticks', type=click.IntRange(min=1), default=None,
              help='Остановиться после N тиков (по умолчанию работать бесконечно)')
@click.pass_context
def watch(ctx, url, interval, timeout, user_agent, retry_times, max_in_flight, insecure, max_ticks):
    """Опрашивать URL каждые INTERVAL секунд и печатать новые ссылки."""
    try:
        cfg = build_config(
            ctx.obj['config_path'],
            target_url=url,
            interval=interval,
            timeout=timeout,
            user_agent=user_agent,
            retry_times=retry_times,
            max_in_flight=max_in_flight,
            verify_ssl=False if insecure else None,
        )
    except ConfigurationError as e:
        print_error(f'Ошибка конфигурации: {e}')

    try:
        asyncio.run(start_watch(cfg, max_ticks=max_ticks))
    except KeyboardInterrupt:
        logger.info("Interrupted, exiting")


@cli.command('config', context_settings=CONTEXT_SETTINGS)
@click.argument('url', required=False)
@click.argument('interval', required=False, type=int)
@click.pass_context
def show_config(ctx, url, interval):
    """Показать итоговую конфигурацию в JSON."""
    try:
        cfg = build_config(ctx.obj['config_path'], target_url=url, interval=interval)
    except ConfigurationError as e:
        print_error(f'Ошибка конфигурации: {e}')
    click.echo(cfg.model_dump_json(indent=2))


if __name__ == "__main__":
    cli()
