"""CLI entry point: load a model, transcribe one file, always free the handle."""

from __future__ import annotations

import json
import logging
import sys
from pathlib import Path

import click

from whisper_wrapper import __version__

log = logging.getLogger('ww.cli')


def _flag_overrides(model, language, output_format, gpu, flash_attn, processors) -> dict:
    """Turn explicitly passed CLI flags into a config override dict."""
    init: dict = {}
    full: dict = {}
    if model is not None:
        init['model'] = model
    if gpu is not None:
        init['gpu'] = gpu
    if flash_attn:
        init['flash_attn'] = True
    if language is not None:
        full['language'] = language
    if output_format is not None:
        full['format'] = output_format
    if processors is not None:
        full['n_processors'] = processors

    overrides: dict = {}
    if init:
        overrides['init'] = init
    if full:
        overrides['full'] = full
    return overrides


def _format_segment(segment: dict) -> str:
    line = f'[{segment["from"]} -> {segment["to"]}] {segment["text"]}'
    if 'confidence' in segment:
        line += f'  ({segment["lang"]}, confidence {segment["confidence"]:.2f})'
    return line


@click.command()
@click.option(
    '-m',
    '--model',
    default=None,
    help='Model file or whisper.cpp model name (default: largest local .bin model).',
)
@click.option(
    '-f',
    '--audio',
    'audio_path',
    required=True,
    type=click.Path(exists=True, dir_okay=False),
    help='Audio file to transcribe (any format ffmpeg can decode).',
)
@click.option('-l', '--language', default=None, help="Spoken language code, or 'auto' to detect.")
@click.option(
    '--format',
    'output_format',
    default=None,
    type=click.Choice(['text', 'detail'], case_sensitive=False),
    help="'detail' adds language, confidence and tokens per segment.",
)
@click.option('--gpu/--no-gpu', default=None, help='Use the GPU backend when the binding has one.')
@click.option('--flash-attn', is_flag=True, default=False, help='Enable flash attention.')
@click.option('-p', '--processors', default=None, type=click.IntRange(min=1), help='Parallel decode processors.')
@click.option('--json', 'as_json', is_flag=True, help='Print segments as JSON.')
@click.option(
    '-c',
    '--config',
    'config_path',
    default=None,
    type=click.Path(exists=True),
    help='Path to YAML config file.',
)
@click.option('-v', '--verbose', is_flag=True, help='Log progress to stderr.')
@click.version_option(version=__version__)
def cli(model, audio_path, language, output_format, gpu, flash_attn, processors, as_json, config_path, verbose):
    """whisper-wrapper -- transcribe an audio file with whisper.cpp."""
    from whisper_wrapper.l1_entities.errors import (  # noqa: PLC0415 -- deferred: not needed for --help
        ModelResolutionError,
        WhisperWrapperError,
    )
    from whisper_wrapper.l3_interface_adapters.controllers import (  # noqa: PLC0415 -- deferred: native binding not loaded on --help
        binding_controller,
    )
    from whisper_wrapper.l3_interface_adapters.gateways.hf_model_resolver import (  # noqa: PLC0415 -- deferred: hub client not loaded on --help
        HfModelResolver,
    )
    from whisper_wrapper.l3_interface_adapters.gateways.yaml_config_loader import (  # noqa: PLC0415 -- deferred: yaml stack not loaded on --help
        YamlConfigLoader,
    )
    from whisper_wrapper.l4_frameworks_and_drivers.infra_config import (  # noqa: PLC0415 -- deferred: not needed for --help
        build_app_config,
    )
    from whisper_wrapper.l4_frameworks_and_drivers.logging_setup import (  # noqa: PLC0415 -- deferred: not needed for --help
        setup_logging,
    )

    overrides = _flag_overrides(model, language, output_format, gpu, flash_attn, processors)
    try:
        raw = YamlConfigLoader().load_raw(config_path, overrides=overrides or None)
        config = build_app_config(raw)
    except (FileNotFoundError, ValueError) as e:
        click.echo(f'Error: {e}', err=True)
        sys.exit(1)

    setup_logging(verbose=verbose, log_file=Path(config.log_file) if config.log_file else None)

    try:
        model_path = HfModelResolver().resolve(config.init.model)
    except ModelResolutionError as e:
        click.echo(f'Error: {e}', err=True)
        sys.exit(1)

    click.echo(f'> Using model: {model_path}', err=True)
    click.echo(f'> Using audio: {audio_path}', err=True)

    try:
        handle = binding_controller.init(
            {'model': model_path, 'gpu': config.init.gpu, 'flash_attn': config.init.flash_attn}
        )
    except WhisperWrapperError as e:
        click.echo(f'Error: {e}', err=True)
        sys.exit(1)

    try:
        segments = binding_controller.full(handle, {**config.full, 'fname_inp': str(audio_path)})
    except WhisperWrapperError as e:
        log.error('Transcription failed: %s', e, exc_info=True)
        click.echo(f'Error: {e}', err=True)
        sys.exit(1)
    finally:
        binding_controller.free(handle)

    if as_json:
        click.echo(json.dumps(segments, ensure_ascii=False, indent=2))
        return
    for segment in segments:
        click.echo(_format_segment(segment))
