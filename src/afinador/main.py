from __future__ import annotations

import argparse
import logging
import sys
import time
from typing import Optional

from .app import PracticeApp
from .config import AudioConfig, MetronomeConfig, TunerConfig, validate_bpm
from .console import ConsoleNotifier
from .errors import AudioDeviceError, InvalidTempoError

logger = logging.getLogger(__name__)


def parse_args(argv: Optional[list[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Afinador de violao e metronomo")
    parser.add_argument("--samplerate", type=int, default=44100, help="Sample rate")
    parser.add_argument("--blocksize", type=int, default=2048, help="Tamanho do bloco de audio")
    parser.add_argument(
        "--duration",
        type=float,
        help="Para depois de N segundos (padrao: ate Ctrl+C)",
    )
    parser.add_argument(
        "--log-level",
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Nivel de log",
    )
    parser.add_argument("--log-file", help="Grava o log completo neste arquivo")

    sub = parser.add_subparsers(dest="command", required=True)
    sub.add_parser("tuner", help="Afinador pelo microfone")
    metro = sub.add_parser("metronome", help="Metronomo")
    metro.add_argument("--bpm", type=int, default=120, help="Batidas por minuto (40-218)")
    return parser.parse_args(argv)


def setup_logging(level: str = "WARNING", log_file: Optional[str] = None) -> None:
    handlers: list[logging.Handler] = []

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(getattr(logging, level.upper()))
    console_handler.setFormatter(logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s"))
    handlers.append(console_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(
            logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(funcName)s:%(lineno)d - %(message)s")
        )
        handlers.append(file_handler)

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.setLevel(logging.DEBUG if log_file else getattr(logging, level.upper()))
    for handler in handlers:
        root_logger.addHandler(handler)


def main(argv: Optional[list[str]] = None) -> int:
    args = parse_args(argv)
    setup_logging(args.log_level, args.log_file)

    audio_cfg = AudioConfig(sample_rate=args.samplerate, block_size=args.blocksize)
    tuner_cfg = TunerConfig()
    metronome_cfg = MetronomeConfig()

    if args.command == "metronome":
        try:
            metronome_cfg.bpm = validate_bpm(args.bpm)
        except InvalidTempoError as exc:
            print(f"Erro: {exc}", file=sys.stderr)
            return 2

    notifier = ConsoleNotifier(metronome_cfg.beats_per_bar, tuner_cfg.in_tune_cents)
    app = PracticeApp(
        notifier,
        audio_config=audio_cfg,
        tuner_config=tuner_cfg,
        metronome_config=metronome_cfg,
    )

    try:
        if args.command == "tuner":
            app.toggle_tuner()
        else:
            app.toggle_metronome()
    except AudioDeviceError as exc:
        print(f"Erro: {exc}", file=sys.stderr)
        return 1

    started_at = time.perf_counter()
    try:
        while args.duration is None or time.perf_counter() - started_at < args.duration:
            if app.tuner_running:
                app.tuner.poll()
            time.sleep(0.01)
    except KeyboardInterrupt:
        pass
    finally:
        app.stop()
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
