# main.py
import argparse
import json
import logging
import os
import sys
import traceback
from dataclasses import asdict

from tinyseq.audio.offline import OfflineContext
from tinyseq.config import AppConfig, CompileConfig, PlaybackConfig
from tinyseq.errors import TinySeqError
from tinyseq.notes.model import SequenceSpec
from tinyseq.timeline.envelope import compile_sequence
from tinyseq.timeline.scheduler import Sequencer
from tinyseq.utils.crashlog import log_dir, log_exception, setup_crashlog

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def _init_logging(verbose: bool = False):
    logs = log_dir()
    log_path = os.path.join(logs, "tinyseq.log")

    if logging.getLogger().handlers:
        return

    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format=LOG_FORMAT,
        encoding="utf-8"
    )
    try:
        from logging.handlers import RotatingFileHandler
        fh = RotatingFileHandler(log_path, maxBytes=2*1024*1024, backupCount=3, encoding="utf-8")
        fh.setLevel(logging.DEBUG)
        fh.setFormatter(logging.Formatter(LOG_FORMAT))
        logging.getLogger().addHandler(fh)
    except OSError as e:
        logging.warning("file logging disabled: %s", e)


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(prog="tinyseq", description="Compile and play a tiny note-table sequence.")
    ap.add_argument('song', nargs='?', help="sequence JSON file")
    ap.add_argument('--from-midi', metavar='FILE', help="convert a MIDI file and print the sequence JSON")
    ap.add_argument('--wave', default='square', help="wave for tracks converted from MIDI")
    ap.add_argument('--dump', action='store_true', help="print compiled curves as JSON and exit")
    ap.add_argument('--monitor', action='store_true', help="open the pygame monitor window")
    ap.add_argument('--loop', action='store_true')
    ap.add_argument('--loops', type=int, default=2, help="iterations to run offline when looping")
    ap.add_argument('--volume', type=float, default=1.0)
    ap.add_argument('--epsilon', type=float, default=1e-6)
    ap.add_argument('--noise-seconds', type=float, default=2.0)
    ap.add_argument('-v', '--verbose', action='store_true')
    return ap


def load_sequence(path: str) -> SequenceSpec:
    with open(path, "r", encoding="utf-8") as f:
        return SequenceSpec.from_dict(json.load(f))


def dump_curves(spec: SequenceSpec, cfg: AppConfig) -> dict:
    compiled = compile_sequence(spec, cfg.compile)
    return {
        "duration": compiled.duration,
        "tracks": [
            {
                "wave": t.wave,
                "notes": [asdict(n) for n in t.notes],
                "gain": [list(p) for p in t.gain_curve],
                "frequency": [list(p) for p in t.frequency_curve],
            }
            for t in compiled.tracks
        ],
    }


def run_offline(spec: SequenceSpec, cfg: AppConfig, loop: bool, loops: int, volume: float) -> Sequencer:
    ctx = OfflineContext()
    seq = Sequencer(ctx, spec, cfg=cfg)
    passes = max(1, loops) if loop else 1
    seq.play(loop=loop, volume=volume)
    # the last boundary must not restart: run up to the final pass, then let it end
    ctx.advance_to(seq.duration * (passes - 1))
    seq.set_loop(False)
    ctx.advance_to(seq.duration * passes)
    seq.stop()
    logging.info("Offline run finished: %d pass(es), %d source(s) scheduled",
                 seq.loop_count, len(ctx.sources))
    return seq


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    _init_logging(args.verbose)

    if args.from_midi:
        from tinyseq.midi.parser import midi_to_sequence
        seq = midi_to_sequence(args.from_midi, track_defaults={"wave": args.wave})
        json.dump(seq, sys.stdout, indent=2)
        print()
        return 0

    if not args.song:
        build_parser().error("a sequence JSON file is required")

    cfg = AppConfig(
        compile=CompileConfig(epsilon=args.epsilon),
        playback=PlaybackConfig(noise_seconds=args.noise_seconds),
    )
    try:
        spec = load_sequence(args.song)
    except (OSError, json.JSONDecodeError, TinySeqError) as e:
        logging.error("載入失敗 %s: %s", args.song, e)
        return 2

    if args.dump:
        json.dump(dump_curves(spec, cfg), sys.stdout, indent=2)
        print()
        return 0

    if args.monitor:
        from tinyseq.app import App
        App(cfg, spec, title=os.path.basename(args.song), loop=args.loop, volume=args.volume).run()
        return 0

    run_offline(spec, cfg, args.loop, args.loops, args.volume)
    return 0


def run():
    setup_crashlog()
    try:
        sys.exit(main())
    except Exception as e:
        log_exception("Top-level exception", e)
        logging.error("未捕捉的例外：%s", e, exc_info=True)
        traceback.print_exc()
        sys.exit(1)


if __name__ == '__main__':
    run()
