import os
import sys
import signal
import argparse

try:
    from rich.console import Console
    from rich.table import Table
    from rich.panel import Panel
    from rich.progress import Progress, BarColumn, TextColumn
    from rich import box
except ImportError:
    print("Error: The 'rich' library is required for the CLI but not installed.", file=sys.stderr)
    print("Please install it with: pip install tagwave[cli]", file=sys.stderr)
    sys.exit(1)

from tagwavelib import __version__
from tagwavelib.chunks import chunk_ids, notable_chunks
from tagwavelib.config import ConfigError, default_config, load_preset, merge_configs, validate_config
from tagwavelib.controller import SessionController
from tagwavelib.envelope import build_envelope
from tagwavelib.errors import TagwaveError
from tagwavelib.reports import save_tags_json
from tagwavelib.timeline import format_time

console = Console()


def non_negative_float(value):
    fvalue = float(value)
    if fvalue < 0:
        raise argparse.ArgumentTypeError("must be >= 0")
    return fvalue


def positive_int(value):
    ivalue = int(value)
    if ivalue <= 0:
        raise argparse.ArgumentTypeError("must be a positive integer")
    return ivalue


def parse_arguments(argv=None):
    parser = argparse.ArgumentParser(
        description="tagwave - inspect, play and tag WAV recordings",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter
    )
    parser.add_argument("--version", action="version",
                        version=f"tagwave {__version__}")
    parser.add_argument("--preset", type=str, default=None,
                        help="JSON preset with configuration overrides")

    sub = parser.add_subparsers(dest="command", required=True)

    p_info = sub.add_parser("info", help="Show format details of a WAV file")
    p_info.add_argument("file", type=str)

    p_env = sub.add_parser("envelope", help="Draw the waveform envelope as text")
    p_env.add_argument("file", type=str)
    p_env.add_argument("--width", type=positive_int, default=None,
                       help="Number of columns (defaults to the terminal width)")
    p_env.add_argument("--screen-width", type=positive_int, default=None,
                       help="Derive the column count from this screen width instead")
    p_env.add_argument("--rows", type=positive_int, default=12,
                       help="Height of the drawing in text rows")

    p_tags = sub.add_parser("tags", help="Toggle tags at the given times and export them")
    p_tags.add_argument("file", type=str)
    p_tags.add_argument("--mark", type=non_negative_float, action="append", default=[],
                        help="Time (s) at which to toggle a tag; repeat for every press")
    p_tags.add_argument("--out", type=str, default=None,
                        help="Write the JSON export to this path")

    p_play = sub.add_parser("play", help="Play a WAV file from a start position")
    p_play.add_argument("file", type=str)
    p_play.add_argument("--start", type=non_negative_float, default=0.0,
                        help="Start position (s)")

    if argv is None and len(sys.argv) == 1:
        parser.print_help(sys.stderr)
        sys.exit(1)

    return parser.parse_args(argv)


def build_config(args):
    config = default_config()
    if args.preset:
        config = merge_configs(config, load_preset(args.preset))
    validate_config(config)
    return config


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------

def cmd_info(args, config):
    with open(args.file, "rb") as f:
        data = f.read()
    with SessionController(config=config) as controller:
        audio = controller.load(data, os.path.basename(args.file))
        width = controller.display_width()

    ids = chunk_ids(data)
    extra = notable_chunks(ids)

    table = Table(box=box.SIMPLE, show_header=False)
    table.add_column("Field", style="bold")
    table.add_column("Value")
    table.add_row("File", os.path.basename(args.file))
    table.add_row("Chunks", ", ".join(repr(c) for c in ids))
    if extra:
        table.add_row("Extra chunks", ", ".join(extra))
    table.add_row("Channels", str(audio.channels))
    table.add_row("Sample rate", f"{audio.sample_rate} Hz")
    table.add_row("Bit depth", f"{audio.bits_per_sample}-bit")
    table.add_row("Frames", str(audio.sample_count))
    table.add_row("Duration", f"{format_time(audio.duration)} s ({audio.duration / 60:.2f} min)")
    table.add_row("Display width", f"{width} px @ {config['default_screen_width']} px screen")
    console.print(Panel(table, title="tagwave", expand=False))


def render_envelope_rows(envelope, rows):
    """Turn an envelope into *rows* strings, one character per column."""
    grid = [[" "] * len(envelope) for _ in range(rows)]
    for x, (lo, hi) in enumerate(envelope):
        if envelope.is_empty(x):
            continue
        # row 0 is +1.0, row rows-1 is -1.0
        top = int(round((1.0 - hi) / 2.0 * (rows - 1)))
        bottom = int(round((1.0 - lo) / 2.0 * (rows - 1)))
        for y in range(top, bottom + 1):
            grid[y][x] = "█"
    return ["".join(r) for r in grid]


def cmd_envelope(args, config):
    with SessionController(config=config) as controller:
        controller.load_file(args.file)
        if args.screen_width:
            controller.resize(args.screen_width)
            envelope = controller.envelope()
        else:
            width = args.width or max(1, console.width - 4)
            envelope = build_envelope(controller.state.audio.samples, width)
        duration = controller.state.duration

    lines = render_envelope_rows(envelope, args.rows)
    console.print(Panel("\n".join(lines),
                        title=f"{os.path.basename(args.file)} ({format_time(duration)} s, "
                              f"{len(envelope)} columns)",
                        expand=False))


def cmd_tags(args, config):
    with SessionController(config=config) as controller:
        controller.load_file(args.file)
        for t in args.mark:
            controller.seek(t)
            controller.toggle_tag()
        state = controller.state
        exported = controller.export_tags()
        if args.out:
            save_tags_json(state.tags, args.out, config["tag_precision"])

    if state.pending_tag_start is not None:
        console.print(f"[yellow]Open tag at {format_time(state.pending_tag_start)} s "
                      f"was not closed.[/]")
    console.print(exported, highlight=False)
    if args.out:
        console.print(f"[green]Saved:[/] {args.out}")


def cmd_play(args, config):
    try:
        from PySide6.QtCore import QCoreApplication, QTimer
        from tagwaveqt import PlaybackPoller
    except ImportError:
        console.print("[bold red]Error:[/] playback needs PySide6. "
                      "Install it with: pip install tagwave[qt]")
        return 1

    app = QCoreApplication.instance() or QCoreApplication(sys.argv[:1])

    with SessionController(config=config) as controller:
        audio = controller.load_file(args.file)
        controller.click(args.start)
        poller = PlaybackPoller(controller)

        # let Python see Ctrl-C while Qt's loop is running
        signal.signal(signal.SIGINT, lambda *_: app.quit())
        keepalive = QTimer()
        keepalive.start(200)
        keepalive.timeout.connect(lambda: None)

        exit_code = 0
        with Progress(TextColumn("[bold]{task.description}"), BarColumn(),
                      TextColumn("{task.fields[pos]} / " + format_time(audio.duration) + " s"),
                      console=console) as progress:
            task = progress.add_task(os.path.basename(args.file),
                                     total=audio.duration, pos=format_time(args.start))

            def on_time(t):
                progress.update(task, completed=t, pos=format_time(t))

            def on_error(message):
                nonlocal exit_code
                console.print(f"[bold red]Playback error:[/] {message}")
                exit_code = 1
                app.quit()

            poller.time_updated.connect(on_time)
            poller.playback_finished.connect(app.quit)
            poller.error.connect(on_error)

            if poller.play():
                app.exec()
            elif exit_code == 0:
                console.print("[yellow]Nothing to play from that position.[/]")

        poller.detach()
        keepalive.stop()
    return exit_code


COMMANDS = {
    "info": cmd_info,
    "envelope": cmd_envelope,
    "tags": cmd_tags,
    "play": cmd_play,
}


def main(argv=None):
    args = parse_arguments(argv)
    try:
        config = build_config(args)
        return COMMANDS[args.command](args, config) or 0
    except (ConfigError, TagwaveError, OSError) as e:
        console.print(f"[bold red]Error:[/] {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
