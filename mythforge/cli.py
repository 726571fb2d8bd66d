from __future__ import annotations

import argparse
import logging
import random
from pathlib import Path
from typing import Callable, Optional

from rich import print
from rich.table import Table

from .config import TARGETS
from .exceptions import MythforgeError
from .generator import EmergentOptions, build_session, generate_emergent, run_story
from .presets import PRESETS
from .seed import load_seed
from .settings import apply_env_overrides, get_settings, load_user_settings, save_user_settings
from .targets import generate_project
from .world import build_world_state, generate_base_storylets

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


def _configure_logging(verbose: bool = False) -> None:
    level = "DEBUG" if verbose else get_settings().log_level.upper()
    logging.basicConfig(level=getattr(logging, level, logging.INFO), format=LOG_FORMAT)


def _bounded(cast: Callable, low, high) -> Callable[[str], object]:
    def parse(raw: str):
        try:
            value = cast(raw)
        except ValueError:
            raise argparse.ArgumentTypeError(f"expected a number, got {raw!r}")
        if not low <= value <= high:
            raise argparse.ArgumentTypeError(f"must be between {low} and {high}")
        return value
    return parse


def _output_dir(args: argparse.Namespace, target: str) -> Path:
    if args.output:
        return Path(args.output)
    return Path(get_settings().default_output_dir) / target


def cmd_seed(args: argparse.Namespace) -> None:
    seed = load_seed(args.path)
    target = args.target or get_settings().default_target
    out = _output_dir(args, target)

    storylets = generate_base_storylets(seed, get_settings().storylet_count)
    files = generate_project(seed, target, out, storylets, build_world_state(seed))
    print(f"[bold green]Generated[/] {target} project for '[cyan]{seed.name}[/]' in [magenta]{out}[/]")
    for f in files:
        print(f"  [dim]{f}[/]")


def cmd_emergent(args: argparse.Namespace) -> None:
    settings = get_settings()
    seed = load_seed(args.path)
    target = args.target or settings.default_target
    options = EmergentOptions(
        target=target,
        output_dir=_output_dir(args, target),
        storylet_count=args.storylets if args.storylets is not None else settings.storylet_count,
        narrative_depth=args.depth or settings.default_depth,
        emergent_mode=not args.no_emergent,
        max_iterations=args.iterations if args.iterations is not None else settings.max_iterations,
        creativity_level=args.creativity if args.creativity is not None else settings.creativity_level,
    )

    print(f"[bold]Forging[/] '[cyan]{seed.name}[/]' "
          f"({options.storylet_count} storylets, depth {options.narrative_depth}, "
          f"{options.max_iterations} iterations)")
    result = generate_emergent(seed, options)

    print(f"[bold green]Generated[/] {len(result.generated_storylets)} storylets "
          f"in {result.generation_time:.2f}s -> [magenta]{options.output_dir}[/]")
    print(f"[bold]Files[/]: {result.statistics['total_files']} | "
          f"[bold]Lines[/]: {result.statistics['lines_of_code']} | "
          f"[bold]Complexity[/]: {result.analysis.complexity_score:.2f} | "
          f"[bold]Coherence[/]: {result.analysis.narrative_coherence:.2f}")
    if result.expansion_suggestions:
        print("[bold]Ideas for expansion:[/]")
        for suggestion in result.expansion_suggestions:
            print(f"  • {suggestion}")


def cmd_simulate(args: argparse.Namespace) -> None:
    settings = get_settings()
    seed = load_seed(args.path)
    rng = random.Random(args.rng_seed) if args.rng_seed is not None else None
    catalog, world, context = build_session(
        seed, args.depth or settings.default_depth, settings.storylet_count, rng=rng
    )
    beats = run_story(catalog, world, context, args.rounds, recent_limit=settings.recent_limit)

    table = Table(title=f"{seed.name}: {args.rounds} rounds")
    table.add_column("Round", justify="right")
    table.add_column("Storylet")
    table.add_column("Weight", justify="right")
    table.add_column("Candidates", justify="right")
    for beat in beats:
        if beat.skipped:
            table.add_row(str(beat.round), "[dim](nothing eligible)[/]", "-", "0")
        else:
            table.add_row(str(beat.round), beat.storylet_name, f"{beat.weight:.1f}", str(beat.candidates))
    print(table)


def cmd_storylets(args: argparse.Namespace) -> None:
    seed = load_seed(args.path)
    storylets = generate_base_storylets(seed, get_settings().storylet_count)
    if args.tag:
        tag = args.tag.lower()
        storylets = [s for s in storylets if tag in s.tags]

    table = Table(title=f"{seed.name} storylets")
    table.add_column("Id", style="cyan")
    table.add_column("Trigger")
    table.add_column("Weight", justify="right")
    table.add_column("Cooldown", justify="right")
    table.add_column("Tags", style="dim")
    for s in storylets:
        cooldown = f"{s.cooldown:g}s" if s.cooldown else "-"
        table.add_row(s.id, s.trigger, f"{s.weight:g}", cooldown, ", ".join(s.tags))
    print(table)


def cmd_setup(args: argparse.Namespace) -> None:
    s = load_user_settings()
    print("[bold]Mythforge Setup[/]")
    if args.target:
        s.default_target = args.target
    if args.depth:
        s.default_depth = args.depth
    if args.output:
        s.default_output_dir = args.output
    save_user_settings(s)
    s = apply_env_overrides(s)
    print(f"Default target: [cyan]{s.default_target}[/] | Default depth: [cyan]{s.default_depth}[/] | "
          f"Output: [cyan]{s.default_output_dir}[/]")


def cmd_serve(args: argparse.Namespace) -> None:
    url = f"http://localhost:{args.port}"
    print(f"[bold green]Starting API server at {url}[/]")
    print("[dim]Press Ctrl+C to stop[/]")
    print()
    print("[yellow]SECURITY:[/] This server binds to localhost only (127.0.0.1)")
    print("[yellow]Do NOT expose this to the internet without adding authentication[/]")
    print()

    import uvicorn
    uvicorn.run(
        "mythforge.webapp:app",
        host="127.0.0.1",
        port=args.port,
        log_level="info"
    )


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="mythforge", description="Mythforge: grow storylet-driven myths from seed files")
    sub = p.add_subparsers(dest="cmd", required=True)
    targets = list(TARGETS.keys())
    depths = list(PRESETS.keys())

    sp = sub.add_parser("seed", help="Generate a project from a seed file")
    sp.add_argument("path", help="YAML or JSON seed file")
    sp.add_argument("-t", "--target", choices=targets)
    sp.add_argument("-o", "--output", help="Output directory (default: <output dir>/<target>)")
    sp.add_argument("-v", "--verbose", action="store_true")
    sp.set_defaults(func=cmd_seed)

    sp = sub.add_parser("emergent", help="Grow storylets with the narrative agents, then generate a project")
    sp.add_argument("path", help="YAML or JSON seed file")
    sp.add_argument("-t", "--target", choices=targets)
    sp.add_argument("-o", "--output")
    sp.add_argument("-d", "--depth", choices=depths, help="Narrative depth preset")
    sp.add_argument("-i", "--iterations", type=_bounded(int, 1, 10), help="Agent iterations (1-10)")
    sp.add_argument("-s", "--storylets", type=_bounded(int, 5, 100), help="Base storylet count (5-100)")
    sp.add_argument("-c", "--creativity", type=_bounded(float, 0.0, 1.0), help="Creativity level (0-1)")
    sp.add_argument("--no-emergent", action="store_true", help="Skip the agent pipeline")
    sp.add_argument("-v", "--verbose", action="store_true")
    sp.set_defaults(func=cmd_emergent)

    sp = sub.add_parser("simulate", help="Run the storylet engine and print which storylets fire")
    sp.add_argument("path", help="YAML or JSON seed file")
    sp.add_argument("-r", "--rounds", type=_bounded(int, 1, 1000), default=10)
    sp.add_argument("--rng-seed", type=int, help="Seed the random draws for a reproducible run")
    sp.add_argument("-d", "--depth", choices=depths)
    sp.add_argument("-v", "--verbose", action="store_true")
    sp.set_defaults(func=cmd_simulate)

    sp = sub.add_parser("storylets", help="List the base storylets a seed produces")
    sp.add_argument("path", help="YAML or JSON seed file")
    sp.add_argument("--tag", help="Only show storylets with this tag")
    sp.set_defaults(func=cmd_storylets)

    sp = sub.add_parser("setup", help="Save default target, depth and output directory")
    sp.add_argument("--target", choices=targets)
    sp.add_argument("--depth", choices=depths)
    sp.add_argument("--output")
    sp.set_defaults(func=cmd_setup)

    sp = sub.add_parser("serve", help="Launch the HTTP API")
    sp.add_argument("--port", type=int, default=8001, help="Port to run the server on (default: 8001)")
    sp.set_defaults(func=cmd_serve)

    return p


def main(argv: Optional[list[str]] = None) -> None:
    args = build_parser().parse_args(argv)
    _configure_logging(getattr(args, "verbose", False))
    try:
        args.func(args)
    except MythforgeError as e:
        print(f"[red]Error:[/] {e.user_message}")
        if e.help_text:
            print(f"[dim]{e.help_text}[/]")
        raise SystemExit(1)


if __name__ == "__main__":
    main()
