"""Evaluate command: classify segments with the experiment TSCs."""

import time
from pathlib import Path
from threading import Event, Thread

import typer
from rich.live import Live
from rich.text import Text

from ..app import app, console, get_json_mode
from ..utils import ExitCode, Output, format_elapsed, setup_logging
from .sizes import resolve_tscs
from ...config import get_config
from ...data import load_segments
from ...evaluation import (
    EvaluationProgress,
    run_evaluation,
    write_plot_data_csv,
    write_serialized_results,
)
from ...tsc import ExclusivePolicy, possible_instance_count

_BAR_WIDTH = 30


def _build_progress_display(snap: dict, elapsed: float) -> Text:
    """Build a Rich Text renderable showing live evaluation progress.

    Args:
        snap: Snapshot dict from EvaluationProgress.snapshot()
        elapsed: Elapsed seconds since evaluation start
    """
    text = Text()
    done = snap.get("segments_done", 0)
    total = snap.get("segments_total", 0)
    fraction = snap.get("fraction_done", 0.0)

    filled = round(fraction * _BAR_WIDTH)
    bar = "█" * filled + "░" * (_BAR_WIDTH - filled)
    text.append(bar, style="cyan")
    text.append(
        f" {done}/{total} segments ({fraction:.0%}) | "
        f"{snap.get('valid_instances', 0):,} instances | "
        f"{snap.get('issues', 0)} issues | {format_elapsed(elapsed)}",
        style="cyan bold",
    )
    return text


@app.command("evaluate")
def evaluate_command(
    segment_files: list[Path] = typer.Argument(
        ..., help="Segment files (JSON Lines, one annotated segment per line)"
    ),
    all_ego: bool = typer.Option(
        False, "--all-ego", help="Treat every vehicle as ego"
    ),
    write_plot_data: bool = typer.Option(
        False, "--write-plot-data", help="Write per-TSC instance counts as CSV"
    ),
    save_results: bool = typer.Option(
        False, "--save-results", help="Write serialized results as JSON"
    ),
    output: Path | None = typer.Option(
        None, "--output", "-o", help="Output directory (default from config)"
    ),
    tsc_files: list[Path] | None = typer.Option(
        None, "--tsc", help="YAML TSC declaration(s) instead of the experiment TSCs"
    ),
    policy: str | None = typer.Option(
        None, "--policy", help="Exclusive conflict policy: report_all | first | reject"
    ),
    workers: int | None = typer.Option(
        None, "--workers", "-w", min=1, help="Worker threads"
    ),
    min_ticks: int | None = typer.Option(
        None, "--min-ticks", min=0, help="Minimum ticks per segment"
    ),
    quiet: bool = typer.Option(False, "--quiet", "-q", help="Suppress progress output"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show detailed logs"),
    debug: bool = typer.Option(
        False, "--debug", help="Show debug-level logs (very verbose)"
    ),
):
    """
    Evaluate every TSC on the given segments and report valid instances.

    Example:
        carla-tsc evaluate segments.jsonl
        carla-tsc evaluate runs/*.jsonl --all-ego --save-results -o results/
        carla-tsc evaluate segments.jsonl --tsc my_tree.yaml --policy reject
    """
    out = Output(console=console, json_mode=get_json_mode())
    setup_logging(console, verbose=verbose, debug=debug, json_mode=out.json_mode)
    start_time = time.time()

    config = get_config()
    effective_policy = policy or config.evaluation.exclusive_policy
    try:
        exclusive_policy = ExclusivePolicy(effective_policy)
    except ValueError:
        out.error(
            f"Invalid exclusive policy: {effective_policy}",
            suggestion="Use one of: report_all, first, reject",
        )
        raise typer.Exit(out.finish())
    effective_workers = workers or config.evaluation.max_workers
    effective_min_ticks = (
        min_ticks if min_ticks is not None else config.evaluation.min_segment_tick_count
    )
    do_plot_data = write_plot_data or config.output.write_plot_data
    do_save = save_results or config.output.save_results
    output_dir = output or Path(config.output.output_dir)

    settings = {
        "all_ego": all_ego,
        "write_plot_data": do_plot_data,
        "save_results": do_save,
        "exclusive_policy": exclusive_policy.value,
        "workers": effective_workers,
        "min_segment_tick_count": effective_min_ticks,
    }
    out.set_data("settings", settings)
    out.text("Executing with the following settings:")
    for key, value in settings.items():
        out.text(f"  --{key}={value}")
    out.blank()

    tscs = resolve_tscs(out, tsc_files)
    if tscs is None:
        raise typer.Exit(out.finish())
    if not out.json_mode:
        out.table(
            "TSC sizes",
            ["TSC", "Possible instances"],
            [[t.identifier, f"{possible_instance_count(t):,}"] for t in tscs],
        )

    for path in segment_files:
        if not path.exists():
            out.error(
                f"Segments file not found: {path}", exit_code=ExitCode.FILE_NOT_FOUND
            )
            raise typer.Exit(out.finish())
    try:
        segments = load_segments(
            segment_files,
            use_every_vehicle_as_ego=all_ego,
            min_segment_tick_count=effective_min_ticks,
        )
    except (OSError, UnicodeDecodeError) as e:
        out.error(f"Failed to load segments: {e}", exit_code=ExitCode.DATA_ERROR)
        raise typer.Exit(out.finish())

    out.success(f"Loaded {len(segments):,} segments", segment_count=len(segments))
    if not segments:
        out.warning("No segments left after filtering; results will be empty")

    progress_state = EvaluationProgress()
    run = None
    evaluation_error = None

    def do_evaluation():
        nonlocal run, evaluation_error
        try:
            run = run_evaluation(
                tscs,
                segments,
                max_workers=effective_workers,
                policy=exclusive_policy,
                progress=progress_state,
                settings=settings,
            )
        except Exception as e:
            evaluation_error = e

    if quiet or out.json_mode or verbose or debug:
        do_evaluation()
    else:
        evaluation_done = Event()

        def run_in_thread():
            try:
                do_evaluation()
            finally:
                evaluation_done.set()

        Thread(target=run_in_thread, daemon=True).start()
        with Live(
            _build_progress_display(progress_state.snapshot(), 0.0),
            console=console,
            refresh_per_second=4,
            transient=True,
        ) as live:
            while not evaluation_done.wait(0.25):
                live.update(
                    _build_progress_display(
                        progress_state.snapshot(), time.time() - start_time
                    )
                )

    if evaluation_error is not None:
        out.error(
            f"Evaluation failed: {evaluation_error}",
            exit_code=ExitCode.EVALUATION_ERROR,
        )
        raise typer.Exit(out.finish())

    summaries = run.summaries()
    if out.json_mode:
        out.set_data("summaries", [s.model_dump(mode="json") for s in summaries])
    else:
        out.blank()
        out.table(
            "Valid TSC instances",
            ["TSC", "Possible", "Distinct", "Coverage", "Valid segments", "Conflicts", "Errors"],
            [
                [
                    s.tsc_identifier,
                    f"{s.possible_instance_count:,}",
                    f"{s.distinct_instance_count:,}",
                    f"{s.coverage:.2%}",
                    f"{s.segments_with_valid_instance:,}/{s.segments_evaluated:,}",
                    str(s.exclusive_conflicts),
                    str(s.predicate_errors),
                ]
                for s in summaries
            ],
        )

    if do_plot_data:
        files = write_plot_data_csv(run, output_dir)
        out.success(
            f"Wrote {len(files)} plot data files to {output_dir}",
            plot_data_files=[str(f) for f in files],
        )
    if do_save:
        path = write_serialized_results(run, output_dir)
        out.success(f"Saved results to {path}", results_file=str(path))

    out.text(f"\nDone in {format_elapsed(time.time() - start_time)}")
    raise typer.Exit(out.finish())
