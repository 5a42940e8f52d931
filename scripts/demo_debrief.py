#!/usr/bin/env python3
"""
Debrief Demo - renders the evaluation of a scripted SVT session.

The session below is the classic failure case: adenosine pushed without
warning, dad screams at the flatline, conversion follows.

Usage:
    python scripts/demo_debrief.py
    python scripts/demo_debrief.py --markdown
"""

import argparse
import logging

import structlog
from rich.console import Console
from rich.markdown import Markdown
from rich.panel import Panel
from rich.table import Table
from rich.box import ROUNDED

from debrief import (
    format_debrief_report,
    generate_dialogue_hooks,
    get_quick_summary,
    run_evaluation,
)
from debrief.causal import format_chain_for_display
from debrief.counterfactual import calculate_preventability_score

console = Console()

START = 1_700_000_000_000


def snapshot(ts, phase, rhythm, hr, anxiety, fear, **extra):
    return {
        "timestamp": ts,
        "phase": phase,
        "rhythm": rhythm,
        "vitals": {"hr": hr, "spo2": 97, "bp": "92/64", "rr": 26},
        "markAnxiety": anxiety,
        "lilyFear": fear,
        **extra,
    }


SCRIPTED_SESSION = {
    "startTime": START,
    "messages": [
        {"who": "system", "text": "Scenario start: 5yo with HR 220", "time": START},
        {"who": "mark", "text": "What's wrong with her heart?", "time": START + 4_000},
        {"who": "doctor", "text": "Nurse, adenosine 1.85mg rapid push", "time": START + 40_000},
        {"who": "nurse", "text": "Adenosine in. Flush going in.", "time": START + 45_500},
        {"who": "mark", "text": "IT'S FLAT! HER HEART STOPPED!", "time": START + 52_000},
        {"who": "lily", "text": "Daddy?!", "time": START + 53_000},
        {"who": "doctor", "text": "Sinus rhythm. Good.", "time": START + 60_000},
    ],
    "actionLog": [
        {"type": "adenosine", "time": 45_000, "given": 1.85, "correct": 1.85, "unit": "mg",
         "attemptNum": 1, "result": "success"},
    ],
    "nurseCatches": [],
    "stateSnapshots": [
        snapshot(0, "RUNNING", "SVT", 220, 3, 4),
        snapshot(51_000, "ASYSTOLE", "ASYSTOLE", 0, 3, 4, adenosineCount=1),
        snapshot(52_500, "ASYSTOLE", "ASYSTOLE", 0, 5, 5, adenosineCount=1),
        snapshot(58_000, "CONVERTED", "SINUS", 110, 5, 5, adenosineCount=1),
        snapshot(80_000, "CONVERTED", "SINUS", 105, 4, 3, adenosineCount=1),
    ],
}


IMPACT_STYLES = {
    "critical": "bold red",
    "high": "yellow",
    "medium": "cyan",
    "low": "dim",
}


def show_summary(result):
    summary = get_quick_summary(result)
    console.print(Panel(
        f"[bold]{summary.the_one_thing}[/bold]\n\n"
        f"Overall [bold]{summary.overall_score}[/bold] · "
        f"Clinical {summary.clinical_score} · "
        f"Communication {summary.communication_score}\n"
        f"Critical issues: {summary.critical_issue_count} · Successes: {summary.success_count}",
        title="🩺 Debrief",
        border_style="red" if summary.has_trauma else "green",
        box=ROUNDED,
    ))


def show_timeline(result):
    table = Table(title="Timeline", box=ROUNDED)
    table.add_column("Time", style="dim", width=7)
    table.add_column("Actor", width=8)
    table.add_column("Type", width=18)
    table.add_column("Content")

    for event in result.timeline:
        seconds = event.timestamp // 1000
        table.add_row(
            f"{seconds // 60}:{seconds % 60:02d}",
            event.actor.value,
            event.type.value,
            event.content,
        )

    console.print(table)


def show_pivots(result):
    table = Table(title="Pivot Points", box=ROUNDED)
    table.add_column("Impact", width=10)
    table.add_column("Pivot")
    table.add_column("Chain", style="dim")

    for pivot in result.pivot_points:
        style = IMPACT_STYLES[pivot.impact.value]
        table.add_row(
            f"[{style}]{pivot.impact.value}[/{style}]",
            pivot.description,
            pivot.causal_chain_id or "-",
        )

    console.print(table)


def show_chain_and_counterfactual(result):
    if result.causal_chains:
        chain = result.causal_chains[0]
        console.print(Panel(format_chain_for_display(chain), title=chain.name, border_style="magenta"))

    for cf in result.counterfactuals:
        console.print(Panel(
            f"[red]Actual:[/red] {cf.actual.outcome}\n"
            f"[green]With intervention:[/green] {cf.alternative.outcome}\n\n"
            f"[bold]Say:[/bold] \"{cf.intervention.exact_words}\"\n"
            f"Preventability: {calculate_preventability_score(cf):.0f}/100",
            title=f"What if? · {cf.pivot_id}",
            border_style="blue",
        ))


def main():
    parser = argparse.ArgumentParser(description="Render a scripted session debrief")
    parser.add_argument("--markdown", action="store_true", help="Print the Markdown report instead")
    parser.add_argument("--verbose", action="store_true", help="Show detector debug logs")
    args = parser.parse_args()

    structlog.configure(
        wrapper_class=structlog.make_filtering_bound_logger(
            logging.DEBUG if args.verbose else logging.WARNING
        ),
    )

    result = run_evaluation(SCRIPTED_SESSION)
    hooks = generate_dialogue_hooks(result.pivot_points, result.counterfactuals)

    if args.markdown:
        console.print(Markdown(format_debrief_report(result, hooks)))
        return

    show_summary(result)
    show_timeline(result)
    show_pivots(result)
    show_chain_and_counterfactual(result)

    for hook in hooks:
        console.print(f"[bold cyan]❓ {hook.question}[/bold cyan]")
        for option in hook.options:
            console.print(f"   • {option}")


if __name__ == "__main__":
    main()
