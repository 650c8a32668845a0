"""Main CLI interface for the rakeplan engine

Provides command-line commands for:
- Forecasting route demand
- Building a greedy rake schedule
- Backtesting the demand ensemble
- Exporting CSV reports
- Checking system status
"""

import click
from datetime import datetime
from pathlib import Path
from rich.console import Console
from rich.table import Table
from rich.panel import Panel

from rakeplan import __version__
from rakeplan.pipeline import PlanningPipeline
from rakeplan.utils.config import ConfigLoader
from rakeplan.utils.logging_config import get_logger, setup_logging


console = Console()
logger = get_logger(__name__)


config_option = click.option(
    '--config',
    '-c',
    type=click.Path(exists=True),
    default='config/config.yaml',
    help='Path to configuration file'
)

fleet_option = click.option(
    '--fleet-file',
    type=click.Path(exists=True),
    default=None,
    help='Fleet roster YAML (default: data.fleet_file from config)'
)

demand_option = click.option(
    '--demand-file',
    type=click.Path(exists=True),
    default=None,
    help='Demand history CSV (default: data.demand_history_file from config)'
)


def _init_pipeline(config, fleet_file=None, demand_file=None) -> PlanningPipeline:
    pipeline = PlanningPipeline(config_path=config)
    pipeline.load_data(fleet_file=fleet_file, demand_file=demand_file)
    return pipeline


def _forecast_table(forecasts, routes) -> Table:
    names = {r.id: r.name for r in routes}

    table = Table(title="Demand Forecasts", show_header=True, header_style="bold cyan")
    table.add_column("Route", style="cyan", no_wrap=True)
    table.add_column("Name", style="yellow")
    table.add_column("Date")
    table.add_column("Demand", justify="right", style="green")
    table.add_column("Confidence", justify="right")
    table.add_column("Factors", style="dim")

    for f in forecasts:
        table.add_row(
            f.route_id,
            names.get(f.route_id, 'Unknown'),
            f"{f.date:%Y-%m-%d}",
            f"{f.predicted_demand:,}",
            f"{f.confidence:.0%}",
            ', '.join(f.factors) or "—"
        )

    return table


@click.group()
@click.version_option(version=__version__, prog_name='rakeplan')
@click.option('--log-level', default='WARNING', show_default=True,
              type=click.Choice(['DEBUG', 'INFO', 'WARNING', 'ERROR'], case_sensitive=False),
              help='Console logging level')
@click.option('--log-file', type=click.Path(), default=None, help='Also log to this file')
def cli(log_level, log_file):
    """
    rakeplan - Rake Forecasting and Scheduling

    Demand forecasting and greedy rake-to-route assignment:
    - Route demand forecasts (weighted ensemble)
    - Rake schedules with availability and conflict checks
    - Fleet metrics and CSV reports
    """
    setup_logging(log_level=log_level, log_file=log_file)


@cli.command()
@config_option
@fleet_option
@demand_option
@click.option('--date', 'target_date', type=click.DateTime(formats=['%Y-%m-%d']), default=None,
              help='Forecast date (YYYY-MM-DD, default: tomorrow)')
def forecast(config, fleet_file, demand_file, target_date):
    """
    Forecast demand for every route with history

    Examples:
      rakeplan forecast
      rakeplan forecast --date 2026-10-20
    """
    console.print(Panel.fit(
        "[bold cyan]rakeplan - Demand Forecast[/bold cyan]",
        border_style="cyan"
    ))

    try:
        pipeline = _init_pipeline(config, fleet_file, demand_file)
        forecasts = pipeline.generate_forecasts(target_date.date() if target_date else None)

        console.print(_forecast_table(forecasts, pipeline.fleet.routes))

    except Exception as e:
        console.print(f"\n[bold red]✗ Error:[/bold red] {str(e)}")
        logger.exception("Forecast failed")
        raise click.Abort()


@cli.command()
@config_option
@fleet_option
@demand_option
@click.option('--start', 'period_start', type=click.DateTime(formats=['%Y-%m-%d %H:%M', '%Y-%m-%dT%H:%M']),
              default=None, help='Period start (default: next full hour)')
@click.option('--hours', 'period_hours', type=float, default=None,
              help='Period length in hours (default: scheduling.period_hours)')
@click.option('--prioritize', 'priority_route', type=str, default=None,
              help='Route id to free capacity for by shifting low-priority departures')
@click.option('--export/--no-export', default=False, help='Write CSV reports after scheduling')
def schedule(config, fleet_file, demand_file, period_start, period_hours, priority_route, export):
    """
    Assign rakes to routes for a scheduling period

    Forecasts demand, runs the greedy assignment and prints the new
    schedules together with fleet metrics.

    Examples:
      rakeplan schedule --start "2026-10-19 09:00"
      rakeplan schedule --prioritize route_006 --export
    """
    console.print(Panel.fit(
        "[bold cyan]rakeplan - Rake Scheduling[/bold cyan]",
        border_style="cyan"
    ))

    try:
        pipeline = _init_pipeline(config, fleet_file, demand_file)

        if priority_route:
            result = pipeline.reschedule_for_route(priority_route)
            console.print(f"[yellow]Shifted {result.rescheduled_count} departures "
                          f"for {priority_route}[/yellow]")

        pipeline.generate_forecasts(period_start.date() if period_start else None)
        new_schedules = pipeline.optimize(period_start=period_start, period_hours=period_hours)

        table = Table(title="New Schedules", show_header=True, header_style="bold cyan")
        table.add_column("Schedule", style="dim")
        table.add_column("Rake", style="cyan")
        table.add_column("Route", style="yellow")
        table.add_column("Departure")
        table.add_column("Arrival")
        table.add_column("Cargo (t)", justify="right", style="green")

        for s in new_schedules:
            table.add_row(
                s.id, s.rake_id, s.route_id,
                f"{s.departure_time:%Y-%m-%d %H:%M}",
                f"{s.arrival_time:%Y-%m-%d %H:%M}",
                f"{s.cargo.weight:,.0f}" if s.cargo else "—"
            )

        console.print(table)

        metrics = pipeline.calculate_metrics()
        style = "red" if metrics['exceeds_utilization_target'] else "green"
        console.print(Panel(
            "\n".join([
                f"[bold]Utilization:[/bold]        [{style}]{metrics['utilization_rate']:.1%}[/{style}]",
                f"[bold]On-time:[/bold]            {metrics['on_time_performance']:.1%}",
                f"[bold]Scheduled rakes:[/bold]    {metrics['total_scheduled_rakes']}",
                f"[bold]Avg route time:[/bold]     {metrics['average_route_time']:.1f}h"
            ]),
            title="Fleet Metrics",
            border_style="cyan"
        ))

        if export:
            files = pipeline.export()
            console.print(f"\n[green]✓[/green] Reports written to {files['complete'].parent}")

    except Exception as e:
        console.print(f"\n[bold red]✗ Error:[/bold red] {str(e)}")
        logger.exception("Scheduling failed")
        raise click.Abort()


@cli.command()
@config_option
@fleet_option
@demand_option
@click.option('--holdout', type=int, default=None,
              help='Trailing periods held out per route (default: forecasting.holdout_periods)')
def evaluate(config, fleet_file, demand_file, holdout):
    """
    Backtest the demand ensemble against its member models

    Examples:
      rakeplan evaluate --holdout 7
    """
    console.print(Panel.fit(
        "[bold cyan]rakeplan - Forecast Evaluation[/bold cyan]",
        border_style="cyan"
    ))

    try:
        pipeline = _init_pipeline(config, fleet_file, demand_file)
        results = pipeline.evaluate_forecasts(holdout)

        table = Table(title="Backtest Results", show_header=True, header_style="bold cyan")
        table.add_column("Route", style="cyan", no_wrap=True)
        table.add_column("Model", style="yellow")
        table.add_column("MAPE", justify="right", style="green")
        table.add_column("MAE", justify="right")

        for route_id, result in results.items():
            rows = list(result['members'].items()) + [('ensemble', result['ensemble'])]
            for idx, (model_name, metrics) in enumerate(rows):
                marker = " 🏆" if model_name == result['best_model'] else ""
                table.add_row(
                    route_id if idx == 0 else "",
                    f"{model_name}{marker}",
                    f"{metrics['mape']:.2f}%",
                    f"{metrics['mae']:,.2f}"
                )

        console.print(table)

    except Exception as e:
        console.print(f"\n[bold red]✗ Error:[/bold red] {str(e)}")
        logger.exception("Evaluation failed")
        raise click.Abort()


@cli.command()
@config_option
@fleet_option
@demand_option
@click.option('--output', '-o', type=click.Path(), default=None,
              help='Output directory (default: output.reports_dir)')
def export(config, fleet_file, demand_file, output):
    """
    Export rakes, routes, schedules, forecasts and demand history to CSV
    """
    try:
        pipeline = _init_pipeline(config, fleet_file, demand_file)
        pipeline.generate_forecasts()
        files = pipeline.export(output)

        for name, path in files.items():
            console.print(f"  [green]✓[/green] {name}: {path}")

    except Exception as e:
        console.print(f"\n[bold red]✗ Error:[/bold red] {str(e)}")
        logger.exception("Export failed")
        raise click.Abort()


def _print_fleet_summary(summary):
    table = Table(title="Fleet Summary", show_header=True, header_style="bold cyan")
    table.add_column("Rake status", style="cyan")
    table.add_column("Count", justify="right")
    table.add_column("Schedule status", style="yellow")
    table.add_column("Count", justify="right")

    rake_rows = list(summary['rake_status'].items())
    schedule_rows = list(summary['schedule_status'].items())
    for idx in range(max(len(rake_rows), len(schedule_rows))):
        rake_name, rake_count = rake_rows[idx] if idx < len(rake_rows) else ("", "")
        sched_name, sched_count = schedule_rows[idx] if idx < len(schedule_rows) else ("", "")
        table.add_row(rake_name, str(rake_count), sched_name, str(sched_count))

    console.print(table)
    console.print(f"  Maintenance due: {len(summary['maintenance_due'])}")

    for alert in summary['alerts']:
        console.print(f"  [yellow]⚠[/yellow] Rake {alert['rake_id']} - {alert['alert']} "
                      f"({alert['next_maintenance']:%Y-%m-%d %H:%M})")


@cli.command()
@config_option
@click.option('--at', 'reference_time', type=click.DateTime(formats=['%Y-%m-%d %H:%M', '%Y-%m-%dT%H:%M']),
              default=None, help='Reference time for maintenance alerts (default: now)')
def status(config, reference_time):
    """
    Show configuration, data file status and the fleet summary
    """
    console.print(Panel.fit(
        "[bold cyan]rakeplan - System Status[/bold cyan]",
        border_style="cyan"
    ))

    try:
        cfg = ConfigLoader(config)

        console.print("\n[bold]Data Files:[/bold]")
        data_ready = True
        for key in ['data.fleet_file', 'data.demand_history_file']:
            path = cfg.get_path(key)
            if path.exists():
                console.print(f"  [green]✓[/green] {path}")
            else:
                console.print(f"  [red]✗[/red] {path} (required)")
                data_ready = False

        console.print("\n[bold]Configuration:[/bold]")
        console.print(f"  Config file:  {config}")
        console.print(f"  Reports dir:  {cfg.get_path('output.reports_dir', 'reports')}")
        console.print(f"  Weights:      {cfg.get('forecasting.weights', {})}")
        console.print(f"  Maintenance:  every {cfg.get('scheduling.min_maintenance_interval', 168)}h")
        console.print(f"  Checked at:   {datetime.now():%Y-%m-%d %H:%M}")

        if data_ready:
            pipeline = PlanningPipeline(config=cfg)
            pipeline.load_data(validate=False)
            console.print()
            _print_fleet_summary(pipeline.fleet_summary(now=reference_time))

    except Exception as e:
        console.print(f"\n[bold red]✗ Error:[/bold red] {str(e)}")
        logger.exception("Status check failed")
        raise click.Abort()


if __name__ == '__main__':
    cli()
