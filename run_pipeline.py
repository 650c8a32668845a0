#!/usr/bin/env python3
"""
rakeplan Planning Pipeline
==========================

Single entry point to run the complete planning pipeline.

Usage:
    python run_pipeline.py                        # Forecast, schedule, export
    python run_pipeline.py --forecast-only        # Forecast demand only
    python run_pipeline.py --no-export            # Skip CSV reports
    python run_pipeline.py --config my.yaml       # Use another configuration

Pipeline Flow:
    1. Load + validate fleet   <- data.fleet_file, data.demand_history_file
    2. Demand forecasts        -> one forecast per route
    3. Greedy rake assignment  -> new schedules for the next period
    4. Metrics + export        -> reports/*.csv
"""

import argparse
from datetime import datetime

from rakeplan.pipeline import PlanningPipeline
from rakeplan.utils.config import ConfigLoader
from rakeplan.utils.logging_config import setup_logging


def run_forecast_only(pipeline: PlanningPipeline):
    """Load data and print route forecasts"""
    pipeline.load_data()
    forecasts = pipeline.generate_forecasts()

    print("\nForecasts:")
    for f in forecasts:
        print(f"  {f.route_id}: {f.predicted_demand:>5} units ({f.confidence:.0%} confidence)")


def run_full_pipeline(pipeline: PlanningPipeline, export: bool = True):
    """Run the complete pipeline: forecast + schedule + metrics + export"""
    start_time = datetime.now()

    print("\n" + "=" * 70)
    print("RAKEPLAN PLANNING PIPELINE")
    print(f"Started: {start_time.strftime('%Y-%m-%d %H:%M:%S')}")
    print("=" * 70)

    result = pipeline.run(export=export)

    end_time = datetime.now()
    duration = (end_time - start_time).total_seconds()

    metrics = result['metrics']

    print("\n" + "=" * 70)
    print("PIPELINE COMPLETE")
    print(f"Finished: {end_time.strftime('%Y-%m-%d %H:%M:%S')}")
    print(f"Duration: {duration:.1f} seconds")
    print("=" * 70)

    print(f"\nForecasts:      {len(result['forecasts'])}")
    print(f"New schedules:  {len(result['new_schedules'])}")
    print(f"Utilization:    {metrics['utilization_rate']:.1%}")
    print(f"On-time:        {metrics['on_time_performance']:.1%}")

    if result['files']:
        print("\nOutputs:")
        for path in result['files'].values():
            print(f"  - {path}")


def main():
    parser = argparse.ArgumentParser(
        description="rakeplan Planning Pipeline",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    python run_pipeline.py                  # Run complete pipeline
    python run_pipeline.py --forecast-only  # Forecast only
        """
    )

    parser.add_argument(
        '--config', '-c',
        default='config/config.yaml',
        help='Path to configuration file'
    )

    parser.add_argument(
        '--forecast-only', '-f',
        action='store_true',
        help='Only generate demand forecasts'
    )

    parser.add_argument(
        '--no-export',
        action='store_true',
        help='Do not write CSV reports'
    )

    args = parser.parse_args()

    config = ConfigLoader(args.config)
    setup_logging(
        log_level=config.get('logging.level', 'INFO'),
        log_file=config.get('logging.file')
    )

    pipeline = PlanningPipeline(config=config)

    if args.forecast_only:
        run_forecast_only(pipeline)
    else:
        run_full_pipeline(pipeline, export=not args.no_export)


if __name__ == '__main__':
    main()
