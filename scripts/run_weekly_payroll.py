#!/usr/bin/env python3
"""
Run weekly contractor payroll for one week and print the result as JSON.

Usage:
    python scripts/run_weekly_payroll.py --feed shifts.csv [--as-of 2024-03-06]
        [--config payroll.yaml] [--database-url sqlite:///payroll.db]
        [--workers 4] [--log-level INFO]

Without --database-url pay periods, bonus counters and placement progress
are kept in memory for the duration of the run.  With it, all three persist:
re-running the same week reuses the stored periods, and the next week
resumes from the stored counters and progress.

Exit status is 0 when every contractor succeeded and 1 when at least one
contractor failed.
"""

import argparse
import dataclasses
import json
import logging
import sys
from datetime import date
from pathlib import Path

# Project root on sys.path
ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(ROOT))

from payroll_config import get_active_config
from payroll_kernel.db import create_tables, get_session_factory, init_engine_from_url
from payroll_kernel.domain.clock import SystemClock
from payroll_kernel.logging_config import configure_logging
from payroll_modules.contractor_pay.feed import load_shift_feed
from payroll_modules.contractor_pay.models import PayPeriod, PayrollRunResult, PlacementProgress
from payroll_modules.contractor_pay.service import PayrollOrchestrator
from payroll_modules.contractor_pay.store import (
    InMemoryPayPeriodStore,
    SqlIncentiveStateStore,
    SqlPayPeriodStore,
)


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Run weekly contractor payroll",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--feed",
        type=Path,
        required=True,
        help="Shift feed file (.csv, .xlsx, .json or .jsonl)",
    )
    parser.add_argument(
        "--as-of",
        type=date.fromisoformat,
        default=None,
        help="Any date in the week to pay (YYYY-MM-DD, default: today UTC)",
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Payroll configuration YAML (default: packaged default set)",
    )
    parser.add_argument(
        "--database-url",
        default=None,
        help="SQLAlchemy URL for persistent pay periods",
    )
    parser.add_argument(
        "--workers",
        type=int,
        default=None,
        help="Process contractors on this many threads",
    )
    parser.add_argument(
        "--log-level",
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
    )
    return parser.parse_args(argv)


def _period_to_dict(period: PayPeriod) -> dict:
    return {
        "id": str(period.id),
        "contractor_id": period.contractor_id,
        "start_date": period.start_date.isoformat(),
        "end_date": period.end_date.isoformat(),
        "status": period.status.value,
        "shift_count": len(period.shifts),
        "earnings": str(period.earnings),
        "bonuses": [
            {
                "id": str(b.id),
                "type": b.bonus_type.value,
                "amount": str(b.amount),
                "status": b.status.value,
            }
            for b in period.bonuses
        ],
        "total_amount": str(period.total_amount),
    }


def _placement_to_dict(progress: PlacementProgress) -> dict:
    return {
        "status": progress.status.value,
        "total_assignments": progress.total_assignments,
        "unique_institutions": progress.unique_institution_count,
        "positive_feedback": progress.positive_feedback_count,
        "placement_score": progress.placement_score,
        "start_date": progress.start_date.isoformat() if progress.start_date else None,
    }


def result_to_dict(
    result: PayrollRunResult,
    placements: dict[str, PlacementProgress] | None = None,
) -> dict:
    placements = placements or {}
    outcomes = {}
    for contractor_id, outcome in result.outcomes.items():
        if outcome.is_success:
            outcomes[contractor_id] = {
                "ok": True,
                "reused": outcome.reused,
                "pay_period": _period_to_dict(outcome.pay_period),
            }
        else:
            outcomes[contractor_id] = {
                "ok": False,
                "stage": outcome.stage,
                "error_code": outcome.error_code,
                "error": outcome.error_message,
            }
        if contractor_id in placements:
            outcomes[contractor_id]["placement"] = _placement_to_dict(placements[contractor_id])
    return {
        "run_id": str(result.run_id),
        "as_of": result.as_of.isoformat(),
        "week_start": result.week_start.isoformat(),
        "week_end": result.week_end.isoformat(),
        "total_paid": str(result.total_paid),
        "outcomes": outcomes,
        "unattributed_shift_ids": [str(s) for s in result.unattributed_shift_ids],
        "undated_shift_ids": [str(s) for s in result.undated_shift_ids],
        "bonus_attach_failures": result.bonus_attach_failures,
    }


def main(argv: list[str] | None = None) -> int:
    args = _parse_args(argv)
    configure_logging(level=getattr(logging, args.log_level))

    active = get_active_config(args.config)
    config = active.config
    if args.workers is not None:
        config = dataclasses.replace(config, max_workers=args.workers)

    if args.database_url:
        init_engine_from_url(args.database_url)
        create_tables()
        store = SqlPayPeriodStore(get_session_factory())
        incentive_state = SqlIncentiveStateStore(get_session_factory())
    else:
        store = InMemoryPayPeriodStore()
        incentive_state = None

    clock = SystemClock()
    orchestrator = PayrollOrchestrator(
        rate_resolver=active.rate_resolver,
        config=config,
        store=store,
        shift_source=lambda: load_shift_feed(args.feed),
        incentive_state=incentive_state,
        clock=clock,
    )
    result = orchestrator.process_weekly_payroll(args.as_of or clock.today())
    placements = {c: orchestrator.placement_for(c) for c in result.outcomes}

    json.dump(result_to_dict(result, placements), sys.stdout, indent=2, sort_keys=True)
    sys.stdout.write("\n")
    return 1 if result.failed else 0


if __name__ == "__main__":
    sys.exit(main())
