#!/usr/bin/env python3
"""Sample data generation for the USPS EasyPost bill adapter.

Generates a synthetic EasyPost USPS billing export (CSV, or XLSX with --excel) with
the columns the adapter reads:
- Row 1: Header row
- Row 2+: One shipment per row

Shipments are spread over a few days and carrier accounts so that the run produces
several unique bills. A fraction of optional cells is left empty to exercise the
tolerant parsing path.
"""
from __future__ import annotations

import argparse
import sys
from pathlib import Path

import numpy as np
import pandas as pd

SERVICES = ["GroundAdvantage", "Priority", "Express", "First"]


def generate_bill_rows(
    rows: int,
    accounts: list[str],
    days: int = 3,
    empty_ratio: float = 0.05,
    seed: int = 42,
) -> pd.DataFrame:
    """Generate a DataFrame shaped like the EasyPost USPS export.

    Args:
        rows: Number of shipment rows
        accounts: Carrier account ids to spread shipments over
        days: Number of distinct bill days
        empty_ratio: Share of fee cells left empty
        seed: Random seed for reproducible data
    """
    rng = np.random.default_rng(seed)

    start = pd.Timestamp("2024-03-01", tz="UTC")
    day_offsets = rng.integers(0, days, rows)
    second_offsets = rng.integers(0, 86_400, rows)
    created = [
        (start + pd.Timedelta(days=int(d), seconds=int(s))).strftime("%Y-%m-%dT%H:%M:%SZ")
        for d, s in zip(day_offsets, second_offsets)
    ]
    # ラベル作成日時は compact 形式 (M/D/YY) で出力されることがある
    label_created = [
        f"{ts.month}/{ts.day}/{ts.strftime('%y')}"
        for ts in (start + pd.to_timedelta(day_offsets, unit="D"))
    ]

    def fees(low: float, high: float) -> list[str]:
        values = np.round(rng.uniform(low, high, rows), 2)
        mask = rng.random(rows) < empty_ratio
        return ["" if m else f"{v:.2f}" for v, m in zip(values, mask)]

    data = {
        "tracking_code": [f"9400{rng.integers(10**17, 10**18)}" for _ in range(rows)],
        "created_at": created,
        "postage_label_created_at": label_created,
        "carrier_account_id": rng.choice(accounts, rows).tolist(),
        "from_zip": rng.choice(["90210", "10001", "60601"], rows).tolist(),
        "service": rng.choice(SERVICES, rows).tolist(),
        "usps_zone": [str(z) for z in rng.integers(1, 10, rows)],
        "rate": fees(3.0, 60.0),
        "label_fee": fees(0.0, 0.1),
        "postage_fee": fees(3.0, 60.0),
        "insurance_fee": fees(0.0, 5.0),
        "carbon_offset_fee": fees(0.0, 0.05),
        "weight": [f"{w:.1f}" for w in rng.uniform(1, 1120, rows)],
        "length": [f"{v:.1f}" for v in rng.uniform(1, 24, rows)],
        "width": [f"{v:.1f}" for v in rng.uniform(1, 18, rows)],
        "height": [f"{v:.1f}" for v in rng.uniform(1, 12, rows)],
    }
    return pd.DataFrame(data)


def main() -> int:
    parser = argparse.ArgumentParser(
        description="Generate a synthetic EasyPost USPS bill export",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s data/sample.csv
  %(prog)s data/sample.csv --rows 20000 --accounts ca_111 ca_222 --days 7
  %(prog)s data/sample.xlsx --excel
        """,
    )
    parser.add_argument("output", type=Path, help="Output file path")
    parser.add_argument("--rows", type=int, default=1_000, help="Number of shipment rows (default: 1,000)")
    parser.add_argument("--accounts", nargs="+", default=["ca_0000000000"], help="Carrier account ids")
    parser.add_argument("--days", type=int, default=3, help="Number of distinct bill days (default: 3)")
    parser.add_argument("--seed", type=int, default=42, help="Random seed (default: 42)")
    parser.add_argument("--excel", action="store_true", help="Write XLSX instead of CSV")
    args = parser.parse_args()

    if args.rows <= 0:
        print("Error: --rows must be positive", file=sys.stderr)
        return 1
    if args.days <= 0:
        print("Error: --days must be positive", file=sys.stderr)
        return 1

    df = generate_bill_rows(args.rows, args.accounts, days=args.days, seed=args.seed)
    args.output.parent.mkdir(parents=True, exist_ok=True)
    try:
        if args.excel:
            df.to_excel(args.output, index=False, engine="openpyxl")
        else:
            df.to_csv(args.output, index=False)
    except OSError as e:
        print(f"Error writing {args.output}: {e}", file=sys.stderr)
        return 1

    print(f"Created bill export: {args.output}")
    print(f"  Rows: {args.rows:,}  Accounts: {', '.join(args.accounts)}  Days: {args.days}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
