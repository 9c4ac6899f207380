#!/usr/bin/env python3
"""
Moving Desk CLI

Usage:
    # 데모 서버 실행
    python -m moving_desk.cli serve --port 11020

    # 샘플 데이터 생성 (MOVING_DATABASE_URL 설정 시 DB에 저장)
    python -m moving_desk.cli seed

    # 견적 계산 (저장 없이 견적 엔진만 사용)
    python -m moving_desk.cli quote --floor-from 2 --floor-to 7 --elev-from --elev-to --volume L

    # 대시보드 지표 / 최근 활동
    python -m moving_desk.cli metrics
    python -m moving_desk.cli activities --limit 5
"""

import argparse
import asyncio
import json
import logging
import sys
from dataclasses import replace
from typing import Optional

from .config import MovingDeskConfig, DatabaseConfig, get_config
from .core.models import Lead, PricingRule
from .core.pricing import explain_quote
from .demo import create_demo_app, seed_demo_data
from .setup import MovingDesk


def print_json(data, indent: int = 2):
    """JSON 출력"""
    print(json.dumps(data, ensure_ascii=False, indent=indent, default=str))


def print_table(headers: list, rows: list, widths: Optional[list] = None):
    """간단한 테이블 출력"""
    if not widths:
        widths = [max(len(str(row[i])) for row in [headers] + rows) + 2 for i in range(len(headers))]

    header_line = "".join(str(h).ljust(w) for h, w in zip(headers, widths))
    print(header_line)
    print("-" * len(header_line))

    for row in rows:
        print("".join(str(c).ljust(w) for c, w in zip(row, widths)))


def _load_config(args) -> MovingDeskConfig:
    cfg = get_config()
    if args.database_url:
        cfg = replace(cfg, database=DatabaseConfig(url=args.database_url, echo=cfg.database.echo))
    return cfg


async def _open_desk(args) -> MovingDesk:
    """
    MovingDesk 생성

    인메모리 저장소면 프로세스가 끝나면 사라지므로 샘플 데이터를 채워 둡니다.
    """
    desk = MovingDesk(_load_config(args))
    await desk.init()
    if not desk.config.database.enabled:
        await seed_demo_data(desk)
    return desk


def cmd_serve(args):
    """서버 실행"""
    import uvicorn

    cfg = _load_config(args)
    port = args.port or cfg.api_port
    app = create_demo_app(cfg, seed=not args.no_seed)

    print(f"Starting Moving Desk on http://{args.host}:{port}")
    print(f"Storage: {'SQL' if cfg.database.enabled else 'in-memory'}")
    print(f"API Docs: http://{args.host}:{port}/docs")
    print()

    uvicorn.run(app, host=args.host, port=port)


def cmd_seed(args):
    """샘플 데이터 생성"""

    async def run():
        desk = MovingDesk(_load_config(args))
        await desk.init()
        try:
            return await seed_demo_data(desk)
        finally:
            await desk.close()

    created = asyncio.run(run())
    merchant = created["merchant"]
    print(f"Merchant: {merchant.name} ({merchant.id})")
    print(f"  Leads: {len(created['leads'])}")
    print(f"  Bookings: {len(created['bookings'])}")
    print(f"  Payments: {len(created['payments'])}")


def cmd_quote(args):
    """견적 계산"""
    rule = PricingRule(merchant_id="cli")
    if args.base_fee is not None:
        rule.base_fee = args.base_fee
    if args.per_km is not None:
        rule.per_km = args.per_km
    if args.per_floor is not None:
        rule.per_floor = args.per_floor

    lead = Lead(
        merchant_id=rule.merchant_id,
        channel="phone",
        floor_from=args.floor_from,
        floor_to=args.floor_to,
        elev_from=args.elev_from,
        elev_to=args.elev_to,
        volume=args.volume,
    )
    breakdown = explain_quote(lead, rule, args.distance)

    if args.json:
        print_json(breakdown.quote.to_dict())
        return

    print(f"Billable floors: {breakdown.billable_floors}")
    print(f"Volume: {breakdown.volume} (x{breakdown.volume_coeff})")
    print(f"Distance: {breakdown.distance_km}km")
    print(f"Base price: ₩{int(breakdown.base_price):,}")
    print(f"Final price: ₩{breakdown.final_price:,.0f}")
    print(f"Quote: ₩{breakdown.quote.min:,} ~ ₩{breakdown.quote.max:,}")


def cmd_metrics(args):
    """대시보드 지표 조회"""

    async def run():
        desk = await _open_desk(args)
        try:
            merchant_id = await desk.resolve_merchant_id(args.merchant)
            return await desk.metrics.get_metrics(merchant_id)
        finally:
            await desk.close()

    metrics = asyncio.run(run())

    if args.json:
        print_json(metrics.to_dict())
        return

    print("=" * 40)
    print("Moving Desk Metrics")
    print("=" * 40)
    print(f"  Total leads: {metrics.total_leads} ({metrics.leads_growth:+d}%)")
    print(f"  Confirmed bookings: {metrics.confirmed_bookings} ({metrics.bookings_growth:+d}%)")
    print(f"  Revenue: ₩{metrics.revenue:,} ({metrics.revenue_growth:+d}%)")
    print(f"  Conversion: {metrics.conversion_rate}% ({metrics.conversion_change:+d}%p)")


def cmd_activities(args):
    """최근 활동 조회"""

    async def run():
        desk = await _open_desk(args)
        try:
            merchant_id = await desk.resolve_merchant_id(args.merchant)
            return await desk.activities.recent(merchant_id, args.limit)
        finally:
            await desk.close()

    activities = asyncio.run(run())

    if not activities:
        print("No activities found.")
        return

    if args.json:
        print_json([a.to_dict() for a in activities])
        return

    headers = ["Type", "Description", "Entity", "Created"]
    rows = [
        [a.type, a.description, a.entity_type or "-", a.created_at.isoformat(timespec="seconds")]
        for a in activities
    ]
    print_table(headers, rows)
    print(f"\nTotal: {len(activities)} activities")


def main(argv=None):
    parser = argparse.ArgumentParser(
        description="Moving Desk CLI",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Start server
  python -m moving_desk.cli serve --port 11020

  # Quote for a 2F -> 7F move with elevators, large volume
  python -m moving_desk.cli quote --floor-from 2 --floor-to 7 --elev-from --elev-to --volume L
        """
    )
    parser.add_argument("--database-url", help="Database URL (default: MOVING_DATABASE_URL or in-memory)")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # serve command
    serve_parser = subparsers.add_parser("serve", help="Start API server")
    serve_parser.add_argument("--port", type=int, help="Server port (default: MOVING_API_PORT or 11020)")
    serve_parser.add_argument("--host", default="0.0.0.0", help="Server host (default: 0.0.0.0)")
    serve_parser.add_argument("--no-seed", action="store_true", help="Do not create demo data")

    # seed command
    subparsers.add_parser("seed", help="Create demo merchant, leads and bookings")

    # quote command
    quote_parser = subparsers.add_parser("quote", help="Compute a quote without storing it")
    quote_parser.add_argument("--floor-from", type=int, default=0, help="Origin floor")
    quote_parser.add_argument("--floor-to", type=int, default=0, help="Destination floor")
    quote_parser.add_argument("--elev-from", action="store_true", help="Origin has an elevator")
    quote_parser.add_argument("--elev-to", action="store_true", help="Destination has an elevator")
    quote_parser.add_argument("--volume", choices=["S", "M", "L"], help="Volume category (default: M)")
    quote_parser.add_argument("--distance", type=float, default=get_config().pricing.default_distance_km,
                              help="Distance in km")
    quote_parser.add_argument("--base-fee", type=int, help="Override base fee")
    quote_parser.add_argument("--per-km", type=int, help="Override per-km fee")
    quote_parser.add_argument("--per-floor", type=int, help="Override per-floor fee")
    quote_parser.add_argument("--json", action="store_true", help="Output as JSON")

    # metrics command
    metrics_parser = subparsers.add_parser("metrics", help="Show dashboard metrics")
    metrics_parser.add_argument("--merchant", help="Merchant ID (default: first merchant)")
    metrics_parser.add_argument("--json", action="store_true", help="Output as JSON")

    # activities command
    activities_parser = subparsers.add_parser("activities", help="Show recent activities")
    activities_parser.add_argument("--merchant", help="Merchant ID (default: first merchant)")
    activities_parser.add_argument("--limit", type=int, default=10, help="Max activities")
    activities_parser.add_argument("--json", action="store_true", help="Output as JSON")

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if args.command == "serve":
        cmd_serve(args)
    elif args.command == "seed":
        cmd_seed(args)
    elif args.command == "quote":
        cmd_quote(args)
    elif args.command == "metrics":
        cmd_metrics(args)
    elif args.command == "activities":
        cmd_activities(args)
    else:
        parser.print_help()
        sys.exit(1)


if __name__ == "__main__":
    main()
