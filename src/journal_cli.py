"""
Wellness Journal CLI
====================
Terminal front end for the check-in pipeline.

Usage:
    wellness-journal add --mood 7 --sleep 7.5 --quality 4 --disturbance Noise
    wellness-journal list --limit 10
    wellness-journal stats --window 7
    wellness-journal insights
    wellness-journal chart --out wellness_reports
    wellness-journal devices list | connect garmin | disconnect <id>
    wellness-journal chat "I can't sleep"
"""

from __future__ import annotations

import argparse
import logging
import sys
from datetime import date
from typing import List, Optional

from analytics.rolling_stats import InsufficientData
from config import get_log_level
from constants import DEVICE_TYPES, SLEEP_DISTURBANCES
from pipeline.checkin_pipeline import CheckInPipeline, DeviceAlreadyConnectedError, build_pipeline
from visualizations import WellnessVisualizer
from wellness_entry import EntryValidationError, mood_name_for

log = logging.getLogger("journal_cli")


# ═══════════════════════════════════════════════════════════════
#  Commands
# ═══════════════════════════════════════════════════════════════

def cmd_add(pipeline: CheckInPipeline, args) -> int:
    try:
        entry = pipeline.submit(
            mood=args.mood,
            sleep_hours=args.sleep,
            entry_date=args.date,
            notes=args.notes,
            sleep_quality=args.quality,
            bed_time=args.bed_time,
            wake_time=args.wake_time,
            sleep_disturbances=args.disturbance,
        )
    except EntryValidationError as e:
        log.error("Entry rejected: %s", e)
        return 2
    print(f"Saved {entry.date} {entry.mood_label} mood {entry.mood}/10, {entry.sleep_hours:g} h sleep")
    print()
    print(pipeline.analysis)
    return 0


def cmd_list(pipeline: CheckInPipeline, args) -> int:
    entries = pipeline.entries(args.limit)
    if not entries:
        print("No entries yet.")
        return 0
    for e in entries:
        quality = f"  quality {e.sleep_quality}/5" if e.sleep_quality is not None else ""
        tags = f"  [{', '.join(e.sleep_disturbances)}]" if e.sleep_disturbances else ""
        print(f"{e.date}  {e.mood_label} {e.mood:>2} {mood_name_for(e.mood):<10}  "
              f"{e.sleep_hours:>4g} h{quality}{tags}")
        if e.notes:
            print(f"            {e.notes}")
    return 0


def cmd_stats(pipeline: CheckInPipeline, args) -> int:
    stats = pipeline.stats(args.window)
    if isinstance(stats, InsufficientData):
        print(f"Not enough data yet ({stats.total_entries}/{stats.required} entries).")
        return 0
    print(f"Last {stats.window} entries")
    print(f"  Average mood:   {stats.avg_mood:.2f}")
    print(f"  Average sleep:  {stats.avg_sleep_hours:.2f} h")
    if stats.avg_sleep_quality is not None:
        print(f"  Sleep quality:  {stats.avg_sleep_quality:.2f}/5")
    return 0


def cmd_insights(pipeline: CheckInPipeline, args) -> int:
    print(pipeline.analysis)
    return 0


def cmd_chart(pipeline: CheckInPipeline, args) -> int:
    slots = pipeline.weekly_series(args.today)
    written = WellnessVisualizer().export_weekly_charts(slots, args.out)
    for name, path in written.items():
        print(f"{name}: {path}")
    return 0


def cmd_devices(pipeline: CheckInPipeline, args) -> int:
    if args.action == "connect":
        try:
            device = pipeline.connect_device(args.target)
        except DeviceAlreadyConnectedError as e:
            log.error("%s", e)
            return 1
        except ValueError as e:
            log.error("%s", e)
            return 2
        print(f"Connected {device.name} ({device.id})")
        return 0

    if args.action == "disconnect":
        if not pipeline.disconnect_device(args.target):
            log.error("No device with id %s", args.target)
            return 1
        print(f"Disconnected {args.target}")
        return 0

    devices = pipeline.registry.devices()
    if not devices:
        print("No devices connected.")
    for d in devices:
        print(f"{d.id}  {d.name:<22} last sync {d.last_sync:%Y-%m-%d %H:%M}")
    return 0


def cmd_chat(pipeline: CheckInPipeline, args) -> int:
    message = " ".join(args.message).strip()
    if not message:
        log.error("Say something first.")
        return 2
    print(pipeline.chat(message))
    return 0


# ═══════════════════════════════════════════════════════════════
#  CLI
# ═══════════════════════════════════════════════════════════════

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="wellness-journal",
        description="Daily mood and sleep journal",
    )
    parser.add_argument("--storage", choices=["json", "postgres", "memory"],
                        help="Storage backend (default: WELLNESS_STORAGE or json)")
    sub = parser.add_subparsers(dest="command", required=True)

    add = sub.add_parser("add", help="Record a check-in")
    add.add_argument("--mood", type=int, required=True, help="Mood 1-10")
    add.add_argument("--sleep", type=float, required=True, help="Hours slept 0-24")
    add.add_argument("--quality", type=int, help="Sleep quality 1-5")
    add.add_argument("--date", type=date.fromisoformat, help="Entry date (default: today)")
    add.add_argument("--notes", default="")
    add.add_argument("--bed-time", help="HH:MM")
    add.add_argument("--wake-time", help="HH:MM")
    add.add_argument("--disturbance", action="append", choices=SLEEP_DISTURBANCES,
                     help="Sleep disturbance (repeatable)")
    add.set_defaults(func=cmd_add)

    ls = sub.add_parser("list", help="Show recent entries")
    ls.add_argument("--limit", type=int, default=10)
    ls.set_defaults(func=cmd_list)

    stats = sub.add_parser("stats", help="Rolling averages")
    stats.add_argument("--window", type=int, default=7)
    stats.set_defaults(func=cmd_stats)

    insights = sub.add_parser("insights", help="Latest analysis")
    insights.set_defaults(func=cmd_insights)

    chart = sub.add_parser("chart", help="Export the weekly charts as HTML")
    chart.add_argument("--out", default="wellness_reports")
    chart.add_argument("--today", type=date.fromisoformat, help="Last day of the week shown")
    chart.set_defaults(func=cmd_chart)

    devices = sub.add_parser("devices", help="Manage connected devices")
    devices.add_argument("action", nargs="?", default="list", choices=["list", "connect", "disconnect"])
    devices.add_argument("target", nargs="?",
                         help=f"Device type ({', '.join(DEVICE_TYPES)}) or device id")
    devices.set_defaults(func=cmd_devices)

    chat = sub.add_parser("chat", help="Talk to the companion")
    chat.add_argument("message", nargs="+")
    chat.set_defaults(func=cmd_chat)
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    logging.basicConfig(
        level=get_log_level(),
        format="%(asctime)s  %(levelname)-8s  %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    parser = build_parser()
    args = parser.parse_args(argv)
    if args.command == "devices" and args.action != "list" and not args.target:
        parser.error(f"devices {args.action} needs a target")
    pipeline = build_pipeline(args.storage)
    return args.func(pipeline, args)


if __name__ == "__main__":
    sys.exit(main())
