import argparse
import logging
import sys
import time
from datetime import date

from mihrab.core.app import MihrabApp
from mihrab.core.prayers import PrayerName


def setup_basic_logging():
    """Setup basic stdout logging before config is loaded"""
    root_logger = logging.getLogger()
    if not root_logger.handlers:  # Only add handler if none exists
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter(
            '%(asctime)s - %(name)s - %(levelname)s - [%(filename)s:%(lineno)d] - %(message)s'
        ))
        root_logger.addHandler(handler)
        root_logger.setLevel(logging.INFO)
        logging.debug("Basic logging initialized")


def _date_arg(value: str) -> date:
    try:
        return date.fromisoformat(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid date {value!r}, expected YYYY-MM-DD")


def _prayer_arg(value: str) -> PrayerName:
    try:
        return PrayerName.parse(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"unknown prayer {value!r}")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description='Mihrab prayer tracker and reminder service')
    parser.add_argument('--config',
                        help='Path to config file (default: ~/.mihrab/config.yaml)')
    sub = parser.add_subparsers(dest='command')

    sub.add_parser('run', help='Run the reminder service and API (default)')

    toggle = sub.add_parser('toggle', help='Flip one prayer for a day')
    toggle.add_argument('date', type=_date_arg)
    toggle.add_argument('prayer', type=_prayer_arg)

    stats = sub.add_parser('stats', help='Show streaks and weekly totals')
    stats.add_argument('--date', type=_date_arg, default=None)

    insight = sub.add_parser('insight', help="Show the day's recommendation")
    insight.add_argument('--date', type=_date_arg, default=None)

    sub.add_parser('next', help='Show the next prayer')
    sub.add_parser('sync', help='Resynchronise pending notifications now')
    sub.add_parser('test-notification', help='Deliver a test notification in 3 seconds')
    return parser


def main(argv=None) -> int:
    setup_basic_logging()
    args = build_parser().parse_args(argv)
    command = args.command or 'run'

    if command == 'run':
        app = MihrabApp(config_path=args.config)
        app.run()
        return 0

    app = MihrabApp(config_path=args.config, start_services=False)
    try:
        if command == 'toggle':
            record = app.log_store.toggle(args.date, args.prayer)
            marks = ", ".join(f"{p.value}={'x' if done else '-'}" for p, done in record.items())
            print(f"{args.date.isoformat()}: {marks}")
        elif command == 'stats':
            s = app.compute_stats(args.date)
            print(f"Weekly: {s.weekly_total}/35 ({s.weekly_percentage}%)")
            print(" ".join(f"{d.label}:{d.completed}" for d in s.weekly))
            print(f"Current streak: {s.current_streak}  Best streak: {s.best_streak}")
            if s.most_missed is not None:
                print(f"Most missed: {s.most_missed.value} ({s.max_missed_count})")
        elif command == 'insight':
            rec = app.recommend(args.date)
            print(f"[{rec.category.value}] {rec.message}")
            print(f"{rec.item.text}\n  ({rec.item.source})")
        elif command == 'next':
            print(app.next_prayer().describe())
        elif command == 'sync':
            scheduled = app.sync_notifications()
            print(f"Scheduled: {scheduled}, pending: {len(app.dispatcher.list_pending())}")
        elif command == 'test-notification':
            if not app.scheduler.send_test_notification():
                print("Notification permission not granted")
                return 1
            # Stay alive long enough for the delivery timer to fire
            time.sleep(5)
    finally:
        app.stop()
    return 0


if __name__ == "__main__":
    sys.exit(main())
