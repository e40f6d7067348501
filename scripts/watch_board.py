#!/usr/bin/env python3
"""
Watch a live board from a terminal and log orders as they arrive

    python scripts/watch_board.py <restaurant_id> <staff_id> --board kitchen --mode individual
"""

import argparse
import asyncio
import signal
import uuid


def parse_args():
    parser = argparse.ArgumentParser(description="Poll a live order board")
    parser.add_argument("restaurant_id", type=uuid.UUID)
    parser.add_argument("staff_id", type=uuid.UUID)
    parser.add_argument("--board", choices=("kitchen", "delivery", "manager"), default="kitchen")
    parser.add_argument("--mode", default=None, help="Role mode for this session (team, individual, chef, coordinator)")
    parser.add_argument("--interval", type=float, default=None, help="Seconds between polls")
    return parser.parse_args()


def main() -> None:
    from orderdesk.boards.watch import watch_board
    from orderdesk.main import configure_logging
    
    args = parse_args()
    configure_logging()
    
    shutdown_event = asyncio.Event()
    
    loop = asyncio.new_event_loop()
    try:
        for sig in (signal.SIGTERM, signal.SIGINT):
            loop.add_signal_handler(sig, shutdown_event.set)
    except NotImplementedError:
        signal.signal(signal.SIGTERM, lambda *a: shutdown_event.set())
        signal.signal(signal.SIGINT, lambda *a: shutdown_event.set())
    
    asyncio.set_event_loop(loop)
    try:
        loop.run_until_complete(
            watch_board(
                args.restaurant_id,
                args.staff_id,
                args.board,
                shutdown_event,
                role_mode=args.mode,
                interval=args.interval,
            )
        )
    finally:
        loop.close()


if __name__ == "__main__":
    main()
