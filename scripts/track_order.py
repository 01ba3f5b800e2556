"""
Live tracking from the command line.

Polls a running order service for one order and rewrites a Leaflet map
page every time the tracking data changes. Open the HTML file in a browser
and reload it to follow the delivery agent.

    python scripts/track_order.py 3 --output order-3.html --interval 5
"""

import argparse
import asyncio
import logging
import signal
import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from ordertrack.app.core.config import settings
from ordertrack.app.core.observability import configure_logging
from ordertrack.client.api_client import OrdersApiClient
from ordertrack.client.location_fetcher import LocationFetcher
from ordertrack.client.widget import TrackingWidget, WidgetState, build_reconciler

logger = logging.getLogger("ordertrack.track_order")


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Follow an order's delivery agent on a map")
    parser.add_argument("order_id", type=int)
    parser.add_argument("--base-url", default=settings.tracking_base_url)
    parser.add_argument("--output", default=None, help="HTML file to write (default: order-<id>.html)")
    parser.add_argument("--interval", type=float, default=settings.poll_interval_ms / 1000,
                        help="Seconds between polls")
    return parser.parse_args(argv)


def make_change_handler(output: Path):
    def on_change(widget: TrackingWidget) -> None:
        if widget.message:
            print(f"[{widget.state.value}] {widget.message}")
        elif widget.session and widget.session.current_location:
            current = widget.session.current_location
            summary = widget.route_summary or "no route"
            print(f"[{widget.state.value}] agent at {current.lat:.5f}, {current.lng:.5f} ({summary})")

        provider = widget.reconciler.provider
        if widget.state == WidgetState.LIVE and provider is not None:
            provider.save(str(output))
    return on_change


async def run(args) -> None:
    output = Path(args.output or f"order-{args.order_id}.html")
    stop = asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, stop.set)
        except NotImplementedError:
            # Windows event loops: Ctrl+C raises KeyboardInterrupt instead
            pass

    async with OrdersApiClient(args.base_url) as api:
        widget = TrackingWidget(
            args.order_id,
            LocationFetcher(api),
            build_reconciler("leaflet"),
            poll_interval=args.interval,
            on_change=make_change_handler(output),
        )
        async with widget:
            print(f"Tracking order {args.order_id}; writing {output}. Ctrl+C to stop.")
            await stop.wait()


def main(argv=None) -> None:
    configure_logging(settings.debug)
    asyncio.run(run(parse_args(argv)))


if __name__ == "__main__":
    main()
