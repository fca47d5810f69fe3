import argparse
import asyncio
import os

from litup.core import log
from litup.core.metrics import force_emit, start_exporter, stop_exporter
from litup.demo import run_demo
from litup.wire_config import AppSettings


async def main(delay: float, show_metrics: bool, metrics_interval: float):
    json_mode = (os.getenv("LOG_JSON", "0") == "1")
    if metrics_interval > 0:
        start_exporter(interval_sec=metrics_interval, json_mode=json_mode, logger=log.get("metrics"))
    try:
        surface = await run_demo(delay=delay, logger=True)
    finally:
        stop_exporter()

    lg = log.get("demo.examples")
    lg.info("rendered %d frames", len(surface.frames))
    print(surface.body)
    if show_metrics:
        force_emit(logger=log.get("metrics"), json_mode=json_mode)


if __name__ == "__main__":
    ap = argparse.ArgumentParser(description="Run the litup example app headless")
    ap.add_argument("--delay", type=float, default=1.0, help="simulated remote fetch delay (s)")
    ap.add_argument("--log-level", default=None)
    ap.add_argument("--json", action="store_true", help="JSON log lines")
    ap.add_argument("--metrics", action="store_true", help="dump a metrics snapshot at the end")
    ap.add_argument("--metrics-interval", type=float,
                    default=float(os.getenv("METRICS_INTERVAL", "0")),
                    help="log metrics every N seconds while running (0 = off)")
    args = ap.parse_args()

    settings = AppSettings.from_env()
    if args.log_level:
        settings.log_level = args.log_level.upper()
    if args.json:
        settings.log_json = True
        os.environ["LOG_JSON"] = "1"
    settings.apply_logging()

    asyncio.run(main(args.delay, args.metrics, args.metrics_interval))
