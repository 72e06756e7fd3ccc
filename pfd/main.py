"""Replay recorded simulator samples through the display core.

Usage:
    python -m pfd.main replay recording.json --log-level DEBUG

The recording is a JSON list of events:

    {"t": 0.0, "name": "elec", "value": 1}
    {"t": 0.5, "name": "altitude", "value": 10450, "ssm": 3}
    {"t": 0.6, "name": "speed", "word": 1.2345e-300}

An event with "word" is published as the raw transport value. A "value" on a
word channel (attitude, heading, altitude, speed, vertical speed) or with an
"ssm" is packed as a signal word, normal operation by default; any other
"value" is a plain channel value.
The display is ticked at the configured frame rate between event timestamps
and the final frame is printed as JSON.
"""
import argparse
import json
import logging
import math
import sys
from typing import Any, Dict, List, Optional

from pfd.config import ConfigManager
from pfd.exceptions import PfdException, ReplayError
from pfd.models.display import DisplayFrame
from pfd.models.signal_word import transport_value
from pfd.services.service_container import ServiceContainer

logger = logging.getLogger(__name__)


def load_events(file_path: str) -> List[Dict[str, Any]]:
    """Load and validate a recording, sorted by timestamp (stable).

    Raises:
        ReplayError: If the file is unreadable or an event is malformed
    """
    try:
        with open(file_path, 'r', encoding='utf-8') as f:
            data = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        raise ReplayError(f"Cannot read recording {file_path}: {e}", file_path=file_path)

    if not isinstance(data, list):
        raise ReplayError("Recording must be a JSON list of events", file_path=file_path)

    events = []
    for index, raw in enumerate(data):
        if not isinstance(raw, dict) or 'name' not in raw or not ('value' in raw or 'word' in raw):
            raise ReplayError(f"Event {index} needs a name and a value or word: {raw!r}",
                              file_path=file_path, index=index)
        try:
            t = float(raw.get('t', 0.0))
            event = {'t': t, 'name': str(raw['name'])}
            if 'word' in raw:
                event['raw'] = float(raw['word'])
            else:
                event['raw'] = transport_value(event['name'], raw['value'], raw.get('ssm'))
        except (TypeError, ValueError, PfdException) as e:
            raise ReplayError(f"Event {index} is malformed: {e}", file_path=file_path, index=index)
        if not math.isfinite(t) or t < 0:
            raise ReplayError(f"Event {index} has an invalid timestamp {t}",
                              file_path=file_path, index=index)
        events.append(event)

    events.sort(key=lambda e: e['t'])
    return events


def replay(service, events: List[Dict[str, Any]], frame_period: float,
           tail: float = 0.0) -> DisplayFrame:
    """Feed events to a PfdService, ticking in frame_period steps between them.

    Args:
        service: PfdService to drive
        events: Events from load_events()
        frame_period: Tick length in seconds
        tail: Extra seconds to tick after the last event

    Returns:
        The frame after the last tick
    """
    scheduler = service.scheduler

    def run_until(target: float) -> None:
        while target - scheduler.now > frame_period:
            service.tick(frame_period)
        remaining = target - scheduler.now
        if remaining > 0:
            service.tick(remaining)

    for event in events:
        run_until(event['t'])
        service.publish(event['name'], event['raw'])
        logger.debug(f"t={scheduler.now:.3f} {event['name']}={event['raw']!r}")

    if tail > 0:
        run_until(scheduler.now + tail)
    return service.frame()


def parse_args(argv: Optional[List[str]] = None):
    p = argparse.ArgumentParser(description="PFD display core tools")
    p.add_argument("--config", default=None, help="Path to a JSON config file")
    p.add_argument("--log-level", default=None, help="Logging level (overrides config and PFD_LOG_LEVEL)")
    sub = p.add_subparsers(dest="command", required=True)

    r = sub.add_parser("replay", help="Replay a JSON recording and print the final frame")
    r.add_argument("file", help="Recording file (JSON list of events)")
    r.add_argument("--tail", type=float, default=0.0, help="Seconds to keep ticking after the last event")
    return p.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)

    config = ConfigManager(config_file=args.config)
    level = (args.log_level or config.app_settings.log_level).upper()
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    container = ServiceContainer()
    try:
        container.initialize_services(config)
        events = load_events(args.file)
        frame = replay(container.get_pfd_service(), events,
                       frame_period=1.0 / config.app_settings.frame_rate_hz, tail=args.tail)
    except PfdException as e:
        logger.error(f"Replay failed: {e}")
        return 2
    finally:
        container.clear()

    print(json.dumps(frame.to_dict(), indent=2))
    return 0


if __name__ == '__main__':
    sys.exit(main())
