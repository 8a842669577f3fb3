"""
Flat-file storage for the events collection.

The whole collection lives in one JSON object keyed by event id. Every
request loads it, mutates it in memory and writes it back; there is no
locking, so the last writer wins.
"""
import json
import logging
import os
import re
import tempfile

logger = logging.getLogger(__name__)

EVENT_ID_RE = re.compile(r'^[a-z0-9_-]+$')


class EventNotFound(KeyError):
    """Raised when an event id is not present in the collection."""

    def __init__(self, event_id):
        super().__init__(event_id)
        self.event_id = event_id


def is_valid_event_id(event_id):
    return bool(event_id) and EVENT_ID_RE.match(event_id) is not None


def load_events(path):
    """
    Load the events collection from disk.

    Returns an empty dict when the file does not exist, cannot be parsed,
    or does not contain a JSON object.
    """
    if not os.path.exists(path):
        return {}

    try:
        with open(path, 'r', encoding='utf-8') as f:
            data = json.load(f)
    except (OSError, ValueError) as e:
        logger.warning(f"[STORE] Unreadable events file, treating as empty - path: {path}, error: {str(e)}")
        return {}

    if not isinstance(data, dict):
        # An empty collection used to be written as []
        if data:
            logger.warning(f"[STORE] Events file is not an object, treating as empty - path: {path}, type: {type(data).__name__}")
        return {}

    return data


def save_events(path, events):
    """
    Write the events collection to disk.

    The JSON is written to a temporary file next to the target and moved
    into place, so a failed write leaves the previous file untouched.
    """
    directory = os.path.dirname(os.path.abspath(path))
    os.makedirs(directory, exist_ok=True)

    fd, tmp_path = tempfile.mkstemp(prefix='.events-', suffix='.json', dir=directory)
    try:
        with os.fdopen(fd, 'w', encoding='utf-8') as f:
            json.dump(events, f, indent=2, ensure_ascii=False)
        os.replace(tmp_path, path)
    except Exception:
        if os.path.exists(tmp_path):
            os.remove(tmp_path)
        raise

    logger.info(f"[STORE] Saved {len(events)} events - path: {path}")


def get_event(events, event_id):
    try:
        return events[event_id]
    except KeyError:
        raise EventNotFound(event_id)


def public_events(events):
    """Copy of the collection without the private admin notes."""
    return {
        event_id: {k: v for k, v in event.items() if k != 'note'}
        for event_id, event in events.items()
    }
