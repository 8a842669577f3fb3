"""
Photo list operations on events.

Photos are identified by their position in the event's list, so deleting
or reordering renumbers every photo after the affected one.
"""
import logging
import os
import shutil

from gallery.store import get_event

logger = logging.getLogger(__name__)

PHOTO_FILE_KEYS = ('full', 'thumb')


def new_event(title, date='', location=''):
    return {
        'title': title,
        'date': date,
        'location': location,
        'photos': [],
        'views': 0,
        'visitors': 0,
        'stats': {},
    }


def append_photos(events, event_id, photos, title='', date='', location=''):
    """
    Append photos to an event, creating the event first if needed.

    Metadata is only applied when the event is created; uploads to an
    existing event keep its title, date and location.
    """
    if event_id not in events:
        events[event_id] = new_event(title, date, location)
        logger.info(f"[PHOTOS] Created event - event_id: {event_id}, operation: append_photos")

    event = events[event_id]
    event['photos'] = list(event.get('photos') or []) + list(photos)
    return event


def delete_photo(events, event_id, index, image_dir):
    """
    Remove the photo at ``index`` and unlink its full and thumb files.

    Raises EventNotFound for an unknown event and IndexError when the index
    is out of range.
    """
    event = get_event(events, event_id)
    photos = list(event.get('photos') or [])

    if index < 0 or index >= len(photos):
        raise IndexError(index)

    photo = photos.pop(index)
    event_dir = os.path.join(image_dir, event_id)

    for key in PHOTO_FILE_KEYS:
        url = photo.get(key) if isinstance(photo, dict) else None
        if not url:
            continue
        # only the basename is trusted, the URL may have been edited client-side
        path = os.path.join(event_dir, os.path.basename(url))
        if os.path.isfile(path):
            os.remove(path)
            logger.info(f"[PHOTOS] Deleted file - event_id: {event_id}, path: {path}, operation: delete_photo")

    event['photos'] = photos
    return photo


def reorder_photos(events, event_id, photos):
    """Replace the event's photo list with the client's list as given."""
    if not isinstance(photos, list):
        raise ValueError("photos must be a list")

    event = get_event(events, event_id)
    event['photos'] = photos
    return event


def update_meta(events, event_id, title='', note='', date='', location=''):
    event = get_event(events, event_id)

    if title:
        event['title'] = title
    if date:
        event['date'] = date
    if location:
        event['location'] = location

    # an empty note clears it
    event['note'] = note
    return event


def delete_event(events, event_id, image_dir):
    """Remove an event and its image directory."""
    event = get_event(events, event_id)

    event_dir = os.path.join(image_dir, event_id)
    if os.path.isdir(event_dir):
        shutil.rmtree(event_dir)
        logger.info(f"[PHOTOS] Deleted image folder - event_id: {event_id}, path: {event_dir}, operation: delete_event")

    del events[event_id]
    return event
