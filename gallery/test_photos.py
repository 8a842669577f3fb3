"""
Tests for photo list operations.
"""
import json
import os
from collections import Counter

import pytest
from hypothesis import given, strategies as st, settings

from gallery.photos import (
    append_photos, delete_event, delete_photo, new_event, reorder_photos, update_meta
)
from gallery.store import EventNotFound


def photo(name):
    return {
        'full': f"/gallery-images/ev/{name}_full.webp",
        'thumb': f"/gallery-images/ev/{name}_thumb.webp",
        'alt': f"Event - {name}",
    }


def write_photo_files(event_dir, name):
    os.makedirs(event_dir, exist_ok=True)
    for kind in ('full', 'thumb'):
        with open(os.path.join(event_dir, f"{name}_{kind}.webp"), 'wb') as f:
            f.write(b'webp')


# ============================================================================
# append_photos
# ============================================================================

def test_append_creates_event_with_zero_counters():
    events = {}

    event = append_photos(events, 'ev', [photo('a')], title='Event', date='2025-05-03', location='Hall')

    assert events['ev'] is event
    assert event == {
        'title': 'Event',
        'date': '2025-05-03',
        'location': 'Hall',
        'photos': [photo('a')],
        'views': 0,
        'visitors': 0,
        'stats': {},
    }


def test_append_to_existing_event_keeps_metadata():
    events = {'ev': new_event('Original', '2025-01-01', 'Hall')}
    append_photos(events, 'ev', [photo('a')])

    append_photos(events, 'ev', [photo('b'), photo('a')], title='Other', date='2026-01-01')

    assert events['ev']['title'] == 'Original'
    assert events['ev']['date'] == '2025-01-01'
    assert events['ev']['photos'] == [photo('a'), photo('b'), photo('a')]


# ============================================================================
# delete_photo
# ============================================================================

def test_delete_photo_removes_one_entry_and_its_files(tmp_path):
    image_dir = str(tmp_path)
    event_dir = os.path.join(image_dir, 'ev')
    for name in ('a', 'b', 'c'):
        write_photo_files(event_dir, name)
    events = {'ev': new_event('Event')}
    events['ev']['photos'] = [photo('a'), photo('b'), photo('c')]

    removed = delete_photo(events, 'ev', 1, image_dir)

    assert removed == photo('b')
    # later photos shift down by one
    assert events['ev']['photos'] == [photo('a'), photo('c')]
    assert sorted(os.listdir(event_dir)) == [
        'a_full.webp', 'a_thumb.webp', 'c_full.webp', 'c_thumb.webp'
    ]


def test_delete_photo_only_uses_url_basename(tmp_path):
    image_dir = tmp_path / 'images'
    write_photo_files(str(image_dir / 'ev'), 'a')
    outside = tmp_path / 'outside_full.webp'
    outside.write_bytes(b'keep')
    events = {'ev': new_event('Event')}
    events['ev']['photos'] = [{
        'full': '/gallery-images/ev/../../outside_full.webp',
        'thumb': '/gallery-images/ev/a_thumb.webp',
        'alt': '',
    }]

    delete_photo(events, 'ev', 0, str(image_dir))

    assert outside.exists()
    assert not (image_dir / 'ev' / 'a_thumb.webp').exists()


def test_delete_photo_tolerates_missing_files(tmp_path):
    events = {'ev': new_event('Event')}
    events['ev']['photos'] = [photo('gone')]

    delete_photo(events, 'ev', 0, str(tmp_path))

    assert events['ev']['photos'] == []


@pytest.mark.parametrize('index', [-1, 3, 10])
def test_delete_photo_out_of_range(tmp_path, index):
    events = {'ev': new_event('Event')}
    events['ev']['photos'] = [photo('a'), photo('b'), photo('c')]

    with pytest.raises(IndexError):
        delete_photo(events, 'ev', index, str(tmp_path))
    assert len(events['ev']['photos']) == 3


def test_delete_photo_unknown_event(tmp_path):
    with pytest.raises(EventNotFound):
        delete_photo({}, 'ev', 0, str(tmp_path))


# ============================================================================
# reorder_photos
# ============================================================================

@given(
    names=st.lists(st.sampled_from(['a', 'b', 'c', 'd']), min_size=0, max_size=12),
    data=st.data(),
)
@settings(max_examples=100, deadline=None)
def test_reorder_with_permutation_preserves_multiplicities(names, data):
    """
    Reordering with any permutation of the existing photos keeps exactly the
    same photos, duplicates included.
    """
    events = {'ev': new_event('Event')}
    events['ev']['photos'] = [photo(n) for n in names]
    before = Counter(json.dumps(p, sort_keys=True) for p in events['ev']['photos'])

    permutation = data.draw(st.permutations(list(range(len(names)))))
    reordered = [events['ev']['photos'][i] for i in permutation]

    reorder_photos(events, 'ev', reordered)

    after = Counter(json.dumps(p, sort_keys=True) for p in events['ev']['photos'])
    assert after == before
    assert events['ev']['photos'] == reordered


def test_reorder_overwrites_verbatim():
    events = {'ev': new_event('Event')}
    events['ev']['photos'] = [photo('a')]
    replacement = [photo('x'), {'full': 'whatever'}]

    reorder_photos(events, 'ev', replacement)

    assert events['ev']['photos'] == replacement


def test_reorder_rejects_non_list():
    events = {'ev': new_event('Event')}
    with pytest.raises(ValueError):
        reorder_photos(events, 'ev', {'0': photo('a')})


# ============================================================================
# update_meta / delete_event
# ============================================================================

def test_update_meta_only_replaces_non_empty_fields_and_clears_note():
    events = {'ev': new_event('Title', '2025-05-03', 'Hall')}
    events['ev']['note'] = 'old note'

    update_meta(events, 'ev', title='', note='', date='2025-06-01')

    assert events['ev']['title'] == 'Title'
    assert events['ev']['date'] == '2025-06-01'
    assert events['ev']['location'] == 'Hall'
    assert events['ev']['note'] == ''


def test_update_meta_defaults_keep_stored_fields():
    events = {'ev': new_event('Title', '2025-05-03', 'Hall')}

    update_meta(events, 'ev', note='bring tripod')

    assert events['ev']['title'] == 'Title'
    assert events['ev']['date'] == '2025-05-03'
    assert events['ev']['location'] == 'Hall'
    assert events['ev']['note'] == 'bring tripod'


def test_delete_event_removes_event_and_folder(tmp_path):
    write_photo_files(str(tmp_path / 'ev'), 'a')
    events = {'ev': new_event('Event'), 'other': new_event('Other')}

    delete_event(events, 'ev', str(tmp_path))

    assert list(events) == ['other']
    assert not (tmp_path / 'ev').exists()


def test_delete_event_unknown(tmp_path):
    with pytest.raises(EventNotFound):
        delete_event({}, 'ev', str(tmp_path))
