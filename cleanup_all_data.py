"""
Script to clean up all events and photos from the event gallery.
This will delete:
- All events from events.json
- All image folders from the gallery image directory

Paths are taken from the same GALLERY_DATA_DIR / GALLERY_IMAGE_DIR
environment variables the API uses.

USE WITH CAUTION - THIS CANNOT BE UNDONE!
"""

import os
import shutil

from dotenv import load_dotenv

from gallery.store import save_events


def default_paths():
    base_dir = os.path.dirname(os.path.abspath(__file__))
    data_dir = os.environ.get('GALLERY_DATA_DIR', os.path.join(base_dir, 'data'))
    image_folder = os.environ.get('GALLERY_IMAGE_DIR', os.path.join(base_dir, 'gallery-images'))
    return os.path.join(data_dir, 'events.json'), image_folder


def clear_gallery_data(events_file, image_folder):
    """Empty the events file and remove everything under the image folder."""
    removed = []

    if os.path.exists(events_file):
        save_events(events_file, {})
        print(f"Cleared {events_file}")
    else:
        print(f"{events_file} not found")

    if os.path.exists(image_folder):
        for item in sorted(os.listdir(image_folder)):
            item_path = os.path.join(image_folder, item)
            if os.path.isdir(item_path):
                shutil.rmtree(item_path)
            else:
                os.remove(item_path)
            removed.append(item)
            print(f"Deleted {item_path}")
    else:
        print(f"{image_folder} not found")

    return removed


def cleanup_all_data():
    events_file, image_folder = default_paths()

    print("=" * 60)
    print("Event Gallery Data Cleanup Script")
    print("=" * 60)
    print("\nThis will DELETE:")
    print(f"  - All events from {events_file}")
    print(f"  - All images under {image_folder}")
    print("\nWARNING: THIS CANNOT BE UNDONE!\n")

    confirm = input("Type 'DELETE ALL' to confirm: ")

    if confirm != "DELETE ALL":
        print("\nCleanup cancelled.")
        return

    removed = clear_gallery_data(events_file, image_folder)

    print("\n" + "=" * 60)
    print(f"Cleanup complete! Removed {len(removed)} image folders/files.")
    print("=" * 60)


if __name__ == "__main__":
    load_dotenv()
    cleanup_all_data()
