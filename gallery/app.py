# app.py  (flat-file event gallery API)
from dotenv import load_dotenv
load_dotenv()

from flask import Flask, request, jsonify, send_from_directory, send_file
from flask_cors import CORS
from werkzeug.exceptions import HTTPException
from datetime import timedelta
from io import BytesIO
import os
import json
import qrcode

from gallery.auth import (
    admin_required, check_credentials, current_admin, login_admin, logout_admin
)
from gallery.images import save_upload, sanitize_basename
from gallery.photos import (
    append_photos, delete_event as remove_event, delete_photo as remove_photo,
    reorder_photos, update_meta
)
from gallery.stats import (
    UNITS, VISIT_COOKIE_MAX_AGE, aggregate, default_range, is_new_visitor, iso_day,
    last_n_days, parse_day, record_view, sum_stats, visit_cookie_name
)
from gallery.store import (
    EventNotFound, get_event, is_valid_event_id, load_events, public_events, save_events
)


# --- CONFIGURATION ---
import logging

# WARNING by default, set LOG_LEVEL=INFO to trace uploads and saves
logging.basicConfig(level=os.environ.get("LOG_LEVEL", "WARNING").upper())
logger = logging.getLogger(__name__)

BASE_DIR = os.path.dirname(os.path.abspath(__file__))

app = Flask(__name__)

FLASK_SECRET_KEY = os.environ.get("FLASK_SECRET_KEY")
if not FLASK_SECRET_KEY:
    logger.warning("FLASK_SECRET_KEY environment variable not set. Using default (not secure for production).")
    FLASK_SECRET_KEY = "dev-change-me"
app.secret_key = FLASK_SECRET_KEY

ADMIN_EMAIL = os.environ.get("GALLERY_ADMIN_EMAIL", "admin@example.com")
ADMIN_PASSWORD_HASH = os.environ.get("GALLERY_ADMIN_PASSWORD_HASH")
ADMIN_PASSWORD = os.environ.get("GALLERY_ADMIN_PASSWORD")
if not ADMIN_PASSWORD_HASH and not ADMIN_PASSWORD:
    logger.warning("Neither GALLERY_ADMIN_PASSWORD_HASH nor GALLERY_ADMIN_PASSWORD is set. Admin login is disabled.")

PORT = int(os.environ.get("PORT", 8080))

# File paths
DATA_DIR = os.environ.get("GALLERY_DATA_DIR", os.path.join(BASE_DIR, '..', 'data'))
IMAGE_FOLDER = os.environ.get("GALLERY_IMAGE_DIR", os.path.join(BASE_DIR, '..', 'gallery-images'))
IMAGE_URL_BASE = os.environ.get("GALLERY_IMAGE_URL_BASE", "/gallery-images").rstrip('/')

app.config['ADMIN_EMAIL'] = ADMIN_EMAIL
app.config['ADMIN_PASSWORD_HASH'] = ADMIN_PASSWORD_HASH
app.config['ADMIN_PASSWORD'] = ADMIN_PASSWORD
app.config['EVENTS_FILE'] = os.path.join(DATA_DIR, 'events.json')
app.config['IMAGE_FOLDER'] = IMAGE_FOLDER
app.config['IMAGE_URL_BASE'] = IMAGE_URL_BASE
app.config['DEV_ORIGIN'] = os.environ.get("GALLERY_DEV_ORIGIN", "http://localhost:5173")
app.config['PUBLIC_GALLERY_URL'] = os.environ.get("GALLERY_PUBLIC_URL", "http://localhost:5173").rstrip('/')
app.config['DEFAULT_LOCATION'] = os.environ.get("GALLERY_DEFAULT_LOCATION", "")
app.config['MAX_CONTENT_LENGTH'] = int(os.environ.get("MAX_UPLOAD_MB", "200")) * 1024 * 1024
app.config['PERMANENT_SESSION_LIFETIME'] = timedelta(hours=12)
app.config['SESSION_COOKIE_HTTPONLY'] = True
app.config['SESSION_COOKIE_SAMESITE'] = "Lax"

# Directory initialization with error handling
for folder in (DATA_DIR, IMAGE_FOLDER):
    try:
        os.makedirs(folder, exist_ok=True)
        logger.info(f"Folder ready: {folder}")
    except Exception as e:
        logger.error(f"Failed to create folder {folder}: {e}")
        raise


# --- RESPONSE HELPERS ---
def json_ok(status=200, **data):
    return jsonify({"ok": True, **data}), status


def json_fail(message, status=400, **extra):
    return jsonify({"ok": False, "error": message, **extra}), status


def request_data():
    """JSON object body if one was sent, otherwise the form fields."""
    if request.is_json:
        data = request.get_json(silent=True)
        if isinstance(data, dict):
            return data
    return request.form


def field(data, name):
    value = data.get(name)
    if value is None:
        return ''
    return str(value).strip()


def events_path():
    return app.config['EVENTS_FILE']


def image_dir():
    return app.config['IMAGE_FOLDER']


# --- CORS / CACHING ---
# Only the dev origin (Vite server) is cross-origin; production is same-origin
CORS(
    app,
    resources={r"/api/*": {"origins": [app.config['DEV_ORIGIN']]}},
    supports_credentials=True,
    methods=['GET', 'POST', 'OPTIONS'],
    allow_headers=['Content-Type'],
)


@app.after_request
def add_cache_headers(response):
    """API responses are never cached."""
    if request.path.startswith('/api/'):
        response.headers['Cache-Control'] = 'no-store'

    return response


# --- ERROR HANDLERS ---
@app.errorhandler(HTTPException)
def handle_http_error(e):
    messages = {
        404: "Not found",
        405: "Method not allowed",
        413: "Upload too large",
    }
    return json_fail(messages.get(e.code, e.description), e.code)


@app.errorhandler(Exception)
def handle_unexpected_error(e):
    logger.exception(f"[API] Unhandled error - path: {request.path}, method: {request.method}")
    return json_fail("Internal server error", 500)


# --- AUTH API ---
@app.route('/api/gallery/login', methods=['POST'])
def login():
    data = request_data()
    email = str(data.get('email') or '')
    password = str(data.get('password') or '')

    if not email or not password:
        return json_fail("Email and password are required")

    if not check_credentials(
        email, password, app.config['ADMIN_EMAIL'],
        password_hash=app.config.get('ADMIN_PASSWORD_HASH'),
        plain_password=app.config.get('ADMIN_PASSWORD'),
    ):
        logger.warning("[AUTH] Failed admin login attempt")
        return json_fail("Invalid login credentials", 401)

    login_admin(email)
    return json_ok(admin={"email": email})


@app.route('/api/gallery/logout', methods=['POST'])
def logout():
    logout_admin()
    return json_ok()


@app.route('/api/gallery/me', methods=['GET'])
def me():
    admin = current_admin()
    if admin is None:
        return json_fail("Not logged in", 401)
    return json_ok(admin={"email": admin['email']})


# --- EVENTS API / PUBLIC DATA ---
@app.route('/api/gallery/events', methods=['GET'])
def list_events():
    events = load_events(events_path())
    if current_admin() is None:
        events = public_events(events)
    return json_ok(events=events)


@app.route('/api/gallery/view_event', methods=['POST'])
def view_event():
    """
    Count a view of an event.
    Every call adds a view; a visitor is added once per event per day,
    remembered with a cookie holding the day of the last counted visit.
    """
    event_id = field(request_data(), 'event_id')
    if not event_id:
        return json_fail("event_id is required")

    events = load_events(events_path())
    try:
        event = get_event(events, event_id)
    except EventNotFound:
        return json_fail("Event not found", 404)

    today = iso_day()
    cookie_name = visit_cookie_name(event_id)
    new_visitor = is_new_visitor(request.cookies.get(cookie_name), today)

    record_view(event, today, new_visitor)
    save_events(events_path(), events)

    response, status = json_ok(eventId=event_id, views=event['views'], visitors=event['visitors'])
    if new_visitor:
        response.set_cookie(
            cookie_name, today,
            max_age=VISIT_COOKIE_MAX_AGE, httponly=True, samesite='Lax'
        )
    return response, status


# --- ADMIN EVENT MANAGEMENT ---
@app.route('/api/gallery/upload_event', methods=['POST'])
@admin_required
def upload_event():
    """
    Create an event or append photos to an existing one.
    Every accepted file is stored as <name>_full.webp and <name>_thumb.webp
    in the event's image folder.
    """
    event_id = field(request.form, 'event_id')
    title = field(request.form, 'title')
    date = field(request.form, 'date')
    location = field(request.form, 'location')

    if not event_id or not title or not date:
        return json_fail("event_id, title and date are required")

    if not is_valid_event_id(event_id):
        return json_fail("event_id may only contain lowercase letters, digits, underscores and hyphens")

    files = [
        f for f in request.files.getlist('photos') + request.files.getlist('photos[]')
        if f and f.filename
    ]
    if not files:
        return json_fail("Upload at least one image file")

    event_dir = os.path.join(image_dir(), event_id)
    photos = []
    for file_storage in files:
        photo = save_upload(file_storage, event_dir, app.config['IMAGE_URL_BASE'], event_id, title)
        if photo is not None:
            photos.append(photo)

    if not photos:
        return json_fail("No valid images")

    events = load_events(events_path())
    event = append_photos(
        events, event_id, photos,
        title=title, date=date, location=location or app.config['DEFAULT_LOCATION']
    )
    save_events(events_path(), events)

    logger.info(f"[UPLOAD] Added {len(photos)} of {len(files)} files - event_id: {event_id}")
    return json_ok(eventId=event_id, event=event, events=events, added=len(photos))


@app.route('/api/gallery/delete_event', methods=['POST'])
@admin_required
def delete_event():
    event_id = field(request_data(), 'event_id')
    if not event_id:
        return json_fail("event_id is required")
    if not is_valid_event_id(event_id):
        return json_fail("Invalid event_id")

    events = load_events(events_path())
    try:
        remove_event(events, event_id, image_dir())
    except EventNotFound:
        return json_fail("Event not found", 404)

    save_events(events_path(), events)
    return json_ok(eventId=event_id, events=events)


@app.route('/api/gallery/delete_photo', methods=['POST'])
@admin_required
def delete_photo():
    data = request_data()
    event_id = field(data, 'event_id')
    try:
        index = int(field(data, 'photo_index'))
    except ValueError:
        index = -1

    if not event_id or index < 0:
        return json_fail("event_id and photo_index are required")
    if not is_valid_event_id(event_id):
        return json_fail("Invalid event_id")

    events = load_events(events_path())
    try:
        remove_photo(events, event_id, index, image_dir())
    except EventNotFound:
        return json_fail("Event not found", 404)
    except IndexError:
        return json_fail("No photo at that index", 404)

    save_events(events_path(), events)
    return json_ok(eventId=event_id, event=events[event_id], events=events)


@app.route('/api/gallery/update_event_meta', methods=['POST'])
@admin_required
def update_event_meta():
    data = request_data()
    event_id = field(data, 'event_id')
    if not event_id:
        return json_fail("event_id is required")

    events = load_events(events_path())
    try:
        event = update_meta(
            events, event_id,
            title=field(data, 'title'),
            note=field(data, 'note'),
            date=field(data, 'date'),
            location=field(data, 'location'),
        )
    except EventNotFound:
        return json_fail("Event not found", 404)

    save_events(events_path(), events)
    return json_ok(eventId=event_id, event=event, events=events)


@app.route('/api/gallery/update_photo_order', methods=['POST'])
@admin_required
def update_photo_order():
    """Replace an event's photo list with the reordered list sent by the client."""
    data = request_data()
    event_id = field(data, 'event_id')
    photos = data.get('photos_json', data.get('photos'))

    if not event_id or photos in (None, ''):
        return json_fail("event_id and photos_json are required")

    if isinstance(photos, str):
        try:
            photos = json.loads(photos)
        except ValueError:
            return json_fail("photos_json is not valid JSON")
    if not isinstance(photos, list):
        return json_fail("photos_json must be a list")

    events = load_events(events_path())
    try:
        event = reorder_photos(events, event_id, photos)
    except EventNotFound:
        return json_fail("Event not found", 404)

    save_events(events_path(), events)
    return json_ok(eventId=event_id, event=event, events=events)


@app.route('/api/gallery/events/<event_id>/stats', methods=['GET'])
@admin_required
def event_stats(event_id):
    """
    Chart data for one event.
    Query: unit=day|week|month|year, from/to=YYYY-MM-DD (default window per unit)
    """
    if not is_valid_event_id(event_id):
        return json_fail("Invalid event_id")

    events = load_events(events_path())
    try:
        event = get_event(events, event_id)
    except EventNotFound:
        return json_fail("Event not found", 404)

    unit = request.args.get('unit', 'day')
    if unit not in UNITS:
        return json_fail(f"unit must be one of: {', '.join(UNITS)}")

    today = iso_day()
    start, end = default_range(today, unit)
    start = request.args.get('from') or start
    end = request.args.get('to') or end
    try:
        # zero-pad so day keys compare and group as strings
        start = iso_day(parse_day(start))
        end = iso_day(parse_day(end))
    except ValueError:
        return json_fail("from and to must be YYYY-MM-DD dates")

    stats = event.get('stats') or {}
    recent = [
        {'key': day, **sum_stats(stats, [day])}
        for day in reversed(last_n_days(today, 14))
    ]

    return json_ok(
        eventId=event_id,
        views=int(event.get('views', 0)),
        visitors=int(event.get('visitors', 0)),
        today=sum_stats(stats, [today]),
        last7=sum_stats(stats, last_n_days(today, 7)),
        chart=aggregate(stats, start, end, unit),
        recent=recent,
    )


@app.route('/api/gallery/events/<event_id>/qr', methods=['GET'])
@admin_required
def event_qr_code(event_id):
    """PNG QR code pointing at the public gallery page of an event."""
    if not is_valid_event_id(event_id):
        return json_fail("Invalid event_id")

    events = load_events(events_path())
    if event_id not in events:
        return json_fail("Event not found", 404)

    qr_data = f"{app.config['PUBLIC_GALLERY_URL']}/?event={event_id}"
    qr = qrcode.QRCode(version=1, box_size=10, border=5)
    qr.add_data(qr_data)
    qr.make(fit=True)

    qr_img = qr.make_image(fill_color="black", back_color="white")
    buffer = BytesIO()
    qr_img.save(buffer)
    buffer.seek(0)

    return send_file(buffer, mimetype='image/png', download_name=f"{event_id}_qr.png")


# --- IMAGE SERVING ---
def serve_gallery_image(event_id, filename):
    """
    Serve a resized image from the event's folder.
    Only .webp files inside a valid event folder are served.
    """
    if not is_valid_event_id(event_id):
        logger.warning(f"[SECURITY] Rejected image request - event_id: {event_id}, filename: {filename}")
        return json_fail("Not found", 404)

    stem, ext = os.path.splitext(filename)
    if ext.lower() != '.webp' or sanitize_basename(filename) != stem:
        return json_fail("Invalid file type", 400)

    event_dir = os.path.join(image_dir(), event_id)
    if not os.path.isfile(os.path.join(event_dir, filename)):
        return json_fail("Not found", 404)

    response = send_from_directory(event_dir, filename)
    response.headers['Cache-Control'] = 'public, max-age=86400'
    return response


app.add_url_rule(
    f"{IMAGE_URL_BASE}/<event_id>/<filename>", 'serve_gallery_image', serve_gallery_image
)


# --- ENTRY POINT ---
if __name__ == '__main__':
    logger.info(f"Starting Flask application on 0.0.0.0:{PORT}")
    app.run(host='0.0.0.0', port=PORT, debug=os.environ.get("FLASK_DEBUG") == "1")
