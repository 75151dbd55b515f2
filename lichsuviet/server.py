#!/usr/bin/env python3
"""
Lich Su Viet Portal Server

Unified Python server that handles:
- Static file serving (built frontend)
- REST API endpoints (settings, periods, events, figures, sites, news, search)
- Socket.IO for the home page popup and timeline state
"""

# Gevent monkey patching must happen first
from gevent import monkey
monkey.patch_all()

import os
import logging
from flask import Flask, request, send_from_directory
from flask_socketio import SocketIO, emit

from lichsuviet import config
from lichsuviet.api_client import PortalClient
from lichsuviet.page_session import PageSession, MessageType, emit as make_message
from lichsuviet.routes import api, count_page_visit

logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

# Determine static files directory
STATIC_DIR = os.environ.get(
    'STATIC_DIR',
    os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), 'static')
)

app = Flask(__name__, static_folder=STATIC_DIR, static_url_path='')
app.config['SECRET_KEY'] = os.environ.get('SESSION_SECRET') or os.urandom(24).hex()

# Register REST API routes
app.register_blueprint(api)

socketio = SocketIO(
    app,
    cors_allowed_origins="*",
    async_mode='gevent',
    ping_timeout=60,
    ping_interval=25
)


# ==================== Static File Serving ====================

@app.route('/')
def serve_index():
    """Serve the frontend's index.html."""
    count_page_visit()
    return send_from_directory(STATIC_DIR, 'index.html')


@app.route('/<path:path>')
def serve_static(path):
    """Serve static files, falling back to index.html for SPA routing."""
    # Try to serve the file directly
    file_path = os.path.join(STATIC_DIR, path)
    if os.path.isfile(file_path):
        return send_from_directory(STATIC_DIR, path)
    # Fall back to index.html for SPA routing; only page paths count as visits
    if '.' not in path:
        count_page_visit()
    return send_from_directory(STATIC_DIR, 'index.html')


# ==================== Page Sessions ====================

sessions = {}


def flush(sid):
    """Emit whatever a session queued from a timer"""
    session = sessions.get(sid)
    if not session:
        return
    for msg in session.drain():
        socketio.emit('message', msg, to=sid)


def make_scheduler(sid):
    """Timers for one connection, run as Socket.IO background tasks"""
    def schedule(delay, callback):
        def run():
            socketio.sleep(delay)
            callback()
            flush(sid)
        socketio.start_background_task(run)
    return schedule


def get_session(sid):
    """Get session or emit error"""
    if sid not in sessions:
        emit('message', make_message(MessageType.ERROR, {'message': 'Session not found'}))
        return None
    return sessions[sid]


def send_all(messages):
    for msg in messages:
        emit('message', msg)


@socketio.on('connect')
def handle_connect():
    """Handle new client connection - wait for init event"""
    logger.info(f"Client connected: {request.sid}")


@socketio.on('init')
def handle_init(data=None):
    """Start a page session from the browser's localStorage snapshot"""
    sid = request.sid
    data = data or {}
    logger.info(f"Initializing page session for {sid}")

    old = sessions.pop(sid, None)
    if old:
        old.teardown()

    session = PageSession(
        client=PortalClient(),
        schedule=make_scheduler(sid),
        storage_snapshot=data.get('storage') or {},
        active_period_slug=data.get('activePeriodSlug'),
        delegate_navigation=bool(data.get('delegateNavigation')),
    )
    sessions[sid] = session
    send_all(session.start())


@socketio.on('select_period')
def handle_select_period(data=None):
    session = get_session(request.sid)
    if not session:
        return
    slug = (data or {}).get('slug')
    if not slug:
        emit('message', make_message(MessageType.ERROR, {'message': 'No slug provided'}))
        return
    send_all(session.select_period(slug))


@socketio.on('previous_period')
def handle_previous_period(data=None):
    session = get_session(request.sid)
    if not session:
        return
    send_all(session.previous_period())


@socketio.on('next_period')
def handle_next_period(data=None):
    session = get_session(request.sid)
    if not session:
        return
    send_all(session.next_period())


@socketio.on('set_active_period')
def handle_set_active_period(data=None):
    """Parent page changed the active period"""
    session = get_session(request.sid)
    if not session:
        return
    send_all(session.set_active_period((data or {}).get('slug')))


@socketio.on('close_popup')
def handle_close_popup(data=None):
    session = get_session(request.sid)
    if not session:
        return
    send_all(session.close_popup())


@socketio.on('get_state')
def handle_get_state(data=None):
    session = get_session(request.sid)
    if not session:
        return
    emit('message', make_message(MessageType.STATE, session.get_state()))


@socketio.on('disconnect')
def handle_disconnect():
    """Handle client disconnection"""
    sid = request.sid
    logger.info(f"Client disconnected: {sid}")

    session = sessions.pop(sid, None)
    if session:
        session.teardown()


def main():
    port = int(os.environ.get('PORT') or config.DEFAULT_PORT)
    logger.info(f"Starting Lich Su Viet server on port {port}")
    logger.info(f"Static files directory: {STATIC_DIR}")

    socketio.run(app, host='0.0.0.0', port=port, debug=False)


if __name__ == '__main__':
    main()
