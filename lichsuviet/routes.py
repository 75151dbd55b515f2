"""
REST API routes for Lich Su Viet.
Public endpoints for the portal pages, all under /api. Everything is read
only except visitor feedback.
"""

import logging
from flask import Blueprint, request, jsonify

from lichsuviet.config import (
    NEWS_PAGE_SIZE, NEWS_RELATED_LIMIT, SEARCH_COUNTER, VISIT_COUNTER
)
from lichsuviet.db import storage
from lichsuviet.notifications import notify_feedback

logger = logging.getLogger(__name__)

api = Blueprint('api', __name__, url_prefix='/api')


def format_datetime(dt):
    """Format datetime to ISO string."""
    if not dt:
        return None
    return dt.isoformat() if hasattr(dt, 'isoformat') else str(dt)


def format_setting(s):
    return {
        'id': s.get('id'),
        'key': s['key'],
        'value': s.get('value'),
        'displayName': s.get('display_name'),
        'description': s.get('description'),
        'category': s.get('category'),
        'inputType': s.get('input_type'),
        'sortOrder': s.get('sort_order', 0),
        'updatedAt': format_datetime(s.get('updated_at')),
    }


def format_period(p):
    return {
        'id': p['id'],
        'name': p['name'],
        'slug': p['slug'],
        'timeframe': p.get('timeframe'),
        'description': p.get('description'),
        'icon': p.get('icon'),
        'sortOrder': p.get('sort_order', 0),
        'isShow': p.get('is_show', True),
    }


def format_event_type(t):
    return {
        'id': t['id'],
        'name': t['name'],
        'slug': t.get('slug'),
        'color': t.get('color'),
    }


def format_event(e):
    return {
        'id': e['id'],
        'periodId': e['period_id'],
        'title': e['title'],
        'description': e.get('description'),
        'detailedDescription': e.get('detailed_description'),
        'year': e.get('year'),
        'imageUrl': e.get('image_url'),
        'sortOrder': e.get('sort_order', 0),
        'eventTypes': [format_event_type(t) for t in e.get('event_types', [])],
    }


def format_figure(f):
    return {
        'id': f['id'],
        'name': f['name'],
        'slug': f.get('slug'),
        'periodId': f.get('period_id'),
        'period': f.get('period_text'),
        'lifespan': f.get('lifespan'),
        'description': f.get('description'),
        'detailedDescription': f.get('detailed_description'),
        'imageUrl': f.get('image_url'),
        'achievements': f.get('achievements') or [],
        'sortOrder': f.get('sort_order', 0),
    }


def format_site(s):
    return {
        'id': s['id'],
        'name': s['name'],
        'slug': s.get('slug'),
        'location': s.get('location'),
        'address': s.get('address'),
        'description': s.get('description'),
        'detailedDescription': s.get('detailed_description'),
        'imageUrl': s.get('image_url'),
        'mapUrl': s.get('map_url'),
        'yearBuilt': s.get('year_built'),
        'periodId': s.get('period_id'),
        'relatedEventId': s.get('related_event_id'),
        'sortOrder': s.get('sort_order', 0),
    }


def format_news(n):
    return {
        'id': n['id'],
        'title': n['title'],
        'slug': n['slug'],
        'summary': n.get('summary'),
        'content': n.get('content'),
        'imageUrl': n.get('image_url'),
        'published': n.get('published', False),
        'isFeatured': n.get('is_featured', False),
        'viewCount': n.get('view_count', 0),
        'periodId': n.get('period_id'),
        'eventId': n.get('event_id'),
        'historicalFigureId': n.get('historical_figure_id'),
        'historicalSiteId': n.get('historical_site_id'),
        'eventTypeId': n.get('event_type_id'),
        'createdAt': format_datetime(n.get('created_at')),
        'updatedAt': format_datetime(n.get('updated_at')),
    }


def format_feedback(f):
    return {
        'id': f['id'],
        'name': f['name'],
        'phone': f['phone'],
        'email': f['email'],
        'content': f['content'],
        'resolved': f.get('resolved', False),
        'createdAt': format_datetime(f.get('created_at')),
    }


# ==================== Health Check ====================

@api.route('/health', methods=['GET'])
def health():
    return jsonify({'status': 'ok'})


# ==================== Settings ====================

@api.route('/settings', methods=['GET'])
def get_all_settings():
    try:
        settings = storage.get_all_settings()
        return jsonify([format_setting(s) for s in settings])
    except Exception as e:
        logger.error(f"Get settings error: {e}")
        return jsonify({'error': 'Internal server error'}), 500


@api.route('/settings/<key>', methods=['GET'])
def get_setting(key):
    try:
        setting = storage.get_setting(key)
        if not setting:
            return jsonify({'error': 'Thiết lập không tồn tại'}), 404
        return jsonify(format_setting(setting))
    except Exception as e:
        logger.error(f"Get setting {key} error: {e}")
        return jsonify({'error': 'Internal server error'}), 500


# ==================== Periods ====================

@api.route('/periods', methods=['GET'])
def get_periods():
    try:
        # ?visible=true limits to periods shown on the home page
        visible_only = request.args.get('visible') == 'true'
        periods = storage.get_all_periods(visible_only=visible_only)
        return jsonify([format_period(p) for p in periods])
    except Exception as e:
        logger.error(f"Get periods error: {e}")
        return jsonify({'error': 'Internal server error'}), 500


@api.route('/periods/<int:period_id>', methods=['GET'])
def get_period(period_id):
    try:
        period = storage.get_period_by_id(period_id)
        if not period:
            return jsonify({'error': 'Period not found'}), 404
        return jsonify(format_period(period))
    except Exception as e:
        logger.error(f"Get period error: {e}")
        return jsonify({'error': 'Internal server error'}), 500


@api.route('/periods/slug/<slug>', methods=['GET'])
def get_period_by_slug(slug):
    try:
        period = storage.get_period_by_slug(slug)
        if not period:
            return jsonify({'error': 'Period not found'}), 404
        return jsonify(format_period(period))
    except Exception as e:
        logger.error(f"Get period by slug error: {e}")
        return jsonify({'error': 'Internal server error'}), 500


# ==================== Events ====================

@api.route('/events', methods=['GET'])
def get_events():
    try:
        events = storage.get_all_events()
        return jsonify([format_event(e) for e in events])
    except Exception as e:
        logger.error(f"Get events error: {e}")
        return jsonify({'error': 'Internal server error'}), 500


@api.route('/events/<int:event_id>', methods=['GET'])
def get_event(event_id):
    try:
        event = storage.get_event_by_id(event_id)
        if not event:
            return jsonify({'error': 'Event not found'}), 404
        return jsonify(format_event(event))
    except Exception as e:
        logger.error(f"Get event error: {e}")
        return jsonify({'error': 'Internal server error'}), 500


@api.route('/events/period/<int:period_id>', methods=['GET'])
def get_events_by_period(period_id):
    try:
        events = storage.get_events_by_period(period_id)
        return jsonify([format_event(e) for e in events])
    except Exception as e:
        logger.error(f"Get events by period error: {e}")
        return jsonify({'error': 'Internal server error'}), 500


@api.route('/events/period-slug/<slug>', methods=['GET'])
def get_events_by_period_slug(slug):
    try:
        events = storage.get_events_by_period_slug(slug)
        return jsonify([format_event(e) for e in events])
    except Exception as e:
        logger.error(f"Get events by period slug error: {e}")
        return jsonify({'error': 'Internal server error'}), 500


@api.route('/event-types', methods=['GET'])
def get_event_types():
    try:
        types = storage.get_all_event_types()
        return jsonify([format_event_type(t) for t in types])
    except Exception as e:
        logger.error(f"Get event types error: {e}")
        return jsonify({'error': 'Internal server error'}), 500


# ==================== Search ====================

@api.route('/search', methods=['GET'])
def search():
    try:
        storage.increment_counter(SEARCH_COUNTER)
        results = storage.search(
            term=request.args.get('term') or None,
            period_slug=request.args.get('period') or None,
            event_type_slug=request.args.get('eventType') or None,
        )
        return jsonify({
            'periods': [format_period(p) for p in results['periods']],
            'events': [format_event(e) for e in results['events']],
            'eventTypes': [format_event_type(t) for t in results['event_types']],
        })
    except Exception as e:
        logger.error(f"Search error: {e}")
        return jsonify({'error': 'Internal server error'}), 500


# ==================== Historical Figures ====================

@api.route('/historical-figures', methods=['GET'])
def get_historical_figures():
    try:
        figures = storage.get_all_historical_figures()
        return jsonify([format_figure(f) for f in figures])
    except Exception as e:
        logger.error(f"Get historical figures error: {e}")
        return jsonify({'error': 'Internal server error'}), 500


@api.route('/historical-figures/<int:figure_id>', methods=['GET'])
def get_historical_figure(figure_id):
    try:
        figure = storage.get_historical_figure_by_id(figure_id)
        if not figure:
            return jsonify({'error': 'Historical figure not found'}), 404
        return jsonify(format_figure(figure))
    except Exception as e:
        logger.error(f"Get historical figure error: {e}")
        return jsonify({'error': 'Internal server error'}), 500


@api.route('/historical-figures/slug/<slug>', methods=['GET'])
def get_historical_figure_by_slug(slug):
    try:
        figure = storage.get_historical_figure_by_slug(slug)
        if not figure:
            return jsonify({'error': 'Historical figure not found'}), 404
        return jsonify(format_figure(figure))
    except Exception as e:
        logger.error(f"Get historical figure by slug error: {e}")
        return jsonify({'error': 'Internal server error'}), 500


@api.route('/historical-figures/period/<int:period_id>', methods=['GET'])
def get_historical_figures_by_period(period_id):
    try:
        figures = storage.get_historical_figures_by_period(period_id)
        return jsonify([format_figure(f) for f in figures])
    except Exception as e:
        logger.error(f"Get historical figures by period error: {e}")
        return jsonify({'error': 'Internal server error'}), 500


@api.route('/historical-figures/period-slug/<slug>', methods=['GET'])
def get_historical_figures_by_period_slug(slug):
    try:
        figures = storage.get_historical_figures_by_period_slug(slug)
        return jsonify([format_figure(f) for f in figures])
    except Exception as e:
        logger.error(f"Get historical figures by period slug error: {e}")
        return jsonify({'error': 'Internal server error'}), 500


# ==================== Historical Sites ====================

@api.route('/historical-sites', methods=['GET'])
def get_historical_sites():
    try:
        sites = storage.get_all_historical_sites()
        return jsonify([format_site(s) for s in sites])
    except Exception as e:
        logger.error(f"Get historical sites error: {e}")
        return jsonify({'error': 'Internal server error'}), 500


@api.route('/historical-sites/<int:site_id>', methods=['GET'])
def get_historical_site(site_id):
    try:
        site = storage.get_historical_site_by_id(site_id)
        if not site:
            return jsonify({'error': 'Historical site not found'}), 404
        return jsonify(format_site(site))
    except Exception as e:
        logger.error(f"Get historical site error: {e}")
        return jsonify({'error': 'Internal server error'}), 500


@api.route('/historical-sites/slug/<slug>', methods=['GET'])
def get_historical_site_by_slug(slug):
    try:
        site = storage.get_historical_site_by_slug(slug)
        if not site:
            return jsonify({'error': 'Historical site not found'}), 404
        return jsonify(format_site(site))
    except Exception as e:
        logger.error(f"Get historical site by slug error: {e}")
        return jsonify({'error': 'Internal server error'}), 500


@api.route('/periods/<int:period_id>/historical-sites', methods=['GET'])
def get_historical_sites_by_period(period_id):
    try:
        sites = storage.get_historical_sites_by_period(period_id)
        return jsonify([format_site(s) for s in sites])
    except Exception as e:
        logger.error(f"Get historical sites by period error: {e}")
        return jsonify({'error': 'Internal server error'}), 500


@api.route('/periods-slug/<slug>/historical-sites', methods=['GET'])
def get_historical_sites_by_period_slug(slug):
    try:
        sites = storage.get_historical_sites_by_period_slug(slug)
        return jsonify([format_site(s) for s in sites])
    except Exception as e:
        logger.error(f"Get historical sites by period slug error: {e}")
        return jsonify({'error': 'Internal server error'}), 500


# ==================== News ====================

# Query parameter -> news column
NEWS_FILTER_PARAMS = {
    'periodId': 'period_id',
    'eventId': 'event_id',
    'historicalFigureId': 'historical_figure_id',
    'historicalSiteId': 'historical_site_id',
    'eventTypeId': 'event_type_id',
}


@api.route('/news', methods=['GET'])
def get_news_list():
    try:
        limit = max(1, min(request.args.get('limit', NEWS_PAGE_SIZE, type=int), 100))
        page = max(1, request.args.get('page', 1, type=int))
        filters = {
            column: request.args.get(param, type=int)
            for param, column in NEWS_FILTER_PARAMS.items()
            if request.args.get(param, type=int)
        }
        result = storage.get_news_list(
            limit=limit,
            page=page,
            published_only=request.args.get('publishedOnly', 'true') == 'true',
            filters=filters,
        )
        total = result['total']
        return jsonify({
            'data': [format_news(n) for n in result['data']],
            'pagination': {
                'total': total,
                'page': page,
                'limit': limit,
                'totalPages': (total + limit - 1) // limit,
            },
        })
    except Exception as e:
        logger.error(f"Get news list error: {e}")
        return jsonify({'success': False, 'message': 'Lỗi khi lấy danh sách tin tức.'}), 500


@api.route('/news/<int:news_id>', methods=['GET'])
def get_news_by_id(news_id):
    try:
        news = storage.get_news_by_id(news_id)
        if not news:
            return jsonify({'success': False, 'message': 'Không tìm thấy tin tức.'}), 404
        return jsonify({'success': True, 'data': format_news(news)})
    except Exception as e:
        logger.error(f"Get news error: {e}")
        return jsonify({'success': False, 'message': 'Lỗi khi lấy thông tin tin tức.'}), 500


@api.route('/news/<slug>', methods=['GET'])
def get_news_by_slug(slug):
    """News detail page; each read counts as a view."""
    try:
        news = storage.get_news_by_slug(slug)
        if not news:
            return jsonify({'success': False, 'message': 'Không tìm thấy tin tức.'}), 404
        storage.increment_news_view_count(news['id'])
        return jsonify({'success': True, 'data': format_news(news)})
    except Exception as e:
        logger.error(f"Get news by slug error: {e}")
        return jsonify({'success': False, 'message': 'Lỗi khi lấy thông tin tin tức.'}), 500


@api.route('/news/<int:news_id>/related', methods=['GET'])
def get_related_news(news_id):
    try:
        limit = max(1, request.args.get('limit', NEWS_RELATED_LIMIT, type=int))
        related = storage.get_related_news(news_id, limit=limit)
        return jsonify({'success': True, 'data': [format_news(n) for n in related]})
    except Exception as e:
        logger.error(f"Get related news error: {e}")
        return jsonify({'success': False, 'message': 'Lỗi khi lấy tin tức liên quan.'}), 500


# ==================== Stats ====================

@api.route('/stats', methods=['GET'])
def get_stats():
    try:
        return jsonify({
            'visitCount': storage.get_counter(VISIT_COUNTER),
            'searchCount': storage.get_counter(SEARCH_COUNTER),
        })
    except Exception as e:
        logger.error(f"Get stats error: {e}")
        return jsonify({'error': 'Internal server error'}), 500


# ==================== Feedback ====================

FEEDBACK_FIELDS = ('name', 'phone', 'email', 'content')


@api.route('/feedback', methods=['POST'])
def submit_feedback():
    data = request.get_json(silent=True) or {}
    values = {field: str(data.get(field) or '').strip() for field in FEEDBACK_FIELDS}
    if not all(values.values()):
        return jsonify({
            'success': False,
            'error': 'Thiếu thông tin. Vui lòng điền đầy đủ các trường.',
        }), 400

    try:
        feedback = storage.create_feedback(**values)
    except Exception as e:
        logger.error(f"Submit feedback error: {e}")
        return jsonify({
            'success': False,
            'error': 'Có lỗi xảy ra khi gửi góp ý. Vui lòng thử lại sau.',
        }), 500

    notify_feedback(feedback)
    return jsonify({
        'success': True,
        'message': 'Góp ý của bạn đã được gửi thành công!',
        'data': format_feedback(feedback),
    }), 201


def count_page_visit():
    """Count one page view. Never fails the page being served."""
    try:
        storage.increment_counter(VISIT_COUNTER)
    except Exception as e:
        logger.error(f"Count visit error: {e}")
