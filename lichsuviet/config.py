"""
Lich Su Viet - Configuration Module

All tunable portal parameters live here. Adjust these to change page feel
without touching page logic.
"""

import os

# =============================================================================
# ENVIRONMENT
# =============================================================================

DATABASE_URL = os.environ.get('DATABASE_URL')

DEFAULT_PORT = 5000


def api_base_url(environ=None) -> str:
    """
    Base URL the page session uses to reach the read API. Without an
    explicit API_BASE_URL it points at this server's own PORT.
    """
    environ = os.environ if environ is None else environ
    explicit = environ.get("API_BASE_URL")
    if explicit:
        return explicit
    return f"http://localhost:{environ.get('PORT') or DEFAULT_PORT}"


API_BASE_URL = api_base_url()

# Seconds before an API request is abandoned
REQUEST_TIMEOUT = 10

# =============================================================================
# POPUP NOTIFICATION
# =============================================================================

# Setting keys read from /api/settings/<key>
POPUP_ENABLED_KEY = "popup_enabled"
POPUP_CONTENT_KEY = "popup_notification"
POPUP_TITLE_KEY = "popup_title"
POPUP_DURATION_KEY = "popup_duration"

POPUP_SETTING_KEYS = [
    POPUP_ENABLED_KEY,
    POPUP_CONTENT_KEY,
    POPUP_TITLE_KEY,
    POPUP_DURATION_KEY,
]

# Client-local storage key holding the last dismissal timestamp
POPUP_DISMISSED_KEY = "popup_dismissed_at"

# Hours a dismissed popup stays hidden when popup_duration is missing or junk
DEFAULT_POPUP_COOLDOWN_HOURS = 24

# Let the page settle before the popup appears
POPUP_SHOW_DELAY_SECONDS = 1.0

# Fade-out transition before the popup leaves the render tree
POPUP_HIDE_DELAY_SECONDS = 0.3

DEFAULT_POPUP_TITLE = "Thông báo"

# =============================================================================
# TIMELINE
# =============================================================================

# Header height + some padding, subtracted from the scroll target
TIMELINE_HEADER_OFFSET = 100

# Anchor id prefix for each period section on the page
TIMELINE_ANCHOR_PREFIX = "period-"

# Events shown per period before the "see all" link
TIMELINE_PREVIEW_EVENTS = 6

PERIOD_DESCRIPTION_PREVIEW_CHARS = 200

EVENT_URL_PREFIX = "/su-kien"
PERIOD_URL_PREFIX = "/thoi-ky"

# =============================================================================
# NEWS, FEEDBACK, STATS
# =============================================================================

NEWS_PAGE_SIZE = 10
NEWS_RELATED_LIMIT = 4

# Feedback notifications go to Telegram when both settings are filled in
TELEGRAM_BOT_TOKEN_KEY = "telegram_bot_token"
TELEGRAM_CHAT_ID_KEY = "telegram_chat_id"
TELEGRAM_API_URL = "https://api.telegram.org"

VISIT_COUNTER = "visit_count"
SEARCH_COUNTER = "search_count"

# =============================================================================
# DEFAULT SETTINGS
# =============================================================================

# Rows written by init_db when missing. Existing values are never overwritten.
DEFAULT_SETTINGS = [
    {
        "key": POPUP_ENABLED_KEY,
        "value": "false",
        "display_name": "Bật thông báo popup",
        "description": "Hiển thị popup thông báo trên trang chủ",
        "category": "popup",
        "input_type": "select",
        "sort_order": 0,
    },
    {
        "key": POPUP_TITLE_KEY,
        "value": DEFAULT_POPUP_TITLE,
        "display_name": "Tiêu đề popup",
        "description": "Tiêu đề của popup thông báo",
        "category": "popup",
        "input_type": "text",
        "sort_order": 1,
    },
    {
        "key": POPUP_CONTENT_KEY,
        "value": "",
        "display_name": "Nội dung popup",
        "description": "Nội dung HTML của popup thông báo",
        "category": "popup",
        "input_type": "textarea",
        "sort_order": 2,
    },
    {
        "key": POPUP_DURATION_KEY,
        "value": str(DEFAULT_POPUP_COOLDOWN_HOURS),
        "display_name": "Thời gian ẩn popup (giờ)",
        "description": "Số giờ popup bị ẩn sau khi người dùng đóng",
        "category": "popup",
        "input_type": "text",
        "sort_order": 3,
    },
    {
        "key": "home_background_url",
        "value": "https://images.unsplash.com/photo-1624009582782-1be02fbb7f23?q=80&w=2071&auto=format&fit=crop",
        "display_name": "Ảnh nền trang chủ",
        "description": "URL ảnh nền của trang chủ",
        "category": "general",
        "input_type": "text",
        "sort_order": 1,
    },
    {
        "key": "site_url",
        "value": "https://lichsuviet.edu.vn",
        "display_name": "URL trang web",
        "description": "URL chính của trang web, sử dụng cho các liên kết tuyệt đối",
        "category": "seo",
        "input_type": "text",
        "sort_order": 2,
    },
    {
        "key": "privacy_policy",
        "value": "<h2>Chính sách bảo mật</h2><p>Thông tin chi tiết về chính sách bảo mật...</p>",
        "display_name": "Chính sách bảo mật",
        "description": "Nội dung chính sách bảo mật",
        "category": "legal",
        "input_type": "textarea",
        "sort_order": 0,
    },
    {
        "key": "terms_of_service",
        "value": "<h2>Điều khoản sử dụng</h2><p>Thông tin chi tiết về điều khoản sử dụng...</p>",
        "display_name": "Điều khoản sử dụng",
        "description": "Nội dung điều khoản sử dụng",
        "category": "legal",
        "input_type": "textarea",
        "sort_order": 1,
    },
    {
        "key": TELEGRAM_BOT_TOKEN_KEY,
        "value": "",
        "display_name": "Telegram bot token",
        "description": "Token bot Telegram nhận thông báo góp ý",
        "category": "notifications",
        "input_type": "text",
        "sort_order": 0,
    },
    {
        "key": TELEGRAM_CHAT_ID_KEY,
        "value": "",
        "display_name": "Telegram chat ID",
        "description": "ID cuộc trò chuyện nhận thông báo góp ý",
        "category": "notifications",
        "input_type": "text",
        "sort_order": 1,
    },
]
