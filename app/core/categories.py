"""
Starter categories seeded for every new account.
Users can rename, recolor or delete them like any category they create.
"""

DEFAULT_CATEGORIES = [
    {"name": "Food", "icon": "🍔", "color": "#FF6B6B"},
    {"name": "Transport", "icon": "🚗", "color": "#4ECDC4"},
    {"name": "Housing", "icon": "🏠", "color": "#45B7D1"},
    {"name": "Leisure", "icon": "🎮", "color": "#96CEB4"},
    {"name": "Health", "icon": "💊", "color": "#FFEAA7"},
    {"name": "Shopping", "icon": "🛍️", "color": "#DDA0DD"},
    {"name": "Salary", "icon": "💰", "color": "#98D8C8"},
    {"name": "Other", "icon": "📦", "color": "#B8B8B8"},
]
