# utils/goal_pacing/constants.py
"""
Constants for Goal Pacing Module

Centralized configuration for:
- Role definitions
- Category sets (store / individual)
- Default category alias table
- Status and color tiers
- Chart and export settings
"""

# =====================================================================
# ROLE DEFINITIONS
# =====================================================================

# Full access: every store and collaborator
FULL_ACCESS_ROLES = ['admin', 'supervisor', 'rh']

# Store access: own store, its collaborators and the team table
STORE_ACCESS_ROLES = ['gerente', 'lider', 'sublider', 'subgerente']

# Individual goal categories by role
CATEGORIES_BY_ROLE = {
    'lider': ['geral', 'generico_similar', 'goodlife'],
    'gerente': ['geral', 'generico_similar', 'goodlife'],
    'sublider': ['geral', 'generico_similar', 'goodlife'],
    'subgerente': ['geral', 'generico_similar', 'goodlife'],
    'auxiliar': ['geral', 'generico_similar', 'goodlife'],
    'farmaceutico': ['geral', 'generico_similar', 'goodlife'],
    'consultora': ['perfumaria_alta', 'dermocosmetico', 'goodlife'],
}

# =====================================================================
# CATEGORY SETS
# =====================================================================

GENERAL_CATEGORY = 'geral'

STORE_CATEGORIES = ['geral', 'r_mais', 'perfumaria_r_mais', 'conveniencia_r_mais', 'saude']

CATEGORY_NAMES = {
    'geral': 'Venda Geral',
    'generico_similar': 'Genérico & Similar',
    'goodlife': 'GoodLife',
    'saude': 'GoodLife',
    'dermocosmetico': 'Dermocosméticos',
    'perfumaria_alta': 'Perfumaria Alta Rentabilidade',
    'perfumaria_r_mais': 'Perfumaria R+',
    'conveniencia_r_mais': 'Conveniência R+',
    'r_mais': 'Rentáveis',
}

CATEGORY_ICONS = {
    'geral': '🏪',
    'generico_similar': '💊',
    'goodlife': '❤️',
    'saude': '❤️',
    'dermocosmetico': '🧴',
    'perfumaria_alta': '🌸',
    'perfumaria_r_mais': '🌸',
    'conveniencia_r_mais': '🛒',
    'r_mais': '📈',
}

# =====================================================================
# DEFAULT CATEGORY ALIAS TABLE
# =====================================================================
# Overridable with a JSON file of the same shape (CATEGORY_ALIAS_FILE).

DEFAULT_CATEGORY_ALIASES = {
    # vendor bucket -> product group codes
    "vendor_groups": {
        "rentaveis": [20, 25],
        "perfumaria_alta": [46],
        "conveniencia_alta": [36, 13],
        "goodlife": [22],
    },
    # reporting category -> ledger category tags
    "ledger_categories": {
        "generico_similar": ["generico", "similar"],
        "r_mais": ["r_mais", "rentaveis20", "rentaveis25"],
        "conveniencia_r_mais": ["conveniencia_r_mais", "conveniencia", "brinquedo"],
        "saude": ["saude", "goodlife"],
    },
    # reporting category -> vendor bucket
    "reporting_to_vendor": {
        "geral": "geral",
        "r_mais": "rentaveis",
        "perfumaria_r_mais": "perfumaria_alta",
        "conveniencia_r_mais": "conveniencia_alta",
        "saude": "goodlife",
        "goodlife": "goodlife",
        "perfumaria_alta": "perfumaria_alta",
    },
}

# =====================================================================
# STATUS & COMPARATOR
# =====================================================================

STATUS_PENDING = 'pendente'
STATUS_REACHED = 'atingido'
STATUS_ABOVE = 'acima'

STATUS_LABELS = {
    STATUS_PENDING: ('🕒', 'PENDENTE'),
    STATUS_REACHED: ('✅', 'ATINGIDO'),
    STATUS_ABOVE: ('🏆', 'ACIMA DA META'),
}

TIER_AHEAD = 'ahead'
TIER_NEAR = 'near'
TIER_BEHIND = 'behind'

# progress% - time_elapsed%
AHEAD_THRESHOLD = 10
BEHIND_THRESHOLD = -5

# Regions where stores close on Sundays
SUNDAY_CLOSED_REGIONS = ['centro']

# =====================================================================
# COLOR SCHEME
# =====================================================================

COLORS = {
    TIER_AHEAD: "#28a745",
    TIER_NEAR: "#f6c23e",
    TIER_BEHIND: "#dc3545",
    "time_elapsed": "#6c757d",
    "target": "#1565c0",
    "text_dark": "#333333",
    "text_light": "#666666",
}

# =====================================================================
# CHART DIMENSIONS
# =====================================================================

CHART_WIDTH = 700
CHART_HEIGHT = 300

# =====================================================================
# EXPORT SETTINGS
# =====================================================================

EXCEL_STYLES = {
    "header_fill_color": "1565c0",
    "header_font_color": "FFFFFF",
    "currency_format": '"R$" #,##0.00',
    "percent_format": '0.0%',
    "date_format": 'DD/MM/YYYY',
}
