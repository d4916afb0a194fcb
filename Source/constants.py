from decimal import Decimal

DECIMAL_QUANTIZE = Decimal("0.01")

CURRENCY_SYMBOLS = {
    'BGN': 'лв',
    'USD': '$',
    'EUR': '€',
    'GBP': '£',
}

# Symbols written after the amount ("12.50 лв"), everything else goes in front
SUFFIX_CURRENCIES = {'лв'}

CURRENCY_INDICATORS = {
    '$': r'\$|USD',
    '€': r'€|EUR',
    '£': r'£|GBP',
    'лв': r'лв|BGN',
}

# Amount at the end of a receipt line, optionally followed by a currency marker
LINE_AMOUNT_PATTERN = r'([$€£]?\s*\d[\d,\.]*)\s*(?:лв\.?|BGN|USD|EUR|GBP|[$€£])?\s*$'

# Leading quantity such as "2x", "2 x" or "3 "
QUANTITY_PREFIX_PATTERN = r'^(\d{1,2})\s*[xх×]?\s+(?=\D)'

# Order matters: "SUBTOTAL" also matches the plain total pattern
SUMMARY_PATTERNS = [
    ('subtotal', r'(?:SUB\s*-?\s*TOTAL|МЕЖДИННА\s+СУМА)'),
    ('tax', r'(?:\bTAX\b|\bVAT\b|\bGST\b|ДДС)'),
    ('tip', r'(?:\bTIP\b|GRATUITY|SERVICE\s+CHARGE|БАКШИШ)'),
    ('total', r'(?:\bTOTAL\b|AMOUNT\s+DUE|\bBALANCE\b|ОБЩО|СУМА|ВСИЧКО)'),
]

# Words to skip
SKIP_WORDS = [
    'сума', 'total', 'бон', 'ддс', 'унп', 'еик', 'карта', 'сметка',
    'благодарим', 'tax', 'subtotal', 'cash', 'change', 'card',
    'receipt', 'invoice', 'date', 'time', 'cashier', 'thank',
    'чек', 'каса', 'visa', 'mastercard', 'tel', 'phone', 'table',
]

# Keyword rules for local image edits: (operation, keywords)
EDIT_RULES = [
    ('rotate_left', ['rotate counterclockwise', 'rotate counter-clockwise', 'rotate anticlockwise',
                     'rotate left', 'turn left', 'counterclockwise', 'counter-clockwise',
                     'anticlockwise']),
    ('rotate_right', ['rotate clockwise', 'rotate right', 'turn right', 'clockwise', 'rotate']),
    ('remove_shadows', ['shadow', 'background', 'scan']),
    ('denoise', ['denoise', 'noise', 'smooth', 'clean up']),
    ('grayscale', ['black and white', 'black & white', 'b&w', 'grayscale', 'greyscale', 'monochrome']),
    ('sepia', ['vintage', 'retro', 'sepia', 'old photo']),
    ('sketch', ['drawing', 'sketch', 'pencil']),
    ('decrease_contrast', ['less contrast', 'decrease contrast', 'reduce contrast', 'lower contrast']),
    ('increase_contrast', ['contrast']),
    ('darken', ['darker', 'darken', 'dim']),
    ('brighten', ['bright', 'lighten', 'lighter']),
    ('sharpen', ['sharp', 'clarity', 'enhance', 'crisp', 'readable']),
    ('invert', ['invert', 'negative']),
]

EDIT_SUGGESTIONS = [
    "Make it black and white",
    "Add a vintage photo filter",
    "Increase contrast and brightness",
    "Make it look like a drawing",
    "Remove the background shadows",
]
