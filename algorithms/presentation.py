"""
Colour tokens for blood bank dashboards.
Unknown values always map to the neutral fallback token.
"""

FALLBACK_COLOR = 'bg-gray-500'

BLOOD_TYPE_COLORS = {
    'A+': 'bg-red-500',
    'A-': 'bg-red-600',
    'B+': 'bg-blue-500',
    'B-': 'bg-blue-600',
    'AB+': 'bg-purple-500',
    'AB-': 'bg-purple-600',
    'O+': 'bg-green-500',
    'O-': 'bg-green-600',
}

PRIORITY_COLORS = {
    'routine': 'bg-gray-500',
    'urgent': 'bg-yellow-500',
    'emergency': 'bg-orange-500',
    'critical': 'bg-red-500',
}

STATUS_COLORS = {
    'available': 'bg-green-500',
    'quarantine': 'bg-yellow-500',
    'reserved': 'bg-blue-500',
    'issued': 'bg-purple-500',
    'used': 'bg-gray-500',
    'expired': 'bg-red-500',
    'discarded': 'bg-red-600',
}


def _lookup(colors, key):
    try:
        return colors.get(key, FALLBACK_COLOR)
    except TypeError:
        return FALLBACK_COLOR


def get_blood_type_color(blood_type):
    return _lookup(BLOOD_TYPE_COLORS, blood_type)


def get_priority_color(priority):
    return _lookup(PRIORITY_COLORS, priority)


def get_status_color(status):
    """Badge colour for an inventory unit status"""
    return _lookup(STATUS_COLORS, status)
