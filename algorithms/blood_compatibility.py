"""
Blood Type Compatibility Helper
Determines which donor blood types can be transfused to which recipient
blood types, per blood component.
"""

BLOOD_TYPES = ('A+', 'A-', 'B+', 'B-', 'AB+', 'AB-', 'O+', 'O-')

BLOOD_TYPE_CHOICES = [(bt, bt) for bt in BLOOD_TYPES]

WHOLE_BLOOD = 'whole_blood'
PACKED_RBC = 'packed_rbc'
PLATELETS = 'platelets'
FRESH_FROZEN_PLASMA = 'fresh_frozen_plasma'
CRYOPRECIPITATE = 'cryoprecipitate'

COMPONENT_TYPES = (WHOLE_BLOOD, PACKED_RBC, PLATELETS, FRESH_FROZEN_PLASMA, CRYOPRECIPITATE)

COMPONENT_LABELS = {
    WHOLE_BLOOD: 'Whole Blood',
    PACKED_RBC: 'Packed RBC',
    PLATELETS: 'Platelets',
    FRESH_FROZEN_PLASMA: 'Fresh Frozen Plasma',
    CRYOPRECIPITATE: 'Cryoprecipitate',
}

COMPONENT_CHOICES = [(c, COMPONENT_LABELS[c]) for c in COMPONENT_TYPES]

# Components governed by antibody content rather than red-cell antigens
PLASMA_COMPONENTS = frozenset({FRESH_FROZEN_PLASMA, CRYOPRECIPITATE})

# Red-cell regime. Key = recipient, value = compatible donors
RBC_COMPATIBILITY = {
    'A+': ('A+', 'A-', 'O+', 'O-'),
    'A-': ('A-', 'O-'),
    'B+': ('B+', 'B-', 'O+', 'O-'),
    'B-': ('B-', 'O-'),
    'AB+': ('A+', 'A-', 'B+', 'B-', 'AB+', 'AB-', 'O+', 'O-'),  # Universal recipient
    'AB-': ('A-', 'B-', 'AB-', 'O-'),
    'O+': ('O+', 'O-'),
    'O-': ('O-',),
}

# Plasma regime (reverse of red-cell). Key = recipient, value = compatible donors
PLASMA_COMPATIBILITY = {
    'A+': ('A+', 'A-', 'AB+', 'AB-'),
    'A-': ('A-', 'AB-'),
    'B+': ('B+', 'B-', 'AB+', 'AB-'),
    'B-': ('B-', 'AB-'),
    'AB+': ('AB+', 'AB-'),
    'AB-': ('AB-',),
    'O+': ('O+', 'O-', 'A+', 'A-', 'B+', 'B-', 'AB+', 'AB-'),
    'O-': ('O-', 'A-', 'B-', 'AB-'),
}


def is_valid_blood_type(value):
    return value in BLOOD_TYPES


def is_valid_component_type(value):
    return value in COMPONENT_TYPES


def compatibility_table(component_type):
    """
    Select the compatibility table for a component.

    Platelets follow the red-cell table. Anything that is not a plasma
    component, including unrecognised values, falls back to the red-cell table.
    """
    if component_type in PLASMA_COMPONENTS:
        return PLASMA_COMPATIBILITY
    return RBC_COMPATIBILITY


def is_compatible(recipient_blood_type, donor_blood_type, component_type) -> bool:
    """
    Check if donor blood is compatible with the recipient for a component

    Args:
        recipient_blood_type: Recipient's blood type (e.g., 'A+')
        donor_blood_type: Donor's blood type (e.g., 'O-')
        component_type: One of COMPONENT_TYPES

    Returns:
        Boolean: True if compatible, False otherwise (including unknown types)
    """
    table = compatibility_table(component_type)
    try:
        donors = table.get(recipient_blood_type, ())
    except TypeError:
        # unhashable input
        return False
    return donor_blood_type in donors


def get_compatible_donors(recipient_blood_type, component_type):
    """
    Get list of blood types that can donate to recipient

    Args:
        recipient_blood_type: Recipient's blood type
        component_type: One of COMPONENT_TYPES

    Returns:
        List of compatible donor blood types, empty for an unknown recipient
    """
    table = compatibility_table(component_type)
    try:
        return list(table.get(recipient_blood_type, ()))
    except TypeError:
        return []


def get_compatible_recipients(donor_blood_type, component_type):
    """
    Get list of blood types that can receive from donor

    Args:
        donor_blood_type: Donor's blood type
        component_type: One of COMPONENT_TYPES

    Returns:
        List of compatible recipient blood types, in BLOOD_TYPES order
    """
    return [
        recipient for recipient in BLOOD_TYPES
        if is_compatible(recipient, donor_blood_type, component_type)
    ]
