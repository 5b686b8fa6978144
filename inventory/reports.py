"""
Stock reports built with pandas from the inventory table.
"""
import pandas as pd
from django.utils import timezone

from algorithms.blood_compatibility import BLOOD_TYPES, COMPONENT_TYPES
from algorithms.lifecycle import EXPIRING_SOON_DAYS
from algorithms.stock import get_stock_level
from inventory.models import BloodInventoryItem

REPORT_FIELDS = ['blood_type', 'component_type', 'status', 'volume_ml', 'expiry_date']


def inventory_frame(queryset=None):
    """Inventory rows as a DataFrame (one row per unit)"""
    queryset = queryset if queryset is not None else BloodInventoryItem.objects.all()
    df = pd.DataFrame.from_records(list(queryset.values(*REPORT_FIELDS)), columns=REPORT_FIELDS)
    if not df.empty:
        df['expiry_date'] = pd.to_datetime(df['expiry_date'])
    return df


def stock_report(today=None):
    """
    Summarise available, unexpired stock.

    Returns:
        dict with
        - matrix: {blood_type: {component_type: units}} for every type and component
        - totals: per blood type unit count and stock level
        - by_status: unit count per status across the whole inventory
        - expiring_soon: available units expiring within 7 days
    """
    today = today or timezone.localdate()
    df = inventory_frame()

    if df.empty:
        usable = df
    else:
        today_ts = pd.Timestamp(today)
        usable = df[(df['status'] == 'available') & (df['expiry_date'] >= today_ts)]

    matrix = pd.pivot_table(
        usable,
        index='blood_type',
        columns='component_type',
        values='volume_ml',
        aggfunc='count',
        fill_value=0,
    ) if not usable.empty else pd.DataFrame()
    matrix = matrix.reindex(index=list(BLOOD_TYPES), columns=list(COMPONENT_TYPES), fill_value=0)

    totals = matrix.sum(axis=1)

    if usable.empty:
        expiring = 0
    else:
        horizon = pd.Timestamp(today) + pd.Timedelta(days=EXPIRING_SOON_DAYS)
        expiring = int((usable['expiry_date'] <= horizon).sum())

    by_status = df['status'].value_counts().to_dict() if not df.empty else {}

    return {
        'matrix': {
            blood_type: {component: int(matrix.at[blood_type, component]) for component in COMPONENT_TYPES}
            for blood_type in BLOOD_TYPES
        },
        'totals': [
            {
                'blood_type': blood_type,
                'units': int(totals[blood_type]),
                'stock_level': get_stock_level(int(totals[blood_type])),
            }
            for blood_type in BLOOD_TYPES
        ],
        'by_status': {status: int(count) for status, count in by_status.items()},
        'expiring_soon': expiring,
    }
