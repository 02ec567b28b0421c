"""
Export table builder.

Turns reconciled counter rows into the fixed-order table used by the
spreadsheet export: one row per region (or the single region's summary), and
for the all-regions export a trailing grand-total row. Column headers are the
Persian labels shown to operators. Writing the actual spreadsheet file is left
to the client.

In the export, the external events count replaces number_resulted_operation
wherever the feed supplied one.
"""

import math
from datetime import date
from typing import Any, Dict, List, Optional, Sequence

import pandas as pd

from call_metrics.models.schemas import CounterRow


# =============================================================================
# Column Layout
# =============================================================================

# CounterRow field -> header label, in output order
EXPORT_COLUMNS: Dict[str, str] = {
    'region_name': 'نام استان',
    'region_id': 'شناسه استان',
    'transfer_date': 'آخرین تاریخ انتقال',
    'total_number': 'تعداد کل تماس‌ها',
    'number_answered_operator': 'تعداد تماس‌های پاسخ داده شده توسط اپراتور',
    'number_resulted_operation': 'تعداد تماس‌های منجر به عملیات',
    'number_answered': 'تماس‌های پاسخ داده شده',
    'number_unanswered': 'تماس‌های بدون پاسخ',
    'number_failed': 'تماس‌های ناموفق',
    'number_busy': 'تماس‌های مشغول',
    'congestion': 'تماس‌های ازدحام',
    'rightel': 'رایتل',
    'irancell': 'ایرانسل',
    'fixed': 'ثابت',
    'unknown': 'ناشناخته',
    'taliya': 'تالیا',
    'espadan': 'اسپادان',
    'mci': 'همراه اول',
    'abandoned_calls': 'تماس‌های رها شده',
    'short_calls_under_5s': 'تماس‌های کوتاه (کمتر از ۵ ثانیه)',
    'answer_rate': 'نرخ پاسخگویی (%)',
    'call_abandonment_rate': 'نرخ رها شدن تماس (%)',
    'service_level': 'سطح سرویس (%)',
    'average_handle_time': 'میانگین زمان مکالمه (ثانیه)',
    'average_wait_time': 'میانگین زمان انتظار (ثانیه)',
    'queue_calls': 'تماس‌های در صف',
    'total_wait_time': 'کل زمان انتظار (ثانیه)',
}

GRAND_TOTAL_LABEL = 'جمع کل'
GRAND_TOTAL_REGION_ID = '-'


def export_title(start: date, end: date) -> str:
    """Sheet title for a date range."""
    return f"گزارش تماس های 112 برای بازه تاریخی {start.isoformat()} تا {end.isoformat()}"


# =============================================================================
# Table Building
# =============================================================================

def _export_record(row: CounterRow) -> Dict[str, Any]:
    record = row.model_dump(include=set(EXPORT_COLUMNS))
    if row.events_count is not None:
        record['number_resulted_operation'] = row.events_count
    return record


def build_export_frame(
    rows: Sequence[CounterRow],
    grand_total: Optional[CounterRow] = None,
) -> pd.DataFrame:
    """
    Build the export table as a DataFrame.

    Args:
        rows: Reconciled rows, already in display order.
        grand_total: Optional grand total, appended last with the grand total
            label, '-' as region id and an empty transfer date.

    Returns:
        pd.DataFrame: Columns are the keys of EXPORT_COLUMNS, in order.
            Means without data are NaN.
    """
    records = [_export_record(row) for row in rows]

    if grand_total is not None:
        total = _export_record(grand_total)
        total['region_name'] = GRAND_TOTAL_LABEL
        total['region_id'] = GRAND_TOTAL_REGION_ID
        total['transfer_date'] = ''
        records.append(total)

    return pd.DataFrame.from_records(records, columns=list(EXPORT_COLUMNS))


def export_records(frame: pd.DataFrame) -> List[Dict[str, Any]]:
    """Convert an export frame to JSON-ready dicts, with NaN turned into None."""
    records = []
    for record in frame.to_dict(orient='records'):
        records.append({
            key: None if isinstance(value, float) and math.isnan(value) else value
            for key, value in record.items()
        })
    return records
