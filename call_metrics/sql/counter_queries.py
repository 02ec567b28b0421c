"""
Parameterized SQL query module for daily call counters and the region registry.

Daily counters live in daily_calls_provinces, one row per region per day. A
few storage column names differ from the CounterRow field names (including a
historical misspelling), so every query aliases storage columns onto the
CounterRow names and rows can be validated with CounterRow.from_record().

Queries use asyncpg positional parameters ($1, $2, ...).
"""

from typing import Dict

from call_metrics.models.fields import ANALYTICS_FIELDS, MEAN_FIELDS, SUM_FIELDS


# Table names
DAILY_TABLE = "daily_calls_provinces"
REGIONS_TABLE = "tbl_ostan"

# Region key and date columns shared by both tables
REGION_ID_COLUMN = "code_ostan"
REGION_NAME_COLUMN = "nameostan"
DAILY_DATE_COLUMN = "date"

# CounterRow field -> storage column, where they differ
COLUMN_ALIASES: Dict[str, str] = {
    "number_unanswered": "number_unanswerd",
    "short_calls_under_5s": "short_calls_less_than_5s",
    "average_speed_of_answer": "average_speed_of_answer_asa",
    "average_handle_time": "average_handle_time_aht",
}


def storage_column(field_name: str) -> str:
    """Return the daily_calls_provinces column backing a CounterRow field."""
    return COLUMN_ALIASES.get(field_name, field_name)


def _counter_select_list(table_alias: str, include_analytics: bool = False) -> str:
    names = SUM_FIELDS + MEAN_FIELDS
    if include_analytics:
        names += ANALYTICS_FIELDS
    parts = [
        f'{table_alias}."{storage_column(name)}" AS {name}'
        for name in names
    ]
    return ",\n        ".join(parts)


def get_daily_rows_query(single_region: bool, include_analytics: bool = False) -> str:
    """
    Generate SQL selecting raw daily counter rows within a date range.

    Args:
        single_region: When True the query takes a third parameter ($3) and
            is restricted to that region; otherwise all regions are returned.
        include_analytics: Also select the JSON analytics columns, for the
            daily detail view.

    Returns:
        str: Query with parameters $1 = start date, $2 = end date
            [, $3 = region id]. Rows are ordered by region, then date.

    Example:
        >>> sql = get_daily_rows_query(single_region=True)
        >>> # await conn.fetch(sql, start, end, region_id)
    """
    where_conditions = [
        f'd."{DAILY_DATE_COLUMN}" >= $1',
        f'd."{DAILY_DATE_COLUMN}" <= $2',
    ]
    if single_region:
        where_conditions.append(f'd."{REGION_ID_COLUMN}" = $3')

    where_clause = " AND ".join(where_conditions)

    return f"""
    SELECT
        d.id AS record_id,
        d."{REGION_ID_COLUMN}" AS region_id,
        d."{DAILY_DATE_COLUMN}" AS report_date,
        {_counter_select_list("d", include_analytics)}
    FROM {DAILY_TABLE} d
    WHERE {where_clause}
    ORDER BY d."{REGION_ID_COLUMN}", d."{DAILY_DATE_COLUMN}", d.id
    """


def get_region_registry_query(single_region: bool) -> str:
    """
    Generate SQL listing registered regions ordered by name.

    With single_region the query takes one parameter ($1), the region id.
    """
    where_clause = f'WHERE "{REGION_ID_COLUMN}" = $1' if single_region else ""

    return f"""
    SELECT
        "{REGION_ID_COLUMN}" AS region_id,
        "{REGION_NAME_COLUMN}" AS region_name,
        transfer_date,
        transfer_time
    FROM {REGIONS_TABLE}
    {where_clause}
    ORDER BY "{REGION_NAME_COLUMN}" ASC
    """
