# wind_monitor/exporter/csv_exporter.py
from datetime import date
from pathlib import Path
from typing import Optional, Sequence

import pandas as pd

from wind_monitor.domain.models import WindObservation
from wind_monitor.logger.app_logger import get_logger

logger = get_logger(__name__)

# record attribute -> exported column header
OUTPUT_COLUMNS = {
    'date': 'Date',
    'time': 'Time',
    'min_speed_knots': 'Min Speed (knots)',
    'avg_speed_knots': 'Avg Speed (knots)',
    'gust_speed_knots': 'Gusts (knots)',
    'direction': 'Direction',
    'degrees': 'Degrees',
    'temperature_celsius': 'Temperature (°C)',
}


def history_to_dataframe(records: Sequence[WindObservation]) -> pd.DataFrame:
    """Build the export frame; rows keep the retained (newest first) order."""
    rows = [
        {header: getattr(record, attr) for attr, header in OUTPUT_COLUMNS.items()}
        for record in records
    ]
    return pd.DataFrame(rows, columns=list(OUTPUT_COLUMNS.values()))


def export_history_csv(records: Sequence[WindObservation]) -> str:
    """Render the history as CSV text with a header row."""
    df = history_to_dataframe(records)
    return df.to_csv(index=False, lineterminator='\n')


def export_filename(today: Optional[date] = None) -> str:
    return f"wind-data-{(today or date.today()).isoformat()}.csv"


def write_history_csv(
    records: Sequence[WindObservation],
    output_dir: Path,
    today: Optional[date] = None,
) -> Path:
    """Write ``wind-data-YYYY-MM-DD.csv`` into ``output_dir`` and return its path."""
    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)
    csv_path = output_dir / export_filename(today)
    csv_path.write_text(export_history_csv(records), encoding='utf-8')
    logger.info("Exported %s records to %s", len(records), csv_path)
    return csv_path
