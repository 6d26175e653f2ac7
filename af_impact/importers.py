"""Read oxide analyses from the laboratory spreadsheets.

The raw meal sheet holds the daily average on row 24, columns B to L, in
OXIDE_KEYS order. The clinker sheet holds it on row 37: loss on ignition in
column B, free lime in column C and the other oxides in columns D to M.
"""

import logging
from typing import Any, List, Tuple

import pandas as pd

from .oxides import OXIDE_KEYS, OxideComposition

logger = logging.getLogger(__name__)

RAW_MEAL_ROW = 24
CLINKER_ROW = 37


class AnalysisImportError(Exception):
	"""Raised when a lab spreadsheet cannot be read or lacks the expected row"""
	pass


def _cell_value(value: Any) -> float:
	if isinstance(value, bool):
		return 0.0
	if isinstance(value, (int, float)):
		return 0.0 if value != value else float(value)
	if isinstance(value, str):
		try:
			return float(value.strip().replace(",", "."))
		except ValueError:
			logger.warning("Non-numeric cell %r read as 0", value)
			return 0.0
	return 0.0


def _read_row(source, row_number: int) -> List[Any]:
	try:
		sheet = pd.read_excel(source, sheet_name=0, header=None)
	except Exception as e:
		raise AnalysisImportError(f"Could not read workbook: {e}")

	if len(sheet.index) < row_number:
		raise AnalysisImportError(f"The workbook has no data on row {row_number}.")
	return sheet.iloc[row_number - 1].tolist()


def _column(row: List[Any], index: int) -> Any:
	return row[index] if index < len(row) else None


def read_raw_meal_analysis(source) -> OxideComposition:
	"""Raw meal analysis from row 24, columns B to L"""
	row = _read_row(source, RAW_MEAL_ROW)
	values = {key: _cell_value(_column(row, i + 1)) for i, key in enumerate(OXIDE_KEYS)}
	return OxideComposition(**values)


def read_measured_clinker(source) -> Tuple[OxideComposition, float]:
	"""Measured clinker analysis and free lime from row 37"""
	row = _read_row(source, CLINKER_ROW)
	# B = LOI, C = free lime, D..M = remaining oxides
	columns = [1] + list(range(3, 13))
	values = {key: _cell_value(_column(row, col)) for key, col in zip(OXIDE_KEYS, columns)}
	free_lime = _cell_value(_column(row, 2))
	return OxideComposition(**values), free_lime
