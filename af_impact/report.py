import math
from typing import Dict, Optional

import pandas as pd

from .compute import ModuleSet, cao_titre, compute_modules
from .impact import ImpactResult, ScenarioResult
from .oxides import OXIDE_KEYS, OXIDE_LABELS, OxideComposition

MISSING = "–"
INFINITE = "∞"

# decimals per row of the impact table
_DECIMALS = {"LSF": 1, "MS": 2, "AF": 2, "C3S": 1}


def format_value(value: Optional[float], decimals: int = 2, suffix: str = "") -> str:
	"""Render a computed value; unknown as a dash, undefined ratio as infinity"""
	if value is None or (isinstance(value, float) and math.isnan(value)):
		return MISSING
	if math.isinf(value):
		return INFINITE if value > 0 else "-" + INFINITE
	return f"{value:.{decimals}f}{suffix}"


def delta_direction(delta: Optional[float], tolerance: float = 0.01) -> str:
	"""'up', 'down' or '' when the change is negligible or undefined"""
	if delta is None or math.isnan(delta) or abs(delta) < tolerance:
		return ""
	return "up" if delta > 0 else "down"


def _oxide_total(c: OxideComposition) -> Optional[float]:
	return None if c.is_empty else c.oxide_sum()


def _rows(raw: OxideComposition, scenarios: Dict[str, ScenarioResult]) -> Dict[str, Dict[str, Optional[float]]]:
	raw_modules: ModuleSet = compute_modules(raw)
	table = {}
	for ox in OXIDE_KEYS:
		row = {"Raw meal": raw.value(ox)}
		for label, s in scenarios.items():
			row[label] = s.composition.value(ox)
		table[OXIDE_LABELS[ox]] = row

	row = {"Raw meal": _oxide_total(raw)}
	row.update({label: _oxide_total(s.composition) for label, s in scenarios.items()})
	table["Sum"] = row

	row = {"Raw meal": cao_titre(raw)}
	row.update({label: (s.composition.value("CaO") if not s.composition.is_empty else None) for label, s in scenarios.items()})
	table["CaO titre"] = row

	for name, attr in [("LSF", "lsf"), ("MS", "ms"), ("AF", "af")]:
		row = {"Raw meal": getattr(raw_modules, attr)}
		row.update({label: getattr(s.modules, attr) for label, s in scenarios.items()})
		table[name] = row

	# C3S has no meaning for raw meal
	row = {"Raw meal": None}
	row.update({label: s.c3s for label, s in scenarios.items()})
	table["C3S"] = row
	return table


def impact_table(result: ImpactResult, raw_meal: OxideComposition, measured: Optional[ScenarioResult] = None) -> pd.DataFrame:
	"""Raw meal, both clinkers, their delta and optionally the measured clinker, one row per indicator"""
	scenarios = {"Without ash": result.without_ash, "With ash": result.with_ash}
	if measured is not None:
		scenarios["Measured"] = measured
	table = _rows(raw_meal, scenarios)

	delta_keys = {OXIDE_LABELS[ox]: ox for ox in OXIDE_KEYS}
	delta_keys.update({k: k for k in ["LSF", "MS", "AF", "C3S"]})
	for name, row in table.items():
		key = delta_keys.get(name)
		row["Delta"] = result.deltas.get(key) if key else None

	df = pd.DataFrame.from_dict(table, orient="index")
	df.index.name = "Indicator"
	columns = ["Raw meal", "Without ash", "With ash", "Delta"] + (["Measured"] if measured is not None else [])
	return df[columns]


def format_impact_table(df: pd.DataFrame) -> pd.DataFrame:
	"""String version of impact_table for display"""
	out = df.copy().astype(object)
	for name in out.index:
		decimals = _DECIMALS.get(name, 2)
		for col in out.columns:
			out.at[name, col] = format_value(df.at[name, col], 3 if col == "Delta" else decimals)
	return out


def delta_summary(result: ImpactResult) -> pd.DataFrame:
	"""Deltas of the headline indicators, shown on the impact page"""
	names = ["Fe2O3", "CaO", "LSF", "C3S"]
	return pd.DataFrame({"indicator": names, "delta": [result.deltas[n] for n in names]})


def clinker_flow_label(result: ImpactResult) -> str:
	return format_value(result.clinker_flow, 1, " t/h")

