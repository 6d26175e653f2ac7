import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Optional, Sequence

import pandas as pd

from .oxides import EMPTY_COMPOSITION, OXIDE_KEYS, FuelStream, OxideComposition, canonical_key

logger = logging.getLogger(__name__)

INDICATOR_COLUMNS = ["pci", "humidity", "ash", "chlorine"]

# Column spellings found in lab exports
_COLUMN_ALIASES = {
	"pourcentage_cendres": "ash_content",
	"taux_cendres": "ash_content",
	"ash_content_percent": "ash_content",
	"nom_combustible": "fuel",
	"type_combustible": "fuel",
	"date_analyse": "date",
	"pci_brut": "pci",
	"h2o": "humidity",
	"cendres": "ash",
	"chlore": "chlorine",
}


@dataclass(frozen=True)
class AverageAshAnalysis:
	composition: OxideComposition
	ash_content_percent: float
	count: int

	@property
	def has_data(self) -> bool:
		return self.count > 0

	def to_stream(self, flow_rate: float, name: str = "") -> FuelStream:
		return FuelStream(
			flow_rate=flow_rate,
			ash_content_percent=self.ash_content_percent,
			ash_composition=self.composition,
			name=name,
		)


@dataclass(frozen=True)
class FuelIndicators:
	"""Averaged lab results for one fuel; count == 0 means no analysis"""
	pci: float = 0.0
	humidity: float = 0.0
	ash: float = 0.0
	chlorine: float = 0.0
	count: int = 0


NO_ASH_DATA = AverageAshAnalysis(EMPTY_COMPOSITION, 0.0, 0)


class AnalysisStore:
	"""Laboratory analyses of fuels and their ashes, averaged on demand"""

	def __init__(self, records: Optional[pd.DataFrame] = None):
		df = records.copy() if records is not None else pd.DataFrame(columns=["date", "fuel"])
		df = df.rename(columns=lambda c: self._column_name(c))
		if "ash_content" not in df.columns and "ash" in df.columns:
			df["ash_content"] = df["ash"]
		elif "ash" not in df.columns and "ash_content" in df.columns:
			df["ash"] = df["ash_content"]
		if "date" in df.columns:
			df["date"] = pd.to_datetime(df["date"], errors="coerce")
		if "fuel" in df.columns:
			df["fuel"] = df["fuel"].astype(str).str.strip()
		for col in OXIDE_KEYS + ["ash_content"] + INDICATOR_COLUMNS:
			if col in df.columns:
				df[col] = pd.to_numeric(df[col].astype(str).str.replace(",", ".", regex=False), errors="coerce")
		self.df = df

	@classmethod
	def from_records(cls, records: List[Dict]) -> "AnalysisStore":
		return cls(pd.DataFrame(records))

	@classmethod
	def from_csv(cls, path) -> "AnalysisStore":
		"""Load lab records from a CSV export; a missing file gives an empty store"""
		if not Path(path).exists():
			logger.info("No analyses file at %s", path)
			return cls()
		return cls(pd.read_csv(path))

	@staticmethod
	def _column_name(column: str) -> str:
		name = str(column).strip()
		if name.lower() in _COLUMN_ALIASES:
			return _COLUMN_ALIASES[name.lower()]
		return canonical_key(name) or name

	def fuels(self) -> List[str]:
		if "fuel" not in self.df.columns:
			return []
		return sorted(self.df["fuel"].dropna().unique().tolist())

	def _select(self, fuels: Sequence[str], start=None, end=None) -> pd.DataFrame:
		df = self.df
		if df.empty or "fuel" not in df.columns:
			return df.iloc[0:0]
		mask = df["fuel"].isin([str(f).strip() for f in fuels])
		if start is not None and "date" in df.columns:
			mask &= df["date"] >= pd.Timestamp(start)
		if end is not None and "date" in df.columns:
			mask &= df["date"] <= pd.Timestamp(end)
		return df[mask]

	def average_ash(self, fuels: Sequence[str], weights: Optional[Sequence[float]] = None, start=None, end=None) -> AverageAshAnalysis:
		"""Ash analysis averaged per fuel over the period, then across fuels by weight.

		Fuels without samples are left out of the weighting. With no sample at all
		the result is NO_ASH_DATA: nothing is made up for missing fuels.
		"""
		fuels = list(fuels)
		if weights is None:
			weights = [1.0] * len(fuels)
		weight_by_fuel = {}
		for f, w in zip(fuels, weights):
			weight_by_fuel[str(f).strip()] = weight_by_fuel.get(str(f).strip(), 0.0) + (w or 0.0)

		rows = self._select(fuels, start, end)
		if rows.empty:
			logger.info("No ash analysis for %s in the selected period", ", ".join(map(str, fuels)))
			return NO_ASH_DATA

		value_columns = [c for c in OXIDE_KEYS + ["ash_content"] if c in rows.columns]
		per_fuel = rows.groupby("fuel")[value_columns].mean()
		counts = rows.groupby("fuel").size()

		w = pd.Series({f: weight_by_fuel.get(f, 0.0) for f in per_fuel.index})
		if w.sum() <= 0:
			logger.warning("All fuel weights are zero for %s, using equal weights", ", ".join(per_fuel.index))
			w = pd.Series(1.0, index=per_fuel.index)

		res = {}
		for col in value_columns:
			known = per_fuel[col].notna()
			if not known.any():
				continue
			# weights of fuels that actually report this column
			col_w = w[known]
			if col_w.sum() <= 0:
				continue
			res[col] = float((per_fuel.loc[known, col] * col_w).sum() / col_w.sum())

		ash_content = res.pop("ash_content", 0.0)
		return AverageAshAnalysis(
			composition=OxideComposition(**res),
			ash_content_percent=ash_content,
			count=int(counts.sum()),
		)

	def average_fuel(self, fuel: str, start=None, end=None) -> FuelIndicators:
		rows = self._select([fuel], start, end)
		if rows.empty:
			return FuelIndicators()
		means = {}
		for col in INDICATOR_COLUMNS:
			if col in rows.columns and rows[col].notna().any():
				means[col] = float(rows[col].mean())
		return FuelIndicators(count=len(rows), **means)
