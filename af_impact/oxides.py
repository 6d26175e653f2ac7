import logging
import math
from dataclasses import dataclass, fields
from typing import Any, Dict, Iterator, Mapping, Optional, Tuple

logger = logging.getLogger(__name__)

LOI = "loss_on_ignition"

OXIDE_KEYS = [LOI, "SiO2", "Al2O3", "Fe2O3", "CaO", "MgO", "SO3", "K2O", "TiO2", "MnO", "P2O5"]

OXIDE_LABELS = {
	LOI: "LOI", "SiO2": "SiO2", "Al2O3": "Al2O3", "Fe2O3": "Fe2O3", "CaO": "CaO", "MgO": "MgO",
	"SO3": "SO3", "K2O": "K2O", "TiO2": "TiO2", "MnO": "MnO", "P2O5": "P2O5",
}

# Lab sheets and older records use several spellings for the same field
_ALIASES = {"pf": LOI, "loi": LOI, "perte_au_feu": LOI}
_ALIASES.update({k.lower(): k for k in OXIDE_KEYS})


class InvalidCompositionError(ValueError):
	"""Raised by the input adapters for negative or non-numeric analysis values"""
	pass


def _parse_number(value: Any) -> Optional[float]:
	if value is None:
		return None
	if isinstance(value, str):
		value = value.strip().replace(",", ".")
		if not value:
			return None
	try:
		number = float(value)
	except (TypeError, ValueError):
		raise InvalidCompositionError(f"Not a number: {value!r}")
	if math.isnan(number):
		return None
	return number


def canonical_key(key: str) -> Optional[str]:
	key = str(key).strip()
	if key in OXIDE_KEYS:
		return key
	return _ALIASES.get(key.lower())


@dataclass(frozen=True)
class OxideComposition:
	"""Mass percentages per oxide. None marks an oxide that was not analysed."""
	loss_on_ignition: Optional[float] = None
	SiO2: Optional[float] = None
	Al2O3: Optional[float] = None
	Fe2O3: Optional[float] = None
	CaO: Optional[float] = None
	MgO: Optional[float] = None
	SO3: Optional[float] = None
	K2O: Optional[float] = None
	TiO2: Optional[float] = None
	MnO: Optional[float] = None
	P2O5: Optional[float] = None

	@classmethod
	def from_mapping(cls, mapping: Mapping[str, Any], strict: bool = False) -> "OxideComposition":
		"""Build a composition from a dict of lab values.

		Unknown keys are ignored. With strict=True, negative or non-numeric values
		raise InvalidCompositionError; otherwise non-numeric values are logged and
		dropped and negative ones are kept as given.
		"""
		values: Dict[str, Optional[float]] = {}
		for raw_key, raw_value in (mapping or {}).items():
			key = canonical_key(raw_key)
			if key is None:
				continue
			try:
				number = _parse_number(raw_value)
			except InvalidCompositionError:
				if strict:
					raise InvalidCompositionError(f"{key}: not a number ({raw_value!r})")
				logger.warning("Ignoring non-numeric value %r for %s", raw_value, key)
				continue
			if strict and number is not None and (number < 0 or math.isinf(number)):
				raise InvalidCompositionError(f"{key}: expected a finite percentage >= 0, got {number}")
			values[key] = number
		return cls(**values)

	def value(self, key: str) -> Optional[float]:
		return getattr(self, key)

	def get(self, key: str, default: float = 0.0) -> float:
		v = getattr(self, key)
		return default if v is None else v

	def items(self) -> Iterator[Tuple[str, float]]:
		for key in OXIDE_KEYS:
			v = getattr(self, key)
			if v is not None:
				yield key, v

	def to_dict(self) -> Dict[str, Optional[float]]:
		return {key: getattr(self, key) for key in OXIDE_KEYS}

	@property
	def is_empty(self) -> bool:
		return all(getattr(self, f.name) is None for f in fields(self))

	def oxide_sum(self) -> float:
		"""Sum of the known oxides, loss on ignition excluded"""
		return sum(v for k, v in self.items() if k != LOI)


EMPTY_COMPOSITION = OxideComposition()


@dataclass(frozen=True)
class FuelStream:
	flow_rate: float
	ash_content_percent: Optional[float]
	ash_composition: OxideComposition
	name: str = ""

	@property
	def ash_flow(self) -> float:
		"""Ash mass flow brought to the kiln, same unit as flow_rate"""
		return self.flow_rate * ((self.ash_content_percent or 0.0) / 100.0)

	@classmethod
	def from_mapping(cls, row: Mapping[str, Any], strict: bool = True) -> "FuelStream":
		"""Build a stream from a table row: name, flow, ash, then oxide columns"""
		flow = _checked_quantity(row, ("flow_rate", "flow", "t/h"), "flow_rate", strict)
		ash = _checked_quantity(row, ("ash_content_percent", "ash", "cendres", "pourcentage_cendres"), "ash_content_percent", strict)
		if strict and ash is not None and ash > 100:
			raise InvalidCompositionError(f"ash_content_percent: expected 0-100, got {ash}")
		composition = OxideComposition.from_mapping(row, strict=strict)
		name = row.get("name", row.get("Fuel"))
		# empty editor cells come back as NaN
		if name is None or name != name:
			name = ""
		return cls(
			flow_rate=flow or 0.0,
			ash_content_percent=ash,
			ash_composition=composition,
			name=str(name).strip(),
		)


@dataclass(frozen=True)
class RawMealInput:
	flow_rate: float
	composition: OxideComposition

	@classmethod
	def from_mapping(cls, flow_rate: Any, analysis: Mapping[str, Any], strict: bool = True) -> "RawMealInput":
		flow = _checked_quantity({"flow_rate": flow_rate}, ("flow_rate",), "flow_rate", strict)
		return cls(flow_rate=flow or 0.0, composition=OxideComposition.from_mapping(analysis, strict=strict))


def _checked_quantity(row: Mapping[str, Any], names: Tuple[str, ...], label: str, strict: bool) -> Optional[float]:
	raw = None
	for name in names:
		if name in row:
			raw = row[name]
			break
	try:
		number = _parse_number(raw)
	except InvalidCompositionError:
		if strict:
			raise InvalidCompositionError(f"{label}: not a number ({raw!r})")
		logger.warning("Ignoring non-numeric %s %r", label, raw)
		return None
	if number is not None and (number < 0 or math.isinf(number)):
		if strict:
			raise InvalidCompositionError(f"{label}: expected a finite value >= 0, got {number}")
		logger.warning("Clamping %s %s to 0", label, number)
		return 0.0
	return number
