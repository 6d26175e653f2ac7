import logging
import math
from dataclasses import dataclass
from typing import Dict, List, Optional

from .oxides import EMPTY_COMPOSITION, LOI, OXIDE_KEYS, FuelStream, OxideComposition, RawMealInput

logger = logging.getLogger(__name__)

# Clinker leaves the kiln with a small residual loss on ignition
CLINKER_LOI_RESIDUAL = 0.2
CLINKER_OXIDE_TOTAL = 100.0 - CLINKER_LOI_RESIDUAL


@dataclass(frozen=True)
class ModuleSet:
	"""Clinker quality moduli. math.inf marks a zero denominator."""
	lsf: float
	ms: float
	af: float


@dataclass(frozen=True)
class AshBlend:
	average_ash: OxideComposition
	total_ash_flow: float


def _ratio(num: float, den: float) -> float:
	return num / den if den != 0 else math.inf


def compute_modules(composition: OxideComposition) -> ModuleSet:
	"""LSF, silica modulus and alumina-iron modulus"""
	SiO2 = composition.get("SiO2")
	Al2O3 = composition.get("Al2O3")
	Fe2O3 = composition.get("Fe2O3")
	CaO = composition.get("CaO")

	return ModuleSet(
		lsf=_ratio(100.0 * CaO, 2.8 * SiO2 + 1.18 * Al2O3 + 0.65 * Fe2O3),
		ms=_ratio(SiO2, Al2O3 + Fe2O3),
		af=_ratio(Al2O3, Fe2O3),
	)


def compute_c3s(composition: OxideComposition, free_lime_percent: float) -> float:
	"""Bogue C3S with free lime removed from total CaO. Not clamped."""
	CaO_eff = composition.get("CaO") - (free_lime_percent or 0.0)
	return 4.07 * CaO_eff - 7.60 * composition.get("SiO2") - 6.72 * composition.get("Al2O3") - 1.43 * composition.get("Fe2O3")


def compute_c3s_sulfate_corrected(composition: OxideComposition, free_lime_percent: float) -> float:
	"""C3S variant that also binds 0.7 x SO3 of the lime as sulfate, clamped at 0"""
	CaO_eff = composition.get("CaO") - (free_lime_percent or 0.0) - 0.7 * composition.get("SO3")
	C3S = 4.071 * CaO_eff - 7.60 * composition.get("SiO2") - 6.718 * composition.get("Al2O3") - 1.43 * composition.get("Fe2O3")
	return max(0.0, C3S)


def compute_bogue_phases(composition: OxideComposition, free_lime_percent: float) -> Dict[str, float]:
	C3S = compute_c3s(composition, free_lime_percent)
	C4AF = 3.04 * composition.get("Fe2O3")
	C3A = 2.65 * composition.get("Al2O3") - 1.69 * composition.get("Fe2O3")
	C2S = 2.87 * composition.get("SiO2") - 0.7544 * C3S
	return {"C3S": C3S, "C2S": C2S, "C3A": C3A, "C4AF": C4AF}


def cao_titre(composition: OxideComposition) -> Optional[float]:
	"""CaO on a loss-free basis, None when nothing remains after ignition"""
	loi = composition.get(LOI)
	if loi >= 100:
		return None
	return composition.get("CaO") / (100.0 - loi) * 100.0


def normalize(composition: OxideComposition) -> OxideComposition:
	"""Theoretical clinker from a kiln feed: volatiles driven off, oxides rescaled to 99.8%.

	Returns EMPTY_COMPOSITION when no clinker can be formed (LOI >= 100 or no
	oxides at all).
	"""
	if composition.get(LOI) >= 100:
		return EMPTY_COMPOSITION

	total = composition.oxide_sum()
	if total == 0:
		return EMPTY_COMPOSITION

	factor = CLINKER_OXIDE_TOTAL / total
	cl = {k: v * factor for k, v in composition.items() if k != LOI}
	cl[LOI] = CLINKER_LOI_RESIDUAL
	return OxideComposition(**cl)


def _contributing(streams: List[FuelStream]) -> List[FuelStream]:
	return [s for s in streams if s.flow_rate > 0 and s.ash_composition is not None and not s.ash_composition.is_empty]


def blend_ash(streams: List[FuelStream]) -> AshBlend:
	"""Average ash composition weighted by each stream's ash mass flow"""
	active = _contributing(streams)
	weights = [s.ash_flow for s in active]
	total_ash_flow = sum(weights)
	if total_ash_flow == 0:
		return AshBlend(EMPTY_COMPOSITION, total_ash_flow)

	res = {}
	for ox in OXIDE_KEYS:
		if all(s.ash_composition.value(ox) is None for s in active):
			continue
		res[ox] = sum(w * s.ash_composition.get(ox) for w, s in zip(weights, active)) / total_ash_flow
	return AshBlend(OxideComposition(**res), total_ash_flow)


def blend_raw_feed(raw_meal: RawMealInput, streams: List[FuelStream]) -> OxideComposition:
	"""Kiln feed composition once the fuel ash has joined the raw meal.

	Loss on ignition takes its share of the total material flow; the other
	oxides split the remainder in proportion to their mass flows.
	"""
	active = _contributing(streams)
	total_ash_flow = sum(s.ash_flow for s in active)
	total_flow = raw_meal.flow_rate + total_ash_flow
	if total_flow == 0:
		return EMPTY_COMPOSITION

	# 1) oxide mass flows
	flows = {}
	for ox in OXIDE_KEYS:
		known = raw_meal.composition.value(ox) is not None or any(s.ash_composition.value(ox) is not None for s in active)
		if not known:
			continue
		ash_part = sum(s.ash_flow * s.ash_composition.get(ox) / 100.0 for s in active)
		flows[ox] = raw_meal.flow_rate * raw_meal.composition.get(ox) / 100.0 + ash_part

	# 2) loss on ignition share of the total flow
	loi_flow = flows.pop(LOI, None)
	loi = (loi_flow or 0.0) / total_flow * 100.0

	# 3) remaining oxides share what is left
	oxide_flow = sum(flows.values())
	if oxide_flow == 0:
		return EMPTY_COMPOSITION

	mixed = {ox: f / oxide_flow * (100.0 - loi) for ox, f in flows.items()}
	if loi_flow is not None:
		mixed[LOI] = loi
	return OxideComposition(**mixed)
