import logging
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Mapping, Optional

from .analyses import AverageAshAnalysis, FuelIndicators
from .oxides import EMPTY_COMPOSITION, FuelStream

logger = logging.getLogger(__name__)

DEFAULT_BUCKET_WEIGHT = 1.5  # t per loader bucket

INDICATORS = ["pci", "humidity", "ash", "chlorine", "tire_rate"]


@dataclass(frozen=True)
class Installation:
	"""A feeding installation: its flow and the buckets loaded per fuel"""
	name: str
	flow_rate: float
	buckets: Dict[str, float] = field(default_factory=dict)


@dataclass(frozen=True)
class MixtureThresholds:
	pci_min: float = 0.0
	humidity_max: float = 100.0
	ash_max: float = 100.0
	chlorine_max: float = 100.0
	tire_rate_max: float = 100.0


@dataclass(frozen=True)
class MixtureIndicators:
	flow: float
	pci: float
	humidity: float
	ash: float
	chlorine: float
	tire_rate: float
	cost: float
	status: Dict[str, str]
	fuel_weights: Dict[str, float]


def is_tire_fuel(name: str) -> bool:
	name = str(name).lower()
	return "pneu" in name or "tire" in name or "tyre" in name


def compute_pci_as_received(pcs: float, humidity: float, hydrogen: Optional[float]) -> Optional[int]:
	"""Net calorific value as received (kcal/kg) from gross value, moisture and hydrogen"""
	if hydrogen is None or pcs is None or humidity is None:
		return None
	if pcs != pcs or pcs < 0 or humidity != humidity or humidity < 0 or humidity > 100:
		return None
	pci = (pcs - 50.6353308 * hydrogen) * (1 - humidity / 100.0) - humidity * 583.2616878 / 100.0
	if pci != pci or pci in (float("inf"), float("-inf")):
		return None
	return round(pci)


def indicator_status(value: float, minimum: Optional[float] = None, maximum: Optional[float] = None) -> str:
	if minimum is None and maximum is None:
		return "neutral"
	if value == 0:
		return "neutral"
	if minimum is not None and value < minimum:
		return "alert"
	if maximum is not None and value > maximum:
		return "alert"
	return "conform"


def _bucket_weight(name: str, bucket_weights: Optional[Mapping[str, float]]) -> float:
	w = (bucket_weights or {}).get(name, 0.0) or 0.0
	return w if w > 0 else DEFAULT_BUCKET_WEIGHT


def installation_weights(inst: Installation, bucket_weights: Optional[Mapping[str, float]] = None) -> Dict[str, float]:
	"""Loaded mass per fuel; fuels with no buckets are left out"""
	res = {}
	for name, buckets in inst.buckets.items():
		if not buckets or buckets <= 0:
			continue
		res[name] = res.get(name, 0.0) + buckets * _bucket_weight(name, bucket_weights)
	return res


def _installation_indicators(
	inst: Installation,
	analyses: Mapping[str, FuelIndicators],
	bucket_weights: Optional[Mapping[str, float]],
	costs: Mapping[str, float],
	is_tire: Callable[[str], bool],
) -> Dict[str, float]:
	weights = installation_weights(inst, bucket_weights)
	total = sum(weights.values())
	sums = {"pci": 0.0, "humidity": 0.0, "ash": 0.0, "chlorine": 0.0, "cost": 0.0}
	tire_weight = 0.0
	for name, w in weights.items():
		if is_tire(name):
			tire_weight += w
		a = analyses.get(name)
		if a is None or a.count == 0:
			# weight still counts, the fuel just brings no known quality
			continue
		sums["pci"] += w * a.pci
		sums["humidity"] += w * a.humidity
		sums["ash"] += w * a.ash
		sums["chlorine"] += w * a.chlorine
		sums["cost"] += w * (costs.get(name, 0.0) or 0.0)

	if total <= 0:
		return {k: 0.0 for k in ["pci", "humidity", "ash", "chlorine", "cost", "tire_rate"]}
	res = {k: v / total for k, v in sums.items()}
	res["tire_rate"] = tire_weight / total * 100.0
	return res


def compute_mixture_indicators(
	installations: List[Installation],
	direct_inputs: Mapping[str, float],
	analyses: Mapping[str, FuelIndicators],
	bucket_weights: Optional[Mapping[str, float]] = None,
	costs: Optional[Mapping[str, float]] = None,
	thresholds: Optional[MixtureThresholds] = None,
	is_tire: Callable[[str], bool] = is_tire_fuel,
) -> MixtureIndicators:
	"""Flow-weighted quality of the fuel mix fed to the kiln"""
	costs = costs or {}
	thresholds = thresholds or MixtureThresholds()

	flows = []
	fuel_weights: Dict[str, float] = {}
	for inst in installations:
		flows.append((inst.flow_rate or 0.0, _installation_indicators(inst, analyses, bucket_weights, costs, is_tire)))
		for name, w in installation_weights(inst, bucket_weights).items():
			fuel_weights[name] = fuel_weights.get(name, 0.0) + w

	for name, flow in direct_inputs.items():
		flow = flow or 0.0
		if flow <= 0:
			continue
		fuel_weights[name] = fuel_weights.get(name, 0.0) + flow
		a = analyses.get(name)
		if a is None or a.count == 0:
			logger.info("Direct input %s has no analysis, left out of the indicators", name)
			continue
		flows.append((flow, {
			"pci": a.pci,
			"humidity": a.humidity,
			"ash": a.ash,
			"chlorine": a.chlorine,
			"cost": costs.get(name, 0.0) or 0.0,
			"tire_rate": 100.0 if is_tire(name) else 0.0,
		}))

	total_flow = sum(f for f, _ in flows)

	def weighted(key: str) -> float:
		if total_flow == 0:
			return 0.0
		return sum(f * ind[key] for f, ind in flows) / total_flow

	pci = weighted("pci")
	humidity = weighted("humidity")
	ash = weighted("ash")
	chlorine = weighted("chlorine")
	tire_rate = weighted("tire_rate")

	status = {
		"pci": indicator_status(pci, thresholds.pci_min if thresholds.pci_min > 0 else None, None),
		"humidity": indicator_status(humidity, None, thresholds.humidity_max if thresholds.humidity_max < 100 else None),
		"ash": indicator_status(ash, None, thresholds.ash_max if thresholds.ash_max < 100 else None),
		"chlorine": indicator_status(chlorine, None, thresholds.chlorine_max if thresholds.chlorine_max < 100 else None),
		"tire_rate": indicator_status(tire_rate, None, thresholds.tire_rate_max if thresholds.tire_rate_max < 100 else None),
	}

	return MixtureIndicators(
		flow=total_flow,
		pci=pci,
		humidity=humidity,
		ash=ash,
		chlorine=chlorine,
		tire_rate=tire_rate,
		cost=weighted("cost"),
		status=status,
		fuel_weights=fuel_weights,
	)


def fuel_streams_from_session(
	installations: List[Installation],
	direct_inputs: Mapping[str, float],
	ash_analyses: Mapping[str, AverageAshAnalysis],
	bucket_weights: Optional[Mapping[str, float]] = None,
) -> List[FuelStream]:
	"""One FuelStream per fuel actually fed, installation fuels and direct inputs alike.

	An installation's flow is split between its fuels by loaded mass. Fuels
	without ash analysis get an empty composition and are ignored by the ash
	blender.
	"""
	streams = []

	def stream(name: str, flow: float) -> FuelStream:
		a = ash_analyses.get(name)
		if a is None or not a.has_data:
			logger.warning("No ash analysis for %s, its ash is not counted", name)
			return FuelStream(flow_rate=flow, ash_content_percent=0.0, ash_composition=EMPTY_COMPOSITION, name=name)
		return a.to_stream(flow, name)

	for inst in installations:
		weights = installation_weights(inst, bucket_weights)
		total = sum(weights.values())
		if total <= 0 or not inst.flow_rate or inst.flow_rate <= 0:
			continue
		for name, w in weights.items():
			streams.append(stream(name, inst.flow_rate * w / total))

	for name, flow in direct_inputs.items():
		if flow and flow > 0:
			streams.append(stream(name, flow))

	return streams
