import logging
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import List, Mapping, Optional

from .compute import (
	ModuleSet,
	blend_ash,
	blend_raw_feed,
	compute_c3s,
	compute_modules,
	normalize,
)
from .oxides import OXIDE_KEYS, FuelStream, OxideComposition, RawMealInput

logger = logging.getLogger(__name__)

MODULE_INDICATORS = ["LSF", "MS", "AF", "C3S"]
DELTA_INDICATORS = OXIDE_KEYS + MODULE_INDICATORS


@dataclass(frozen=True)
class ScenarioResult:
	composition: OxideComposition
	modules: ModuleSet
	c3s: float

	def indicator(self, name: str) -> Optional[float]:
		"""Value of an oxide or module indicator by name"""
		if name == "LSF":
			return self.modules.lsf
		if name == "MS":
			return self.modules.ms
		if name == "AF":
			return self.modules.af
		if name == "C3S":
			return self.c3s
		return self.composition.value(name)


@dataclass(frozen=True)
class ImpactResult:
	without_ash: ScenarioResult
	with_ash: ScenarioResult
	average_ash: OxideComposition
	total_ash_flow: float
	blended_feed: OxideComposition
	deltas: Mapping[str, float] = field(default_factory=lambda: MappingProxyType({}))
	raw_meal_modules: Optional[ModuleSet] = None
	ash_modules: Optional[ModuleSet] = None
	clinker_flow: Optional[float] = None


def evaluate_scenario(composition: OxideComposition, free_lime_percent: float) -> ScenarioResult:
	return ScenarioResult(
		composition=composition,
		modules=compute_modules(composition),
		c3s=compute_c3s(composition, free_lime_percent),
	)


def compare_with_measured(measured: OxideComposition, free_lime_percent: float) -> ScenarioResult:
	"""Modules and C3S of a laboratory clinker analysis, taken as is"""
	return evaluate_scenario(measured, free_lime_percent)


def _difference(with_value: float, without_value: float) -> float:
	# equal values, infinite ones included, do not move
	if with_value == without_value:
		return 0.0
	return with_value - without_value


def compute_deltas(with_ash: ScenarioResult, without_ash: ScenarioResult) -> Mapping[str, float]:
	"""with-ash minus without-ash; a positive delta means the ash raised the value.

	A modulus infinite on one side only gives an infinite delta.
	"""
	deltas = {}
	for ox in OXIDE_KEYS:
		deltas[ox] = _difference(with_ash.composition.get(ox), without_ash.composition.get(ox))
	for name in MODULE_INDICATORS:
		deltas[name] = _difference(with_ash.indicator(name), without_ash.indicator(name))
	return MappingProxyType(deltas)


def compute_impact(
	raw_meal: RawMealInput,
	fuel_streams: List[FuelStream],
	free_lime_percent: float,
	clinker_factor: Optional[float] = None,
) -> ImpactResult:
	"""Clinker with and without fuel ash, their moduli, C3S and deltas.

	Degenerate inputs never raise: empty compositions and infinite moduli are
	passed through for the caller to render.
	"""
	streams = list(fuel_streams or [])

	# 1) clinker from raw meal alone
	clinker_without = normalize(raw_meal.composition)

	# 2) average ash over the fuel streams
	ash = blend_ash(streams)

	# 3) raw meal + ash feed
	blended_feed = blend_raw_feed(raw_meal, streams)

	# 4) clinker from the blended feed
	clinker_with = normalize(blended_feed)

	# 5) moduli and C3S
	without_ash = evaluate_scenario(clinker_without, free_lime_percent)
	with_ash = evaluate_scenario(clinker_with, free_lime_percent)

	# 6) deltas
	deltas = compute_deltas(with_ash, without_ash)

	clinker_flow = raw_meal.flow_rate * clinker_factor if clinker_factor is not None else None

	logger.debug(
		"Impact computed for %d fuel streams: ash flow %.4f, LSF %.3f -> %.3f",
		len(streams), ash.total_ash_flow, without_ash.modules.lsf, with_ash.modules.lsf,
	)

	return ImpactResult(
		without_ash=without_ash,
		with_ash=with_ash,
		average_ash=ash.average_ash,
		total_ash_flow=ash.total_ash_flow,
		blended_feed=blended_feed,
		deltas=deltas,
		raw_meal_modules=compute_modules(raw_meal.composition),
		ash_modules=compute_modules(ash.average_ash),
		clinker_flow=clinker_flow,
	)
