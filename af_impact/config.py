import json
import logging
import os
from pathlib import Path
from typing import Any, Dict, List, Optional

from dotenv import load_dotenv

from .oxides import FuelStream, OxideComposition, RawMealInput

logger = logging.getLogger(__name__)

DEFAULTS_PATH = "data/defaults.json"
ANALYSES_PATH = "data/analyses.csv"


class ConfigurationError(Exception):
	"""Raised when a setting or the defaults file cannot be parsed"""
	pass


def _float_setting(name: str, default: str) -> float:
	value = os.getenv(name, default)
	try:
		return float(value)
	except ValueError:
		raise ConfigurationError(f"Invalid {name}: expected a number, got {value!r}")


def get_settings() -> Dict[str, Any]:
	"""Settings from the environment, .env file included"""
	load_dotenv()
	return {
		"defaults_path": os.getenv("AF_IMPACT_DEFAULTS_PATH", DEFAULTS_PATH),
		"analyses_path": os.getenv("AF_IMPACT_ANALYSES_PATH", ANALYSES_PATH),
		"log_level": os.getenv("AF_IMPACT_LOG_LEVEL", "INFO").upper(),
		"default_free_lime": _float_setting("AF_IMPACT_DEFAULT_FREE_LIME", "1.5"),
		"default_clinker_factor": _float_setting("AF_IMPACT_DEFAULT_CLINKER_FACTOR", "0.66"),
	}


def configure_logging(level: Optional[str] = None):
	level = level or get_settings()["log_level"]
	logging.basicConfig(
		level=getattr(logging, str(level).upper(), logging.INFO),
		format="%(asctime)s %(levelname)s %(name)s: %(message)s",
	)


def load_defaults(path: Optional[str] = None) -> Dict[str, Any]:
	"""Plant defaults (raw meal, presets, fuel streams, thresholds); {} if the file is absent"""
	defaults_path = Path(path or get_settings()["defaults_path"])
	if not defaults_path.exists():
		logger.info("No defaults file at %s", defaults_path)
		return {}
	try:
		return json.loads(defaults_path.read_text(encoding="utf-8"))
	except json.JSONDecodeError as e:
		raise ConfigurationError(f"Invalid defaults file {defaults_path}: {e}")


def raw_meal_presets(defaults: Dict[str, Any]) -> Dict[str, OxideComposition]:
	presets = {}
	for p in defaults.get("raw_meal_presets", []):
		name = str(p.get("name", "")).strip()
		if not name:
			continue
		presets[name] = OxideComposition.from_mapping(p.get("analysis", {}))
	return presets


def default_raw_meal(defaults: Dict[str, Any]) -> RawMealInput:
	rm = defaults.get("raw_meal", {})
	return RawMealInput.from_mapping(rm.get("flow_rate", 0.0), rm.get("analysis", {}), strict=False)


def default_fuel_streams(defaults: Dict[str, Any]) -> List[FuelStream]:
	return [FuelStream.from_mapping(row, strict=False) for row in defaults.get("fuel_streams", [])]


def bucket_weights(defaults: Dict[str, Any]) -> Dict[str, float]:
	"""Tonnes per loader bucket by fuel; fuels left out use the mixture default"""
	weights = {}
	for name, value in defaults.get("bucket_weights", {}).items():
		try:
			weights[str(name).strip()] = float(value)
		except (TypeError, ValueError):
			raise ConfigurationError(f"Invalid bucket weight for {name}: {value!r}")
	return weights
