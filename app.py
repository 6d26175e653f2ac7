import logging

import streamlit as st

from af_impact.analyses import AnalysisStore
from af_impact.config import (
	ConfigurationError,
	bucket_weights,
	configure_logging,
	default_fuel_streams,
	default_raw_meal,
	get_settings,
	load_defaults,
	raw_meal_presets,
)
from af_impact.impact import compare_with_measured, compute_impact
from af_impact.mixture import MixtureThresholds
from af_impact.oxides import RawMealInput
from af_impact.ui import (
	build_fuel_tab,
	build_general_tab,
	build_measured_clinker_tab,
	build_mixture_tab,
	build_raw_meal_tab,
	render_impact_tab,
)

st.set_page_config(page_title="AF Clinker Impact", layout="wide")

logger = logging.getLogger(__name__)

try:
	settings = get_settings()
except ConfigurationError as e:
	st.error(f"❌ {e}")
	st.stop()
configure_logging(settings["log_level"])

# Load defaults
try:
	defaults = load_defaults(settings["defaults_path"])
	weights = bucket_weights(defaults)
except ConfigurationError as e:
	st.error(f"❌ {e}")
	defaults, weights = {}, {}

if "state" not in st.session_state:
	raw_meal = default_raw_meal(defaults)
	st.session_state.state = {
		"general": {
			"free_lime": defaults.get("free_lime", settings["default_free_lime"]),
			"clinker_factor": defaults.get("clinker_factor", settings["default_clinker_factor"]),
			"raw_meal_flow": raw_meal.flow_rate,
		},
		"raw_meal": raw_meal.composition,
		"fuel_streams": default_fuel_streams(defaults),
	}

state = st.session_state.state
store = AnalysisStore.from_csv(settings["analyses_path"])
thresholds = MixtureThresholds(**defaults.get("thresholds", {}))

st.title("Alternative fuel impact on clinker")

# Tabs
tab_general, tab_rm, tab_mix, tab_fuel, tab_measured, tab_impact = st.tabs([
	"General", "Raw Meal", "Mixture", "Fuel Streams", "Measured Clinker", "Impact"
])

with tab_general:
	state["general"] = build_general_tab(state["general"])

with tab_rm:
	state["raw_meal"] = build_raw_meal_tab(state["raw_meal"], raw_meal_presets(defaults))

with tab_mix:
	_, mixture_streams = build_mixture_tab(store, thresholds, weights)
	if mixture_streams is not None:
		state["fuel_streams"] = mixture_streams
		st.success(f"✅ {len(mixture_streams)} fuel streams taken from the mixture.")

with tab_fuel:
	state["fuel_streams"] = build_fuel_tab(state["fuel_streams"], store)

with tab_measured:
	measured_clinker, measured_free_lime = build_measured_clinker_tab(state["general"]["free_lime"])

g = state["general"]
raw_meal_input = RawMealInput(flow_rate=g["raw_meal_flow"], composition=state["raw_meal"])
result = compute_impact(raw_meal_input, state["fuel_streams"], g["free_lime"], g["clinker_factor"])

measured = None
if measured_clinker is not None:
	measured = compare_with_measured(measured_clinker, measured_free_lime)

with tab_impact:
	render_impact_tab(raw_meal_input, result, g["free_lime"], measured)
