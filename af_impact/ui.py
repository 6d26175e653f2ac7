import logging
from typing import Dict, List, Optional, Tuple

import pandas as pd
import streamlit as st

from .analyses import AnalysisStore
from .compute import compute_bogue_phases
from .impact import ImpactResult, ScenarioResult
from .importers import AnalysisImportError, read_measured_clinker, read_raw_meal_analysis
from .mixture import DEFAULT_BUCKET_WEIGHT, Installation, MixtureIndicators, MixtureThresholds, compute_mixture_indicators, fuel_streams_from_session
from .oxides import OXIDE_KEYS, OXIDE_LABELS, FuelStream, InvalidCompositionError, OxideComposition, RawMealInput
from .report import clinker_flow_label, delta_direction, delta_summary, format_impact_table, format_value, impact_table

logger = logging.getLogger(__name__)

FUEL_COLUMNS = ["name", "flow_rate", "ash_content_percent"] + OXIDE_KEYS


def build_general_tab(general: dict) -> dict:
	st.subheader("General")
	c1, c2, c3 = st.columns(3)
	free_lime = c1.number_input("Free lime (%)", value=float(general.get("free_lime", 1.5)), min_value=0.0, step=0.1, key="free_lime_input")
	clinker_factor = c2.number_input("Clinker factor", value=float(general.get("clinker_factor", 0.66)), min_value=0.0, step=0.01, key="clinker_factor_input")
	raw_meal_flow = c3.number_input("Raw meal flow (t/h)", value=float(general.get("raw_meal_flow", 180.0)), min_value=0.0, key="raw_meal_flow_input")
	return {
		"free_lime": free_lime,
		"clinker_factor": clinker_factor,
		"raw_meal_flow": raw_meal_flow,
	}


def _input_text(value: Optional[float]) -> str:
	return "" if value is None else f"{value:g}"


def _load_oxide_inputs(prefix: str, composition: OxideComposition, source: str):
	"""Overwrite the oxide inputs once per new source (preset or imported file)"""
	if st.session_state.get(f"{prefix}_source") == source:
		return
	st.session_state[f"{prefix}_source"] = source
	for key in OXIDE_KEYS:
		st.session_state[f"{prefix}_{key}_input"] = _input_text(composition.value(key))


def _oxide_inputs(prefix: str, composition: OxideComposition) -> Dict[str, str]:
	cols = st.columns(6)
	values = {}
	for i, key in enumerate(OXIDE_KEYS):
		widget_key = f"{prefix}_{key}_input"
		# keyed widgets take their value from session state only
		if widget_key not in st.session_state:
			st.session_state[widget_key] = _input_text(composition.value(key))
		values[key] = cols[i % 6].text_input(OXIDE_LABELS[key], key=widget_key)
	return values


def build_raw_meal_tab(composition: OxideComposition, presets: Dict[str, OxideComposition]) -> OxideComposition:
	st.subheader("Raw meal analysis")

	if presets:
		names = ["(current)"] + list(presets)
		choice = st.selectbox("Preset", names, index=0, key="raw_meal_preset")
		if choice != "(current)":
			_load_oxide_inputs("raw_meal", presets[choice], f"preset:{choice}")

	uploaded = st.file_uploader("Import lab sheet (row 24, columns B-L)", type=["xlsx", "xls"], key="raw_meal_upload")
	if uploaded is not None:
		source = f"upload:{uploaded.name}:{uploaded.size}"
		if st.session_state.get("raw_meal_source") != source:
			try:
				_load_oxide_inputs("raw_meal", read_raw_meal_analysis(uploaded), source)
				st.success("Raw meal analysis imported.")
			except AnalysisImportError as e:
				logger.warning("Raw meal import failed: %s", e)
				st.error(f"Import failed: {e}")

	values = _oxide_inputs("raw_meal", composition)
	try:
		return OxideComposition.from_mapping(values, strict=True)
	except InvalidCompositionError as e:
		st.warning(f"⚠️ {e}. Previous analysis kept.")
		return composition


def build_fuel_tab(streams: List[FuelStream], store: Optional[AnalysisStore] = None) -> List[FuelStream]:
	st.subheader("Fuel streams")
	st.caption("One row per fuel fed to the kiln. Ash oxides are percentages of the ash.")

	rows = []
	for s in streams:
		row = {"name": s.name, "flow_rate": s.flow_rate, "ash_content_percent": s.ash_content_percent}
		row.update(s.ash_composition.to_dict())
		rows.append(row)
	fuel_df = pd.DataFrame(rows, columns=FUEL_COLUMNS)

	if store is not None and store.fuels():
		with st.expander("Load averaged ash analysis", expanded=False):
			c1, c2, c3 = st.columns(3)
			fuel = c1.selectbox("Fuel", store.fuels(), key="ash_fuel_select")
			start = c2.date_input("From", value=None, key="ash_start")
			end = c3.date_input("To", value=None, key="ash_end")
			avg = store.average_ash([fuel], start=start, end=end)
			if not avg.has_data:
				st.warning(f"No ash analysis for {fuel} in this period.")
			elif st.button("Add stream", key="add_ash_stream"):
				row = {"name": fuel, "flow_rate": 0.0, "ash_content_percent": avg.ash_content_percent}
				row.update(avg.composition.to_dict())
				fuel_df = pd.concat([fuel_df, pd.DataFrame([row], columns=FUEL_COLUMNS)], ignore_index=True)
				st.caption(f"Average of {avg.count} samples.")

	column_config = {
		"name": st.column_config.TextColumn("Fuel", width="medium"),
		"flow_rate": st.column_config.NumberColumn("Flow (t/h)", format="%.2f", min_value=0.0),
		"ash_content_percent": st.column_config.NumberColumn("Ash (%)", format="%.1f", min_value=0.0, max_value=100.0),
	}
	for key in OXIDE_KEYS:
		column_config[key] = st.column_config.NumberColumn(f"{OXIDE_LABELS[key]} (%)", format="%.2f", min_value=0.0, max_value=100.0)

	edited = st.data_editor(fuel_df, num_rows="dynamic", use_container_width=True, key="fuel_stream_editor", column_config=column_config)

	result = []
	for row in edited.to_dict(orient="records"):
		try:
			result.append(FuelStream.from_mapping(row, strict=True))
		except InvalidCompositionError as e:
			logger.info("Fuel row rejected: %s", e)
			st.warning(f"⚠️ {row.get('name') or 'Unnamed fuel'}: {e}")
	return result


def build_measured_clinker_tab(free_lime: float) -> Tuple[Optional[OxideComposition], float]:
	st.subheader("Measured clinker")
	uploaded = st.file_uploader("Import clinker lab sheet (row 37)", type=["xlsx", "xls"], key="clinker_upload")
	if uploaded is None:
		return None, free_lime
	try:
		composition, measured_free_lime = read_measured_clinker(uploaded)
	except AnalysisImportError as e:
		st.error(f"Import failed: {e}")
		return None, free_lime
	st.success(f"Measured clinker imported (free lime {measured_free_lime:.2f} %).")
	return composition, measured_free_lime


def render_mixture_indicators(ind: MixtureIndicators):
	icons = {"alert": "🔴", "conform": "🟢", "neutral": "⚪"}
	c1, c2, c3, c4, c5 = st.columns(5)
	c1.metric(f"{icons[ind.status['pci']]} PCI", f"{ind.pci:.0f} kcal/kg")
	c2.metric(f"{icons[ind.status['humidity']]} Humidity", f"{ind.humidity:.2f} %")
	c3.metric(f"{icons[ind.status['ash']]} Ash", f"{ind.ash:.2f} %")
	c4.metric(f"{icons[ind.status['chlorine']]} Chlorine", f"{ind.chlorine:.3f} %")
	c5.metric(f"{icons[ind.status['tire_rate']]} Tire rate", f"{ind.tire_rate:.2f} %")


def render_impact_tab(raw_meal: RawMealInput, result: ImpactResult, free_lime: float, measured: Optional[ScenarioResult] = None):
	st.subheader("Clinker impact")

	if result.without_ash.composition.is_empty:
		st.info("No clinker can be formed from this raw meal analysis.")

	c1, c2, c3, c4 = st.columns(4)
	c1.metric("Clinker flow", clinker_flow_label(result))
	c2.metric("Ash flow", format_value(result.total_ash_flow, 3, " t/h"))
	for col, name, decimals in [(c3, "LSF", 1), (c4, "C3S", 1)]:
		d = result.deltas[name]
		col.metric(
			f"{name} with ash",
			format_value(result.with_ash.indicator(name), decimals),
			delta=format_value(d, 2) if delta_direction(d) else None,
			delta_color="off" if not delta_direction(d) else "normal",
		)

	table = impact_table(result, raw_meal.composition, measured)
	st.dataframe(format_impact_table(table), use_container_width=True)

	st.markdown("**Change caused by fuel ash**")
	summary = delta_summary(result)
	summary["direction"] = summary["delta"].map(delta_direction)
	summary["delta"] = summary["delta"].map(lambda d: format_value(d, 3))
	st.dataframe(summary, use_container_width=True, hide_index=True)

	with st.expander("Average ash composition", expanded=False):
		if result.average_ash.is_empty:
			st.info("No ash reaches the kiln with the current streams.")
		else:
			ash_df = pd.DataFrame([{OXIDE_LABELS[k]: format_value(v) for k, v in result.average_ash.items()}])
			st.dataframe(ash_df, use_container_width=True, hide_index=True)
			m = result.ash_modules
			st.caption(f"Ash moduli: LSF {format_value(m.lsf, 1)} | MS {format_value(m.ms)} | AF {format_value(m.af)}")

	with st.expander("Bogue phases", expanded=False):
		phases = []
		for label, s in [("Without ash", result.without_ash), ("With ash", result.with_ash)]:
			if s.composition.is_empty:
				continue
			p = compute_bogue_phases(s.composition, free_lime)
			phases.append({"Clinker": label, **{k: format_value(v, 1) for k, v in p.items()}})
		if phases:
			st.dataframe(pd.DataFrame(phases), use_container_width=True, hide_index=True)


def build_mixture_tab(store: AnalysisStore, thresholds: MixtureThresholds, bucket_weights: Optional[Dict[str, float]] = None) -> Tuple[Optional[MixtureIndicators], Optional[List[FuelStream]]]:
	"""Loader session editor; returns the indicators and, on request, the resolved fuel streams"""
	st.subheader("Fuel mixture")
	fuels = store.fuels()
	if not fuels:
		st.info("No fuel analyses loaded.")
		return None, None

	weights = bucket_weights or {}
	st.caption("Bucket weight: " + ", ".join(f"{f} {weights.get(f) or DEFAULT_BUCKET_WEIGHT:g} t" for f in fuels))

	installations = []
	for inst_name in ["Hall AF", "ATS"]:
		st.markdown(f"**{inst_name}**")
		flow = st.number_input(f"{inst_name} flow (t/h)", value=0.0, min_value=0.0, key=f"{inst_name}_flow")
		bucket_df = pd.DataFrame({"fuel": fuels, "buckets": [0.0] * len(fuels)})
		edited = st.data_editor(bucket_df, use_container_width=True, hide_index=True, disabled=["fuel"], key=f"{inst_name}_buckets")
		buckets = dict(zip(edited["fuel"], pd.to_numeric(edited["buckets"], errors="coerce").fillna(0.0)))
		installations.append(Installation(name=inst_name, flow_rate=flow, buckets=buckets))

	st.markdown("**Direct inputs (t/h)**")
	direct_df = pd.DataFrame({"fuel": fuels, "flow_rate": [0.0] * len(fuels)})
	edited = st.data_editor(direct_df, use_container_width=True, hide_index=True, disabled=["fuel"], key="direct_inputs")
	direct_inputs = dict(zip(edited["fuel"], pd.to_numeric(edited["flow_rate"], errors="coerce").fillna(0.0)))

	analyses = {f: store.average_fuel(f) for f in fuels}
	ind = compute_mixture_indicators(installations, direct_inputs, analyses, bucket_weights=bucket_weights, thresholds=thresholds)
	render_mixture_indicators(ind)

	if st.button("Use this mixture as fuel streams", key="use_mixture_streams"):
		ash = {f: store.average_ash([f]) for f in fuels}
		return ind, fuel_streams_from_session(installations, direct_inputs, ash, bucket_weights=bucket_weights)
	return ind, None
