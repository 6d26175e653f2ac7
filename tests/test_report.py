import math

import pytest

from af_impact.impact import compare_with_measured, compute_impact
from af_impact.oxides import OxideComposition, RawMealInput
from af_impact.report import (
    INFINITE,
    MISSING,
    clinker_flow_label,
    delta_direction,
    delta_summary,
    format_impact_table,
    format_value,
    impact_table,
)


def test_format_value():
    assert format_value(1.23456) == '1.23'
    assert format_value(96.04, 1) == '96.0'
    assert format_value(120.0, 1, ' t/h') == '120.0 t/h'
    assert format_value(math.inf) == INFINITE
    assert format_value(None) == MISSING
    assert format_value(float('nan')) == MISSING


def test_delta_direction():
    assert delta_direction(0.5) == 'up'
    assert delta_direction(-0.5) == 'down'
    assert delta_direction(0.001) == ''
    assert delta_direction(float('nan')) == ''


class TestImpactTable:
    """Tests for the tabular view of an impact result"""

    def test_rows_and_columns(self, raw_meal, petcoke_stream):
        res = compute_impact(raw_meal, [petcoke_stream], 1.5)
        df = impact_table(res, raw_meal.composition)
        assert list(df.columns) == ['Raw meal', 'Without ash', 'With ash', 'Delta']
        assert {'LOI', 'SiO2', 'Sum', 'CaO titre', 'LSF', 'MS', 'AF', 'C3S'} <= set(df.index)
        assert df.at['LSF', 'Delta'] == pytest.approx(res.deltas['LSF'])
        assert df.at['Sum', 'With ash'] == pytest.approx(99.8)
        assert df.at['LOI', 'Without ash'] == pytest.approx(0.2)

    def test_measured_column(self, raw_meal, petcoke_stream):
        res = compute_impact(raw_meal, [petcoke_stream], 1.5)
        measured = compare_with_measured(OxideComposition(SiO2=21.0, Al2O3=5.0, Fe2O3=3.0, CaO=65.0), 1.5)
        df = impact_table(res, raw_meal.composition, measured)
        assert df.columns[-1] == 'Measured'
        assert df.at['CaO', 'Measured'] == pytest.approx(65.0)

    def test_formatting_of_undefined_values(self):
        rm = RawMealInput(flow_rate=100.0, composition=OxideComposition(SiO2=20.0, CaO=60.0))
        res = compute_impact(rm, [], 1.5)
        out = format_impact_table(impact_table(res, rm.composition))
        assert out.at['AF', 'With ash'] == INFINITE
        assert out.at['Al2O3', 'With ash'] == MISSING
        assert out.at['C3S', 'Raw meal'] == MISSING


def test_delta_summary(raw_meal, petcoke_stream):
    res = compute_impact(raw_meal, [petcoke_stream], 1.5)
    df = delta_summary(res)
    assert list(df['indicator']) == ['Fe2O3', 'CaO', 'LSF', 'C3S']
    assert df['delta'].iloc[0] == pytest.approx(res.deltas['Fe2O3'])


def test_clinker_flow_label(raw_meal):
    assert clinker_flow_label(compute_impact(raw_meal, [], 1.5, 0.6)) == '120.0 t/h'
    assert clinker_flow_label(compute_impact(raw_meal, [], 1.5)) == MISSING
