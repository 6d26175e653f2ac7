import pytest

from af_impact.analyses import NO_ASH_DATA, AverageAshAnalysis, FuelIndicators
from af_impact.mixture import (
    DEFAULT_BUCKET_WEIGHT,
    Installation,
    MixtureThresholds,
    compute_mixture_indicators,
    compute_pci_as_received,
    fuel_streams_from_session,
    indicator_status,
    installation_weights,
    is_tire_fuel,
)
from af_impact.oxides import OxideComposition

ANALYSES = {
    'CSR': FuelIndicators(pci=4000.0, humidity=15.0, ash=12.0, chlorine=0.6, count=3),
    'Pneus': FuelIndicators(pci=7000.0, humidity=1.0, ash=6.0, chlorine=0.1, count=2),
    'Grignons': FuelIndicators(pci=3800.0, humidity=18.0, ash=5.0, chlorine=0.3, count=1),
}


class TestInstallationWeights:
    def test_buckets_times_weight(self):
        inst = Installation('Hall AF', 10.0, {'CSR': 3, 'Pneus': 1, 'Grignons': 0})
        w = installation_weights(inst, {'Pneus': 2.0})
        assert w == {'CSR': pytest.approx(3 * DEFAULT_BUCKET_WEIGHT), 'Pneus': pytest.approx(2.0)}


class TestMixtureIndicators:
    """Tests for the fuel mix quality"""

    def test_single_installation(self):
        inst = Installation('Hall AF', 10.0, {'CSR': 3, 'Pneus': 1})
        ind = compute_mixture_indicators([inst], {}, ANALYSES)
        assert ind.flow == pytest.approx(10.0)
        assert ind.pci == pytest.approx((3 * 4000.0 + 7000.0) / 4)
        assert ind.tire_rate == pytest.approx(25.0)

    def test_direct_inputs_weighted_by_flow(self):
        inst = Installation('Hall AF', 10.0, {'CSR': 1})
        ind = compute_mixture_indicators([inst], {'Grignons': 5.0}, ANALYSES)
        assert ind.flow == pytest.approx(15.0)
        assert ind.humidity == pytest.approx((10 * 15.0 + 5 * 18.0) / 15)
        assert ind.fuel_weights['Grignons'] == 5.0

    def test_direct_input_without_analysis_is_left_out(self):
        ind = compute_mixture_indicators([], {'Unknown': 4.0, 'CSR': 2.0}, ANALYSES)
        assert ind.flow == pytest.approx(2.0)
        assert ind.pci == pytest.approx(4000.0)

    def test_nothing_fed(self):
        ind = compute_mixture_indicators([Installation('ATS', 0.0)], {}, ANALYSES)
        assert ind.flow == 0.0
        assert ind.pci == 0.0
        assert set(ind.status.values()) == {'neutral'}

    def test_thresholds(self):
        inst = Installation('Hall AF', 10.0, {'CSR': 1})
        thresholds = MixtureThresholds(pci_min=4500, humidity_max=18, chlorine_max=0.5)
        ind = compute_mixture_indicators([inst], {}, ANALYSES, thresholds=thresholds)
        assert ind.status['pci'] == 'alert'
        assert ind.status['humidity'] == 'conform'
        assert ind.status['chlorine'] == 'alert'
        assert ind.status['ash'] == 'neutral'

    def test_custom_tire_classification(self):
        inst = Installation('Hall AF', 10.0, {'CSR': 1, 'Pneus': 1})
        ind = compute_mixture_indicators([inst], {}, ANALYSES, is_tire=lambda name: name == 'CSR')
        assert ind.tire_rate == pytest.approx(50.0)

    def test_costs(self):
        ind = compute_mixture_indicators([], {'CSR': 1.0, 'Pneus': 3.0}, ANALYSES, costs={'CSR': 100.0, 'Pneus': 20.0})
        assert ind.cost == pytest.approx((100.0 + 60.0) / 4)


def test_is_tire_fuel():
    assert is_tire_fuel('Pneus broyés')
    assert is_tire_fuel('Shredded TIRES')
    assert not is_tire_fuel('CSR')


def test_indicator_status():
    assert indicator_status(5.0) == 'neutral'
    assert indicator_status(0.0, maximum=1.0) == 'neutral'
    assert indicator_status(2.0, maximum=1.0) == 'alert'
    assert indicator_status(0.5, maximum=1.0) == 'conform'
    assert indicator_status(3000.0, minimum=4000.0) == 'alert'


class TestPciAsReceived:
    def test_formula(self):
        expected = (5000 - 50.6353308 * 5) * (1 - 0.10) - 10 * 583.2616878 / 100
        assert compute_pci_as_received(5000, 10, 5) == round(expected)

    @pytest.mark.parametrize('pcs, humidity, hydrogen', [
        (5000, 10, None),
        (-1, 10, 5),
        (5000, 120, 5),
        (float('nan'), 10, 5),
    ])
    def test_invalid(self, pcs, humidity, hydrogen):
        assert compute_pci_as_received(pcs, humidity, hydrogen) is None


class TestFuelStreamsFromSession:
    """Tests for turning a loader session into fuel streams"""

    def test_installation_flow_split_by_loaded_mass(self):
        csr_ash = AverageAshAnalysis(OxideComposition(SiO2=40.0), 12.0, 2)
        tire_ash = AverageAshAnalysis(OxideComposition(Fe2O3=30.0), 6.0, 1)
        inst = Installation('Hall AF', 8.0, {'CSR': 3, 'Pneus': 1})
        streams = fuel_streams_from_session([inst], {}, {'CSR': csr_ash, 'Pneus': tire_ash})
        by_name = {s.name: s for s in streams}
        assert by_name['CSR'].flow_rate == pytest.approx(6.0)
        assert by_name['Pneus'].flow_rate == pytest.approx(2.0)
        assert by_name['CSR'].ash_content_percent == 12.0
        assert by_name['Pneus'].ash_composition.Fe2O3 == 30.0

    def test_direct_inputs_become_streams(self):
        streams = fuel_streams_from_session([], {'Grignons': 1.5, 'Pet-Coke': 0.0}, {'Grignons': NO_ASH_DATA})
        assert len(streams) == 1
        assert streams[0].name == 'Grignons'
        assert streams[0].flow_rate == 1.5
        assert streams[0].ash_flow == 0.0
        assert streams[0].ash_composition.is_empty

    def test_idle_installation(self):
        inst = Installation('ATS', 0.0, {'CSR': 2})
        assert fuel_streams_from_session([inst], {}, {}) == []

    def test_bucket_weights_shift_the_split(self):
        csr_ash = AverageAshAnalysis(OxideComposition(SiO2=40.0), 12.0, 2)
        inst = Installation('Hall AF', 8.0, {'CSR': 1, 'Pneus': 1})
        streams = fuel_streams_from_session([inst], {}, {'CSR': csr_ash}, bucket_weights={'CSR': 3.0, 'Pneus': 1.0})
        by_name = {s.name: s for s in streams}
        assert by_name['CSR'].flow_rate == pytest.approx(6.0)
        assert by_name['Pneus'].flow_rate == pytest.approx(2.0)
