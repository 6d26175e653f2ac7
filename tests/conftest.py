import pytest

from af_impact.oxides import FuelStream, OxideComposition, RawMealInput

REFERENCE_RAW_MEAL = {
    'loss_on_ignition': 35.0,
    'SiO2': 14.0,
    'Al2O3': 3.5,
    'Fe2O3': 2.2,
    'CaO': 43.0,
    'MgO': 1.5,
    'SO3': 0.5,
    'K2O': 0.5,
    'TiO2': 0.2,
    'MnO': 0.1,
    'P2O5': 0.1,
}


@pytest.fixture
def raw_meal():
    return RawMealInput(flow_rate=200.0, composition=OxideComposition(**REFERENCE_RAW_MEAL))


@pytest.fixture
def petcoke_stream():
    return FuelStream(
        flow_rate=3.0,
        ash_content_percent=10.0,
        ash_composition=OxideComposition(SiO2=45.0, Al2O3=25.0, Fe2O3=15.0, CaO=5.0, loss_on_ignition=0.0),
        name='Pet-Coke',
    )


@pytest.fixture
def lime_rich_stream():
    return FuelStream(
        flow_rate=5.0,
        ash_content_percent=40.0,
        ash_composition=OxideComposition(CaO=85.0, SiO2=5.0, Al2O3=2.0, Fe2O3=1.0),
        name='Lime sludge',
    )


# Keep settings independent of the developer's environment and .env file.
@pytest.fixture(autouse=True)
def clean_environment(monkeypatch):
    for name in [
        'AF_IMPACT_DEFAULTS_PATH',
        'AF_IMPACT_ANALYSES_PATH',
        'AF_IMPACT_LOG_LEVEL',
        'AF_IMPACT_DEFAULT_FREE_LIME',
        'AF_IMPACT_DEFAULT_CLINKER_FACTOR',
    ]:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setattr('af_impact.config.load_dotenv', lambda *args, **kwargs: False)
