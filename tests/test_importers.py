import pandas as pd
import pytest

from af_impact.importers import (
    CLINKER_ROW,
    RAW_MEAL_ROW,
    AnalysisImportError,
    read_measured_clinker,
    read_raw_meal_analysis,
)
from af_impact.oxides import OXIDE_KEYS


def write_sheet(path, rows, row_number, values):
    """Workbook of `rows` fully filled rows, `values` written from column A on row `row_number`"""
    data = [[0.0] * 14 for _ in range(rows)]
    data[row_number - 1][:len(values)] = values
    pd.DataFrame(data).to_excel(path, header=False, index=False)
    return path


class TestRawMealImport:
    def test_reads_row_24(self, tmp_path):
        values = ['Moyenne', 35.0, 14.0, 3.5, 2.2, 43.0, 1.5, 0.5, 0.5, 0.2, 0.1, 0.1]
        path = write_sheet(tmp_path / 'farine.xlsx', 30, RAW_MEAL_ROW, values)
        c = read_raw_meal_analysis(path)
        assert [c.value(k) for k in OXIDE_KEYS] == pytest.approx(values[1:])

    def test_non_numeric_cells_read_as_zero(self, tmp_path):
        values = ['Moyenne', '34,8', 'n/a', 3.5, 2.2, 43.0, 1.5, 0.5, 0.5, 0.2, 0.1, 0.1]
        path = write_sheet(tmp_path / 'farine.xlsx', 30, RAW_MEAL_ROW, values)
        c = read_raw_meal_analysis(path)
        assert c.loss_on_ignition == pytest.approx(34.8)
        assert c.SiO2 == 0.0

    def test_short_sheet(self, tmp_path):
        path = write_sheet(tmp_path / 'farine.xlsx', 10, 1, [1.0])
        with pytest.raises(AnalysisImportError, match='row 24'):
            read_raw_meal_analysis(path)

    def test_not_a_workbook(self, tmp_path):
        path = tmp_path / 'farine.xlsx'
        path.write_text('not a workbook', encoding='utf-8')
        with pytest.raises(AnalysisImportError):
            read_raw_meal_analysis(path)


class TestClinkerImport:
    def test_reads_row_37(self, tmp_path):
        values = ['Moyenne', 0.4, 1.3, 21.0, 5.2, 3.4, 65.5, 1.8, 1.1, 0.7, 0.3, 0.1, 0.2]
        path = write_sheet(tmp_path / 'clinker.xlsx', 40, CLINKER_ROW, values)
        c, free_lime = read_measured_clinker(path)
        assert free_lime == pytest.approx(1.3)
        assert c.loss_on_ignition == pytest.approx(0.4)
        assert c.SiO2 == pytest.approx(21.0)
        assert c.CaO == pytest.approx(65.5)
        assert c.P2O5 == pytest.approx(0.2)
