import numpy as np
import pytest

from gbpu_mapping import download_grizzly_data
from gbpu_mapping.config import PipelineConfig
from gbpu_mapping.harmonize_gbpu_names import LabelMismatchError
from gbpu_mapping.run_pipeline import config_from_args, main, parse_args, run

MORTALITY_CSV = """GBPU_NAME,AGE_CLASS,KILL_CODE,
Flathead,0-5,1,
North Purcells,5+,2,
Flathead,10,1,
Flathead,Unknown,3,
"""

POPULATION_CSV = """GBPU,MU,Estimate,Total_Area,Notes,
Central Purcells,4-20,10,5,Estimates from 2012 survey,
Central Purcells,4-21,20,5,Areas in km2,
North Purcell,4-22,15,10,,
Flathead,4-1,40,10,Revised 2015,
Flathead,4-2,,5,,
"""

MORTALITY_URL = "https://example.org/mortality.csv"
POPULATION_URL = "https://example.org/population.csv"


class FakeResponse:
    def __init__(self, text):
        self.text = text

    def raise_for_status(self):
        pass


@pytest.fixture
def fake_downloads(monkeypatch):
    bodies = {MORTALITY_URL: MORTALITY_CSV, POPULATION_URL: POPULATION_CSV}
    monkeypatch.setattr(download_grizzly_data.requests, "get",
                        lambda url, headers=None, timeout=None: FakeResponse(bodies[url]))


@pytest.fixture
def config(gbpu_zip):
    return PipelineConfig(mortality_url=MORTALITY_URL, population_url=POPULATION_URL, gbpu_zip=gbpu_zip)


def test_run_end_to_end(fake_downloads, config):
    result = run(config)

    assert "AGE_CLASS" not in result.mortality.columns
    assert "Unnamed: 3" not in result.mortality.columns
    assert result.mortality["minimum_age"].tolist()[:3] == [0.0, 5.0, 10.0]

    assert "Notes" not in result.population.columns
    assert result.population_meta == "Estimates from 2012 survey; Areas in km2; Revised 2015"

    dens = result.aggregate.set_index("GBPU")["Density"]
    assert dens["Central-South Purcells"] == pytest.approx(3000)
    assert dens["North Purcells"] == pytest.approx(1500)
    assert dens["Flathead"] == pytest.approx(40 / 15 * 1000)

    assert set(result.aggregate["GBPU"]) == set(result.polygons["GBPU_NAME"])
    assert "Old Flathead" not in set(result.polygons["GBPU_NAME"])
    assert result.merged["Density"].notna().all()
    assert np.isfinite(result.merged["Density"]).all()
    assert result.figure is not None
    assert result.mortality_by_unit.loc[0, "GBPU_NAME"] == "Flathead"


def test_run_fails_without_corrections(fake_downloads, gbpu_zip):
    config = PipelineConfig(mortality_url=MORTALITY_URL, population_url=POPULATION_URL,
                            gbpu_zip=gbpu_zip, name_corrections={})
    with pytest.raises(LabelMismatchError):
        run(config)


def test_parse_args_overrides(tmp_path):
    args = parse_args([
        "--gbpu-zip", str(tmp_path / "g.zip"),
        "--version", "2016",
        "--on-mismatch", "drop",
        "--save-figure", str(tmp_path / "map.png"),
    ])
    config = config_from_args(args)

    assert config.gbpu_zip == tmp_path / "g.zip"
    assert config.version == 2016
    assert config.on_mismatch == "drop"
    assert config.save_figure == tmp_path / "map.png"


def test_invalid_mismatch_policy():
    with pytest.raises(ValueError, match="on_mismatch"):
        PipelineConfig(on_mismatch="ignore")


def test_main_saves_figure_and_prints_summary(fake_downloads, gbpu_zip, tmp_path, capsys):
    out = tmp_path / "figs" / "density.png"
    main([
        "--mortality-url", MORTALITY_URL,
        "--population-url", POPULATION_URL,
        "--gbpu-zip", str(gbpu_zip),
        "--save-figure", str(out),
        "--log-level", "WARNING",
    ])

    assert out.exists()
    printed = capsys.readouterr().out
    assert "SUMMARY" in printed
    assert "Revised 2015" in printed
