"""
Tests for the stikstofgebruiksnorm.

The soil region and NV membership come from the fake raster; by default the
field lies on zand_nwc outside an NV area.
"""
from datetime import date
from decimal import Decimal
import pytest

from gebruiksnormen.services.errors import ComplianceWindowError, GeospatialError, LookupExhaustionError
from gebruiksnormen.services.nitrogen_norm import calculate_nitrogen_norm, select_standard
from gebruiksnormen.services.rule_tables import load_nitrogen_standards
from helpers import cultivation

GRAS = cultivation("nl_265", date(2020, 1, 1))


class TestGrassland:
    """Permanent and temporary grassland."""

    def test_grazing_on_clay(self, fake_raster, make_norms_input):
        fake_raster.set_region("klei")
        result = calculate_nitrogen_norm(make_norms_input([GRAS], has_grazing_intention=True), 2025)
        assert result.norm_value == Decimal(345)
        assert result.norm_source == "Grasland (beweiden)."

    def test_mowing_on_clay_in_nv_area(self, fake_raster, make_norms_input):
        fake_raster.set_region("klei")
        fake_raster.values["nv"] = 1
        result = calculate_nitrogen_norm(make_norms_input([GRAS]), 2025)
        assert result.norm_value == Decimal(345)
        assert result.norm_source == "Grasland (volledig maaien)."

    def test_grassland_on_sand_has_no_catch_crop_korting(self, fake_raster, make_norms_input):
        result = calculate_nitrogen_norm(make_norms_input([GRAS], has_grazing_intention=True), 2026)
        assert result.norm_value == Decimal(250)
        assert result.norm_source == "Grasland (beweiden)."

    def test_temporary_grassland_longest_presence(self, fake_raster, make_norms_input):
        """Of all matching windows the earliest start and then the latest end wins."""
        fake_raster.set_region("klei")
        tijdelijk = cultivation("nl_266", date(2025, 1, 1), date(2025, 10, 20))
        result = calculate_nitrogen_norm(make_norms_input([tijdelijk]), 2025)
        assert result.norm_value == Decimal(310)
        assert result.norm_source == "Tijdelijk grasland."

    def test_temporary_grassland_sown_in_spring(self, fake_raster, make_norms_input):
        fake_raster.set_region("klei")
        tijdelijk = cultivation("nl_266", date(2025, 5, 1), date(2025, 10, 31))
        result = calculate_nitrogen_norm(make_norms_input([tijdelijk]), 2025)
        assert result.norm_value == Decimal(310)
        assert result.norm_source == "Tijdelijk grasland."

    def test_temporary_grassland_falls_back_on_end_date(self, fake_raster, make_norms_input):
        """Without a matching window the first window containing the end date is used."""
        fake_raster.set_region("klei")
        tijdelijk = cultivation("nl_266", date(2025, 2, 1), date(2025, 6, 1))
        result = calculate_nitrogen_norm(make_norms_input([tijdelijk]), 2025)
        assert result.norm_value == Decimal(250)
        assert result.norm_source == "Tijdelijk grasland."

    def test_temporary_grassland_until_may_on_sand_in_nv_area(self, fake_raster, make_norms_input):
        fake_raster.values["nv"] = 1
        tijdelijk = cultivation("nl_266", date(2025, 1, 1), date(2025, 5, 20))
        result = calculate_nitrogen_norm(make_norms_input([tijdelijk]), 2025)
        assert result.norm_value == Decimal(72)
        assert result.norm_source == "Tijdelijk grasland."

    def test_temporary_grassland_until_may_on_loess(self, fake_raster, make_norms_input):
        fake_raster.set_region("loess")
        tijdelijk = cultivation("nl_266", date(2026, 1, 1), date(2026, 5, 20))
        result = calculate_nitrogen_norm(make_norms_input([tijdelijk]), 2026)
        assert result.norm_value == Decimal(90)


class TestArableCrops:
    """Sub-type rules of arable crops."""

    def test_maize_with_derogation_2025(self, fake_raster, make_norms_input):
        fake_raster.set_region("klei")
        mais = cultivation("nl_259", date(2025, 4, 15), date(2025, 10, 1))
        result = calculate_nitrogen_norm(make_norms_input([mais], has_derogation=True), 2025)
        assert result.norm_value == Decimal(185)
        assert result.norm_source == "Akkerbouwgewassen, mais (derogatie)."

    def test_maize_derogation_abolished_2026(self, fake_raster, make_norms_input):
        fake_raster.set_region("klei")
        mais = cultivation("nl_259", date(2026, 4, 15), date(2026, 10, 1))
        result = calculate_nitrogen_norm(make_norms_input([mais], has_derogation=True), 2026)
        assert result.norm_value == Decimal(160)
        assert result.norm_source == "Akkerbouwgewassen, mais (non-derogatie)."

    @pytest.mark.parametrize("variety,value,label", [
        ("Fontane", 275, "hoge norm"),
        ("bintje", 230, "lage norm"),
        ("Nicola", 250, "overig"),
        (None, 250, "overig"),
    ])
    def test_potato_varieties(self, fake_raster, make_norms_input, variety, value, label):
        fake_raster.set_region("klei")
        aardappel = cultivation("nl_2014", date(2025, 4, 10), date(2025, 9, 20), variety=variety)
        result = calculate_nitrogen_norm(make_norms_input([aardappel]), 2025)
        assert result.norm_value == Decimal(value)
        assert result.norm_source == f"Akkerbouwgewas, consumptieaardappelen ({label})."

    def test_luzerne_first_year(self, fake_raster, make_norms_input):
        fake_raster.set_region("klei")
        luzerne = cultivation("nl_258", date(2025, 4, 1), date(2025, 12, 31))
        result = calculate_nitrogen_norm(make_norms_input([luzerne]), 2025)
        assert result.norm_value == Decimal(30)
        assert result.norm_source == "Akkerbouwgewassen, Luzerne (eerste jaar)."

    def test_luzerne_subsequent_years(self, fake_raster, make_norms_input):
        fake_raster.set_region("klei")
        cultivations = [
            cultivation("nl_258", date(2024, 4, 1), date(2024, 12, 31)),
            cultivation("nl_258", date(2025, 1, 1), date(2025, 12, 31)),
        ]
        result = calculate_nitrogen_norm(make_norms_input(cultivations), 2025)
        assert result.norm_value == Decimal(0)
        assert result.norm_source == "Akkerbouwgewassen, Luzerne (volgende jaren)."

    def test_koolzaad_from_catalogue_code(self, fake_raster, make_norms_input):
        fake_raster.set_region("klei")
        koolzaad = cultivation("nl_1923", date(2025, 3, 20), date(2025, 8, 1))
        result = calculate_nitrogen_norm(make_norms_input([koolzaad]), 2025)
        assert result.norm_value == Decimal(120)
        assert result.norm_source == "Akkerbouwgewassen, koolzaad (zomer)."

    def test_spinach_as_hoofdteelt(self, fake_raster, make_norms_input):
        fake_raster.set_region("klei")
        spinazie = cultivation("nl_2773", date(2025, 4, 1), date(2025, 7, 15))
        result = calculate_nitrogen_norm(make_norms_input([spinazie]), 2025)
        assert result.norm_value == Decimal(260)
        assert result.norm_source == "Bladgewassen, Spinazie (1e teelt)."

    def test_without_sub_types(self, fake_raster, make_norms_input):
        fake_raster.set_region("klei")
        bonen = cultivation("nl_853", date(2025, 5, 1), date(2025, 9, 1))
        result = calculate_nitrogen_norm(make_norms_input([bonen]), 2025)
        assert result.norm_value == Decimal(135)
        assert result.norm_source == "Vruchtgewassen, Landbouwstambonen, rijp zaad."


class TestKortingOnNorm:
    """Korting is subtracted from the base norm and clamped at zero."""

    BIETEN = cultivation("nl_256", date(2025, 4, 1), date(2025, 10, 15))

    def test_no_catch_crop_on_sand(self, fake_raster, make_norms_input):
        result = calculate_nitrogen_norm(make_norms_input([self.BIETEN]), 2025)
        assert result.norm_value == Decimal(125)
        assert result.norm_source == "Akkerbouwgewassen, Suikerbieten. Korting: 20kg N/ha: geen vanggewas of winterteelt"

    def test_catch_crop_on_time(self, fake_raster, make_norms_input):
        mosterd = cultivation("nl_428", date(2024, 9, 20), date(2025, 2, 15))
        result = calculate_nitrogen_norm(make_norms_input([mosterd, self.BIETEN]), 2025)
        assert result.norm_value == Decimal(145)
        assert result.norm_source == (
            "Akkerbouwgewassen, Suikerbieten. Geen korting: vanggewas gezaaid uiterlijk 1 oktober"
        )

    def test_late_catch_crop_in_nv_area(self, fake_raster, make_norms_input):
        fake_raster.values["nv"] = 1
        mosterd = cultivation("nl_428", date(2024, 10, 10), date(2025, 3, 1))
        result = calculate_nitrogen_norm(make_norms_input([mosterd, self.BIETEN]), 2025)
        assert result.norm_value == Decimal(111)

    def test_winterteelt_on_sand(self, fake_raster, make_norms_input):
        tarwe = cultivation("nl_233", date(2024, 10, 15), date(2025, 7, 31))
        result = calculate_nitrogen_norm(make_norms_input([tarwe]), 2025)
        assert result.norm_value == Decimal(160)
        assert result.norm_source == "Akkerbouwgewassen, Wintertarwe. Geen korting: winterteelt aanwezig"

    def test_no_catch_crop_korting_on_clay(self, fake_raster, make_norms_input):
        fake_raster.set_region("klei")
        result = calculate_nitrogen_norm(make_norms_input([self.BIETEN]), 2025)
        assert result.norm_value == Decimal(150)
        assert result.norm_source == "Akkerbouwgewassen, Suikerbieten."

    def test_fallback_clamped_at_zero(self, fake_raster, make_norms_input):
        result = calculate_nitrogen_norm(make_norms_input([]), 2025)
        assert result.norm_value == Decimal(0)
        assert result.norm_source == (
            "Overige teelten, Groene braak, spontane opkomst. Korting: 20kg N/ha: geen vanggewas of winterteelt"
        )

    def test_grassland_renewal(self, fake_raster, make_norms_input):
        fake_raster.set_region("klei")
        cultivations = [
            cultivation("nl_265", date(2020, 1, 1), date(2025, 6, 15)),
            cultivation("nl_265", date(2025, 6, 20)),
        ]
        result = calculate_nitrogen_norm(make_norms_input(cultivations), 2025)
        assert result.norm_value == Decimal(335)
        assert result.norm_source == "Grasland (volledig maaien). Korting: 50kg N/ha: graslandvernieuwing"

    def test_grassland_renewal_outside_window(self, fake_raster, make_norms_input):
        fake_raster.set_region("klei")
        cultivations = [
            cultivation("nl_265", date(2020, 1, 1), date(2025, 10, 1)),
            cultivation("nl_265", date(2025, 10, 5)),
        ]
        with pytest.raises(ComplianceWindowError) as excinfo:
            calculate_nitrogen_norm(make_norms_input(cultivations), 2025)
        assert str(excinfo.value) == (
            "Graslandvernieuwing op klei- en veengrond (geen derogatie) is alleen toegestaan "
            "tussen 1 februari en 15 september."
        )
        assert excinfo.value.transition_date == date(2025, 10, 1)

    def test_grassland_renewal_on_clay_without_korting_in_2026(self, fake_raster, make_norms_input):
        fake_raster.set_region("klei")
        cultivations = [
            cultivation("nl_265", date(2020, 1, 1), date(2026, 10, 1)),
            cultivation("nl_265", date(2026, 10, 5)),
        ]
        result = calculate_nitrogen_norm(make_norms_input(cultivations), 2026)
        assert result.norm_value == Decimal(385)
        assert result.norm_source == "Grasland (volledig maaien)."

    def test_grassland_destruction(self, fake_raster, make_norms_input):
        cultivations = [
            cultivation("nl_265", date(2019, 5, 1), date(2025, 4, 1)),
            cultivation("nl_259", date(2025, 4, 20), date(2025, 10, 1)),
        ]
        result = calculate_nitrogen_norm(make_norms_input(cultivations), 2025)
        assert result.norm_value == Decimal(75)
        assert result.norm_source == "Akkerbouwgewassen, mais (non-derogatie). Korting: 65kg N/ha: graslandvernietiging"

    def test_late_sown_grass_is_no_destruction_in_2026(self, fake_raster, make_norms_input):
        cultivations = [
            cultivation("nl_265", date(2025, 8, 20), date(2026, 3, 1)),
            cultivation("nl_259", date(2026, 4, 20), date(2026, 10, 1)),
        ]
        result = calculate_nitrogen_norm(make_norms_input(cultivations), 2026)
        assert result.norm_value == Decimal(120)
        assert result.norm_source == "Akkerbouwgewassen, mais (non-derogatie). Korting: 20kg N/ha: geen vanggewas of winterteelt"


class TestFailures:
    """Inputs that must not produce a norm."""

    def test_bufferstrip_skips_lookups(self, fake_raster, make_norms_input):
        result = calculate_nitrogen_norm(make_norms_input([GRAS], is_bufferstrip=True), 2025)
        assert result.norm_value == Decimal(0)
        assert result.norm_source == "Bufferstrook: geen plaatsingsruimte"
        assert fake_raster.calls == []

    def test_unknown_catalogue_code(self, fake_raster, make_norms_input):
        onbekend = cultivation("nl_99999", date(2025, 4, 1), date(2025, 9, 1))
        with pytest.raises(LookupExhaustionError, match="No matching nitrogen standard found for catalogue code nl_99999."):
            calculate_nitrogen_norm(make_norms_input([onbekend]), 2025)

    def test_unknown_region(self, fake_raster, make_norms_input):
        fake_raster.values["grondsoorten"] = 9
        with pytest.raises(GeospatialError):
            calculate_nitrogen_norm(make_norms_input([GRAS]), 2025)


class TestSelectStandard:
    """Tests for select_standard()."""

    def test_single_candidate(self):
        standards = load_nitrogen_standards(2025).find_by_code("nl_256")
        assert select_standard(standards, "nl_256") is standards[0]

    def test_prefers_descriptive_sub_types(self):
        table = load_nitrogen_standards(2025)
        plain = table.find_by_code("nl_256")[0]
        descriptive = table.find_by_code("nl_2014")[0]
        assert select_standard([plain, descriptive], "nl_256") is descriptive

    def test_no_candidates(self):
        with pytest.raises(LookupExhaustionError):
            select_standard([], "nl_1")
