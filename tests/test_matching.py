from types import SimpleNamespace

from marketplace.services.matching import compute_match_score, self_declared_matches


def _rfq(technology="CNC", material="Aluminum", dims=None, certificates=(), region=None):
    workpiece = SimpleNamespace(
        technology=technology,
        material=material,
        dimensions=dims or {"length": 100, "width": 50, "height": 20, "diameter": 0},
    )
    return SimpleNamespace(
        first_workpiece=workpiece,
        required_certificates=list(certificates),
        region=region,
    )


def _maker(**profile):
    defaults = {
        "manufacturing_types": [],
        "primary_materials": [],
        "certifications": [],
        "max_dimensions": {},
        "regions_served": [],
    }
    defaults.update(profile)
    return SimpleNamespace(**defaults)


def test_technology_material_and_size():
    maker = _maker(
        manufacturing_types=["CNC"],
        primary_materials=["Aluminum"],
        max_dimensions={"length": 200, "width": 200, "height": 200},
    )
    assert compute_match_score(maker, _rfq()) == 70


def test_empty_profile_scores_zero():
    assert compute_match_score(_maker(), _rfq(certificates=["ISO_9001"], region="South")) == 0


def test_zero_envelope_is_not_a_fit():
    maker = _maker(max_dimensions={"length": 0, "width": 0, "height": 0})
    assert compute_match_score(maker, _rfq()) == 0


def test_oversized_part_gets_no_size_points():
    maker = _maker(max_dimensions={"length": 50, "width": 200, "height": 200})
    assert compute_match_score(maker, _rfq()) == 0


def test_each_held_certificate_counts():
    maker = _maker(certifications=["ISO_9001", "AS9100"])
    rfq = _rfq(certificates=["ISO_9001", "AS9100", "ROHS"])
    assert compute_match_score(maker, rfq) == 20


def test_region_served():
    maker = _maker(regions_served=["South"])
    assert compute_match_score(maker, _rfq(region="South")) == 10
    assert compute_match_score(maker, _rfq(region="North")) == 0


def test_score_is_capped():
    maker = _maker(
        manufacturing_types=["CNC"],
        primary_materials=["Aluminum"],
        certifications=["ISO_9001", "AS9100", "ROHS"],
        max_dimensions={"length": 200, "width": 200, "height": 200},
        regions_served=["South"],
    )
    rfq = _rfq(certificates=["ISO_9001", "AS9100", "ROHS"], region="South")
    assert compute_match_score(maker, rfq) == 100


def test_rfq_without_workpieces():
    rfq = SimpleNamespace(first_workpiece=None, required_certificates=[], region=None)
    assert compute_match_score(_maker(manufacturing_types=["CNC"]), rfq) == 0
    assert self_declared_matches(_maker(), rfq) == (False, False)


def test_self_declared_matches():
    maker = _maker(manufacturing_types=["CNC"], primary_materials=["Steel"])
    assert self_declared_matches(maker, _rfq()) == (True, False)
