"""Tests for catalogue loading and the Shoe record."""

import json
from dataclasses import FrozenInstanceError

import pytest

from cinda.models.profile import OwnedShoe
from cinda.models.shoe import Shoe
from cinda.services.catalogue_service import CatalogueService, CatalogueUnavailableError


def _record(shoe_id, **extra):
    return {"shoe_id": shoe_id, "brand": "Acme", "model": shoe_id.title(), **extra}


class TestShoeFromDict:
    def test_minimal_record(self):
        shoe = Shoe.from_dict(_record("glide", is_daily_trainer=True, cushion_softness_1to5=4))
        assert shoe.full_name == "Acme Glide"
        assert shoe.cushion_softness_1to5 == 4
        assert shoe.bounce_1to5 is None
        assert shoe.archetypes == ["daily_trainer"]

    def test_rating_out_of_range(self):
        with pytest.raises(ValueError, match="outside 1-5"):
            Shoe.from_dict(_record("bad", bounce_1to5=6))

    def test_negative_weight(self):
        with pytest.raises(ValueError, match="negative"):
            Shoe.from_dict(_record("bad", weight_g=-1))

    def test_missing_brand(self):
        with pytest.raises(ValueError, match="brand"):
            Shoe.from_dict({"shoe_id": "x", "model": "X"})

    def test_unknown_keys_ignored(self):
        shoe = Shoe.from_dict(_record("glide", colorways=["red"]))
        assert shoe.shoe_id == "glide"

    def test_frozen(self, make_shoe):
        shoe = make_shoe("glide")
        with pytest.raises(FrozenInstanceError):
            shoe.weight_g = 100

    def test_price_rank_defaults_to_core(self, make_shoe):
        assert make_shoe("a", retail_price_category="Race_Day").price_rank == 3
        assert make_shoe("b", retail_price_category="Luxury").price_rank == 1


class TestCatalogueService:
    def test_bundled_catalogue_loads(self, catalogue):
        assert len(catalogue) >= 25
        pegasus = catalogue.get("nike_pegasus_41")
        assert pegasus is not None
        assert pegasus.brand == "Nike"
        assert "nike_pegasus_41" in catalogue

    def test_bundled_catalogue_covers_every_archetype(self, catalogue):
        for archetype in ("daily_trainer", "recovery_shoe", "workout_shoe", "race_shoe", "trail_shoe"):
            assert sum(1 for s in catalogue if s.has_archetype(archetype)) >= 3, archetype

    def test_missing_file_is_unavailable(self, tmp_path):
        catalogue = CatalogueService(tmp_path)
        assert len(catalogue) == 0
        assert not catalogue.is_available
        with pytest.raises(CatalogueUnavailableError):
            catalogue.ensure_available()

    def test_invalid_records_skipped(self, tmp_path):
        data = {"shoes": [_record("good"), _record("bad", stability_1to5=0)]}
        (tmp_path / "shoes.json").write_text(json.dumps(data))
        catalogue = CatalogueService(tmp_path)
        assert [s.shoe_id for s in catalogue] == ["good"]

    def test_non_object_records_skipped(self, tmp_path):
        data = {"shoes": ["nike_pegasus_41", 42, None, _record("good")]}
        (tmp_path / "shoes.json").write_text(json.dumps(data))
        catalogue = CatalogueService(tmp_path)
        assert [s.shoe_id for s in catalogue] == ["good"]

    @pytest.mark.parametrize("payload", [{"shoes": "nope"}, 42])
    def test_shoes_not_a_list_is_unavailable(self, tmp_path, payload):
        (tmp_path / "shoes.json").write_text(json.dumps(payload))
        assert not CatalogueService(tmp_path).is_available

    def test_malformed_json_is_unavailable(self, tmp_path):
        (tmp_path / "shoes.json").write_text("{not json")
        assert len(CatalogueService(tmp_path)) == 0

    def test_duplicates_keep_first(self, make_shoe):
        catalogue = CatalogueService(shoes=[make_shoe("a", weight_g=200), make_shoe("a", weight_g=300)])
        assert len(catalogue) == 1
        assert catalogue.get("a").weight_g == 200

    def test_resolve_skips_unknown(self, catalogue):
        owned = [OwnedShoe("nike_pegasus_41"), OwnedShoe("homemade_sandals")]
        resolved = catalogue.resolve(owned)
        assert [shoe.shoe_id for _, shoe in resolved] == ["nike_pegasus_41"]

    def test_index_is_read_only(self, catalogue):
        with pytest.raises(TypeError):
            catalogue._by_id["new"] = None
        assert isinstance(catalogue.shoes, tuple)

    def test_brands_sorted(self, make_shoe):
        catalogue = CatalogueService(shoes=[make_shoe("a", brand="Zed"), make_shoe("b", brand="Alpha")])
        assert catalogue.brands() == ["Alpha", "Zed"]
