"""Tests for the reactive customizer session."""

import asyncio

import pytest

from customizer.errors import PersistenceError
from customizer.models.selection import StageRect
from customizer.services.resolver import CatalogVariationImage
from customizer.services.session import CustomizerSession
from customizer.services.variants import variation_id


class TestRecompute:
    def test_definition_seeds_default_selection(self, tee_definition):
        session = CustomizerSession(tee_definition)

        assert session.selection.attributes == {"Color": "White", "Size": "S"}
        assert session.selection.technique == "DTG"
        assert session.resolved.active_view_id == "front"
        assert session.total_price == 19.99

    def test_attribute_change_switches_view_set_and_price(self, tee_definition):
        session = CustomizerSession(tee_definition)
        session.select_attribute("Color", "Navy")

        assert [v.id for v in session.resolved.views] == ["navy_front"]
        assert session.selection.active_view_id == "navy_front"
        assert session.unit_price == 22.99

    def test_stage_change_reprojects(self, tee_definition):
        session = CustomizerSession(tee_definition)
        assert session.pixel_regions == []

        session.set_stage(StageRect(width=800, height=800))
        (chest,) = session.pixel_regions
        assert chest.region_id == "chest"
        assert chest.width == pytest.approx(640.0)

    def test_content_and_technique_drive_total(self, tee_definition):
        session = CustomizerSession(tee_definition)
        session.set_content_views(["front", "back"])
        assert session.total_price == 24.99  # 19.99 + 3.00 print + 2.00 back price

        session.set_technique("Embroidery")
        assert session.total_price == 26.99  # 19.99 + 5.00 embroidery + 2.00

    def test_select_view(self, tee_definition):
        session = CustomizerSession(tee_definition)
        session.set_stage(StageRect(width=100, height=100))
        session.select_view("back")

        assert session.resolved.active_view_id == "back"
        assert [r.region_id for r in session.pixel_regions] == ["back_area"]

    def test_catalog_variation_image_is_used(self, tee_definition):
        white_m = variation_id({"Color": "White", "Size": "M"})
        image = CatalogVariationImage(variation_id=white_m, image_url="https://shop.example.com/white-m.jpg")
        session = CustomizerSession(tee_definition, variation_images={white_m: image})

        assert [v.id for v in session.resolved.views] == ["front", "back"]
        session.select_attribute("Size", "M")
        assert [v.id for v in session.resolved.views] == [f"variation_view_{white_m}"]


class TestLoading:
    """Stale definition loads never overwrite fresher state."""

    def test_stale_load_is_discarded(self, tee_definition, simple_definition):
        session = CustomizerSession()

        async def run():
            slow_started = asyncio.Event()

            async def slow_loader():
                slow_started.set()
                await asyncio.sleep(0.05)
                return tee_definition

            async def fast_loader():
                return simple_definition

            slow = asyncio.create_task(session.load_definition(slow_loader))
            await slow_started.wait()
            fast = await session.load_definition(fast_loader)
            return await slow, fast

        slow_committed, fast_committed = asyncio.run(run())

        assert fast_committed is True
        assert slow_committed is False
        assert session.definition.id == "mug"

    def test_latest_load_failure_propagates(self, tee_definition):
        session = CustomizerSession(tee_definition)

        async def failing_loader():
            raise PersistenceError("store offline")

        with pytest.raises(PersistenceError):
            asyncio.run(session.load_definition(failing_loader))
        assert session.definition.id == "tee"

    def test_superseded_failure_is_ignored(self, simple_definition):
        session = CustomizerSession()

        async def run():
            started = asyncio.Event()

            async def failing_loader():
                started.set()
                await asyncio.sleep(0.05)
                raise PersistenceError("late failure")

            async def ok_loader():
                return simple_definition

            failing = asyncio.create_task(session.load_definition(failing_loader))
            await started.wait()
            await session.load_definition(ok_loader)
            return await failing

        assert asyncio.run(run()) is False
        assert session.definition.id == "mug"
